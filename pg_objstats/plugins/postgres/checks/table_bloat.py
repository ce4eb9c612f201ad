from pg_objstats.models import MetricSample
from pg_objstats.plugins.common.ranking import DESCENDING, MODE_AVERAGE, rank_samples
from pg_objstats.plugins.postgres.utils.bloat import ColumnStatistics, estimate_table_bloat, maxalign_for
from pg_objstats.plugins.postgres.utils.qrylib.bloat import (
    COLUMN_STATS_COLUMNS,
    TABLE_BLOAT_COLUMNS,
    get_column_stats_query,
    get_table_bloat_query
)
from pg_objstats.plugins.postgres.utils.row_decoding import decode_rows
from pg_objstats.utils.event_reporter import OBJECT_TABLE, ranking_records


def load_column_statistics(connector):
    """Planner column statistics of the current database."""
    rows = decode_rows(connector.execute_query(get_column_stats_query(connector)), COLUMN_STATS_COLUMNS, 'column stats')
    return ColumnStatistics(rows)


def run_table_bloat(connector, config, database):
    """Ranks tables by estimated heap bloat, in percent."""
    stats = load_column_statistics(connector)
    rows = decode_rows(connector.execute_query(get_table_bloat_query(connector)), TABLE_BLOAT_COLUMNS, 'tables bloat')
    estimates = estimate_table_bloat(rows, stats, maxalign_for(connector.version_info.get('version_banner')))

    samples = [MetricSample(key=e.key, value=e.value) for e in estimates]
    result = rank_samples(
        samples, 'Top tables by approximate bloat fraction', config.top_tables_n,
        order=DESCENDING, mode=MODE_AVERAGE)
    return ranking_records(result, database, OBJECT_TABLE)
