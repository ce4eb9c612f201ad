from pg_objstats.models import MetricSample
from pg_objstats.plugins.common.ranking import DESCENDING, MODE_AVERAGE, rank_samples
from pg_objstats.plugins.postgres.checks.table_bloat import load_column_statistics
from pg_objstats.plugins.postgres.utils.bloat import estimate_index_bloat, maxalign_for
from pg_objstats.plugins.postgres.utils.qrylib.bloat import INDEX_BLOAT_COLUMNS, get_index_bloat_query
from pg_objstats.plugins.postgres.utils.row_decoding import decode_rows
from pg_objstats.utils.event_reporter import OBJECT_INDEX, ranking_records


def run_index_bloat(connector, config, database):
    """Ranks btree indexes by estimated bloat, in percent."""
    stats = load_column_statistics(connector)
    rows = decode_rows(connector.execute_query(get_index_bloat_query(connector)), INDEX_BLOAT_COLUMNS, 'indexes bloat')
    estimates = estimate_index_bloat(rows, stats, maxalign_for(connector.version_info.get('version_banner')))

    samples = [MetricSample(key=e.key, value=e.value) for e in estimates]
    result = rank_samples(
        samples, 'Top indexes by approximate bloat fraction', config.top_indexes_n,
        order=DESCENDING, mode=MODE_AVERAGE)
    return ranking_records(result, database, OBJECT_INDEX)
