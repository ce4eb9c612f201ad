"""
Table access statistics.

A single pass over ``pg_stat_all_tables`` feeds ten rankings, from fetched
rows to autoanalyze runs. The dead tuple fraction is the only ratio among
them and the only one subject to the minimum sample size.
"""

from pg_objstats.plugins.common.ranking import DESCENDING, MODE_AVERAGE, MODE_SUM, rank_samples
from pg_objstats.plugins.postgres.utils.qrylib.table_stats import (
    TABLE_IO_STATS_COLUMNS,
    TABLE_STATS_COLUMNS,
    get_table_io_stats_query,
    get_table_stats_query
)
from pg_objstats.plugins.postgres.utils.row_decoding import as_count, build_samples, decode_rows, ratio
from pg_objstats.utils.event_reporter import OBJECT_TABLE, ranking_records

TABLE_KEY = ('schema_name', 'table_name')


def _counter(*columns):
    return lambda row: sum(as_count(row[column]) for column in columns)


def _tuples(row):
    return as_count(row['n_live_tup']) + as_count(row['n_dead_tup'])


def table_stat_rankings(config):
    """Ranking definitions of the table statistics step, in report order.

    Each entry is ``(message, value_fn, mode, observations_fn)``.
    """
    floor = config.min_observations
    return [
        ('Top tables by total fetched rows', _counter('seq_tup_read', 'idx_tup_fetch'), MODE_SUM, None),
        ('Top tables by total inserted rows', _counter('n_tup_ins'), MODE_SUM, None),
        ('Top tables by total updated rows', _counter('n_tup_upd'), MODE_SUM, None),
        ('Top tables by total deleted rows', _counter('n_tup_del'), MODE_SUM, None),
        ('Top tables by total seq scan row count', _counter('seq_tup_read'), MODE_SUM, None),
        ('Top tables by total least HOT-updated rows',
         lambda r: as_count(r['n_tup_upd']) - as_count(r['n_tup_hot_upd']), MODE_SUM, None),
        ('Top tables by dead tuple count', _counter('n_dead_tup'), MODE_SUM, None),
        (f'Top tables by dead tuple fraction (>{floor} tuples)',
         lambda r: ratio(r['n_dead_tup'], _tuples(r)), MODE_AVERAGE, _tuples),
        ('Top tables by total autovacuum count', _counter('autovacuum_count'), MODE_SUM, None),
        ('Top tables by total autoanalyze count', _counter('autoanalyze_count'), MODE_SUM, None),
    ]


def run_table_stats(connector, config, database):
    rows = decode_rows(connector.execute_query(get_table_stats_query(connector)), TABLE_STATS_COLUMNS, 'tables stats')

    records = []
    for message, value_fn, mode, observations_fn in table_stat_rankings(config):
        samples = build_samples(rows, TABLE_KEY, value_fn, observations_fn)
        result = rank_samples(
            samples, message, config.top_tables_n, order=DESCENDING, mode=mode,
            min_observations=config.min_observations if observations_fn else None)
        records.extend(ranking_records(result, database, OBJECT_TABLE))
    return records


def run_table_io_stats(connector, config, database):
    """Ranks tables by the fraction of heap block requests missing the buffer cache."""
    rows = decode_rows(connector.execute_query(get_table_io_stats_query(connector)), TABLE_IO_STATS_COLUMNS, 'tables IO stats')

    def requests(row):
        return as_count(row['heap_blks_read']) + as_count(row['heap_blks_hit'])

    samples = build_samples(rows, TABLE_KEY, lambda r: ratio(r['heap_blks_read'], requests(r)), requests)
    result = rank_samples(
        samples,
        f'Top tables by total buffer cache miss fraction (>{config.min_observations} hits+reads)',
        config.top_tables_n, order=DESCENDING, mode=MODE_AVERAGE,
        min_observations=config.min_observations)
    return ranking_records(result, database, OBJECT_TABLE)
