"""
Index size, access and cache statistics.

Ratios that would divide by zero (an index never read, a table never
written) leave the index out of the ranking instead of ranking it as zero.
"""

from pg_objstats.plugins.common.ranking import ASCENDING, DESCENDING, MODE_AVERAGE, MODE_SUM, rank_samples
from pg_objstats.plugins.postgres.utils.qrylib.index_stats import (
    INDEX_IO_STATS_COLUMNS,
    INDEX_SIZE_COLUMNS,
    INDEX_STATS_COLUMNS,
    INDEX_USAGE_COLUMNS,
    get_index_io_stats_query,
    get_index_size_query,
    get_index_stats_query,
    get_index_usage_query
)
from pg_objstats.plugins.postgres.utils.row_decoding import as_count, build_samples, decode_rows, ratio
from pg_objstats.utils.event_reporter import OBJECT_INDEX, ranking_records

INDEX_KEY = ('schema_name', 'index_name')


def run_indexes_by_size(connector, config, database):
    rows = decode_rows(connector.execute_query(get_index_size_query(connector)), INDEX_SIZE_COLUMNS, 'indexes by size')
    samples = build_samples(rows, INDEX_KEY, lambda r: as_count(r['total_size']))
    result = rank_samples(samples, 'Top indexes by size', config.top_indexes_n, order=DESCENDING, mode=MODE_SUM)
    return ranking_records(result, database, OBJECT_INDEX)


def run_index_stats(connector, config, database):
    """Ranks indexes by the fraction of index entries read that led to a
    heap fetch, least first."""
    rows = decode_rows(connector.execute_query(get_index_stats_query(connector)), INDEX_STATS_COLUMNS, 'indexes stats')
    samples = build_samples(
        rows, INDEX_KEY,
        lambda r: ratio(r['idx_tup_fetch'], r['idx_tup_read']),
        lambda r: as_count(r['idx_tup_read']))
    result = rank_samples(
        samples,
        f'Top indexes by total least fetch fraction (>{config.min_observations} reads)',
        config.top_indexes_n, order=ASCENDING, mode=MODE_AVERAGE,
        min_observations=config.min_observations)
    return ranking_records(result, database, OBJECT_INDEX)


def run_index_io_stats(connector, config, database):
    rows = decode_rows(connector.execute_query(get_index_io_stats_query(connector)), INDEX_IO_STATS_COLUMNS, 'indexes IO stats')

    def requests(row):
        return as_count(row['idx_blks_read']) + as_count(row['idx_blks_hit'])

    samples = build_samples(rows, INDEX_KEY, lambda r: ratio(r['idx_blks_read'], requests(r)), requests)
    result = rank_samples(
        samples,
        f'Top indexes by total buffer cache miss fraction (>{config.min_observations} hits+reads)',
        config.top_indexes_n, order=DESCENDING, mode=MODE_AVERAGE,
        min_observations=config.min_observations)
    return ranking_records(result, database, OBJECT_INDEX)


def run_index_usage(connector, config, database):
    """Ranks non-unique indexes by scans per row written to their table, least
    used first.

    Every write to the table maintains the index, so a low ratio points at
    an index that costs more than it returns.
    """
    rows = decode_rows(connector.execute_query(get_index_usage_query(connector)), INDEX_USAGE_COLUMNS, 'indexes usage')
    samples = build_samples(
        rows, INDEX_KEY,
        lambda r: ratio(r['idx_scan'], r['table_writes']),
        lambda r: as_count(r['table_writes']))
    result = rank_samples(
        samples,
        f'Top indexes by total index scans to writes ratio (>{config.min_observations} writes)',
        config.top_indexes_n, order=ASCENDING, mode=MODE_AVERAGE,
        min_observations=config.min_observations)
    return ranking_records(result, database, OBJECT_INDEX)
