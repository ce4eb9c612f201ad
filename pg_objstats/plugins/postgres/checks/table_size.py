from pg_objstats.plugins.common.ranking import DESCENDING, MODE_SUM, rank_samples
from pg_objstats.plugins.postgres.utils.qrylib.table_size import (
    TABLE_SIZE_COLUMNS,
    TUPLE_COUNT_COLUMNS,
    get_table_size_query,
    get_tuple_count_query
)
from pg_objstats.plugins.postgres.utils.row_decoding import as_count, build_samples, decode_rows
from pg_objstats.utils.event_reporter import OBJECT_TABLE, ranking_records

TABLE_KEY = ('schema_name', 'table_name')


def run_tables_by_size(connector, config, database):
    """Ranks ordinary tables by total size, including toast and indexes."""
    rows = decode_rows(connector.execute_query(get_table_size_query(connector)), TABLE_SIZE_COLUMNS, 'tables by total size')
    samples = build_samples(rows, TABLE_KEY, lambda r: as_count(r['total_size']))
    result = rank_samples(samples, 'Top tables by total size, B', config.top_tables_n, order=DESCENDING, mode=MODE_SUM)
    return ranking_records(result, database, OBJECT_TABLE)


def run_tables_by_tuple_count(connector, config, database):
    """Ranks tables and toast tables by live plus dead tuples."""
    rows = decode_rows(connector.execute_query(get_tuple_count_query(connector)), TUPLE_COUNT_COLUMNS, 'tables by tuple count')
    samples = build_samples(rows, TABLE_KEY, lambda r: as_count(r['n_live_tup']) + as_count(r['n_dead_tup']))
    result = rank_samples(samples, 'Top tables by tuple count', config.top_tables_n, order=DESCENDING, mode=MODE_SUM)
    return ranking_records(result, database, OBJECT_TABLE)
