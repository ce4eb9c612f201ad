"""
Query library for the table access statistics checks.
"""

TABLE_STATS_COLUMNS = (
    'schema_name', 'table_name',
    'seq_tup_read', 'idx_tup_fetch',
    'n_tup_ins', 'n_tup_upd', 'n_tup_del', 'n_tup_hot_upd',
    'n_live_tup', 'n_dead_tup',
    'autovacuum_count', 'autoanalyze_count',
)

TABLE_IO_STATS_COLUMNS = ('schema_name', 'table_name', 'heap_blks_read', 'heap_blks_hit')


def get_table_stats_query(connector):
    """
    Returns the raw per-table access counters. Every ranking of the table
    statistics step is computed from this single result.
    """
    return """
        SELECT
            schemaname AS schema_name,
            relname AS table_name,
            seq_tup_read,
            idx_tup_fetch,
            n_tup_ins,
            n_tup_upd,
            n_tup_del,
            n_tup_hot_upd,
            n_live_tup,
            n_dead_tup,
            autovacuum_count,
            autoanalyze_count
        FROM pg_stat_all_tables
        ORDER BY relid;
    """


def get_table_io_stats_query(connector):
    """
    Returns heap block reads and buffer cache hits per table.
    """
    return """
        SELECT
            schemaname AS schema_name,
            relname AS table_name,
            heap_blks_read,
            heap_blks_hit
        FROM pg_statio_all_tables
        ORDER BY relid;
    """
