"""
Query library for the table size and tuple count checks.
"""

TABLE_SIZE_COLUMNS = ('schema_name', 'table_name', 'total_size')

TUPLE_COUNT_COLUMNS = ('schema_name', 'table_name', 'n_live_tup', 'n_dead_tup')


def get_table_size_query(connector):
    """
    Returns a query for the total size (heap, toast and indexes) of every
    ordinary table.
    """
    return """
        SELECT
            n.nspname AS schema_name,
            c.relname AS table_name,
            pg_total_relation_size(c.oid) AS total_size
        FROM pg_class AS c
        JOIN pg_namespace AS n ON n.oid = c.relnamespace
        WHERE c.relkind = 'r'
        ORDER BY c.oid;
    """


def get_tuple_count_query(connector):
    """
    Returns a query for live and dead tuple counts of tables and toast tables.
    """
    return """
        SELECT
            n.nspname AS schema_name,
            c.relname AS table_name,
            s.n_live_tup,
            s.n_dead_tup
        FROM pg_class AS c
        JOIN pg_namespace AS n ON n.oid = c.relnamespace
        JOIN pg_stat_all_tables AS s ON s.relid = c.oid
        WHERE c.relkind IN ('r', 't')
        ORDER BY c.oid;
    """
