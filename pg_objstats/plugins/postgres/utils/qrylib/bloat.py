"""
Query library for the table and index bloat checks.

The queries only gather structural metadata and column statistics. The
estimation itself happens in ``plugins.postgres.utils.bloat``.
"""

COLUMN_STATS_COLUMNS = ('schema_name', 'table_name', 'column_name', 'null_frac', 'avg_width')

TABLE_BLOAT_COLUMNS = (
    'schema_name', 'table_name', 'reltuples', 'n_live_tup', 'n_dead_tup',
    'relation_size', 'reloptions', 'block_size',
)

INDEX_BLOAT_COLUMNS = (
    'schema_name', 'table_name', 'index_name', 'reltuples', 'relpages', 'reloptions',
    'attpos', 'index_column', 'table_column', 'is_name_type', 'block_size',
)


def get_column_stats_query(connector):
    """
    Returns planner column statistics: null fraction and average width of
    every analyzed column. Expression indexes carry their own entries under
    the index name.
    """
    return """
        SELECT
            schemaname AS schema_name,
            tablename AS table_name,
            attname AS column_name,
            null_frac,
            avg_width
        FROM pg_stats
        WHERE NOT inherited
        ORDER BY schemaname, tablename, attname;
    """


def get_table_bloat_query(connector):
    """
    Returns the inputs of the heap bloat model for tables and toast tables.
    """
    return """
        SELECT
            n.nspname AS schema_name,
            c.relname AS table_name,
            c.reltuples,
            s.n_live_tup,
            s.n_dead_tup,
            pg_relation_size(c.oid) AS relation_size,
            c.reloptions,
            current_setting('block_size')::integer AS block_size
        FROM pg_class AS c
        JOIN pg_namespace AS n ON n.oid = c.relnamespace
        LEFT JOIN pg_stat_all_tables AS s ON s.relid = c.oid
        WHERE c.relkind IN ('r', 't')
        ORDER BY c.oid;
    """


def get_index_bloat_query(connector):
    """
    Returns one row per column of every valid btree index with allocated
    pages. ``table_column`` is NULL for expression columns, whose statistics
    live under the index's own name.
    """
    return """
        SELECT
            n.nspname AS schema_name,
            tbl.relname AS table_name,
            idx.relname AS index_name,
            idx.reltuples,
            idx.relpages,
            idx.reloptions,
            a.attnum AS attpos,
            a.attname AS index_column,
            ta.attname AS table_column,
            a.atttypid = 'pg_catalog.name'::regtype AS is_name_type,
            current_setting('block_size')::integer AS block_size
        FROM pg_index AS i
        JOIN pg_class AS idx ON idx.oid = i.indexrelid
        JOIN pg_class AS tbl ON tbl.oid = i.indrelid
        JOIN pg_namespace AS n ON n.oid = idx.relnamespace
        JOIN pg_am AS am ON am.oid = idx.relam
        JOIN pg_attribute AS a ON a.attrelid = i.indexrelid AND a.attnum > 0
        LEFT JOIN pg_attribute AS ta
            ON ta.attrelid = i.indrelid AND ta.attnum = i.indkey[a.attnum - 1]
        WHERE i.indisvalid
          AND tbl.relkind = 'r'
          AND idx.relpages > 0
          AND am.amname = 'btree'
        ORDER BY i.indexrelid, a.attnum;
    """
