"""
Query library for the index size, access and usage checks.
"""

INDEX_SIZE_COLUMNS = ('schema_name', 'index_name', 'total_size')

INDEX_STATS_COLUMNS = ('schema_name', 'index_name', 'idx_tup_read', 'idx_tup_fetch')

INDEX_IO_STATS_COLUMNS = ('schema_name', 'index_name', 'idx_blks_read', 'idx_blks_hit')

INDEX_USAGE_COLUMNS = ('schema_name', 'index_name', 'idx_scan', 'table_writes')


def get_index_size_query(connector):
    """
    Returns a query for the size of every index.
    """
    return """
        SELECT
            n.nspname AS schema_name,
            c.relname AS index_name,
            pg_total_relation_size(c.oid) AS total_size
        FROM pg_class AS c
        JOIN pg_namespace AS n ON n.oid = c.relnamespace
        WHERE c.relkind = 'i'
        ORDER BY c.oid;
    """


def get_index_stats_query(connector):
    """
    Returns index entries read and live table rows fetched per index.
    """
    return """
        SELECT
            schemaname AS schema_name,
            indexrelname AS index_name,
            idx_tup_read,
            idx_tup_fetch
        FROM pg_stat_all_indexes
        ORDER BY indexrelid;
    """


def get_index_io_stats_query(connector):
    """
    Returns index block reads and buffer cache hits per index.
    """
    return """
        SELECT
            schemaname AS schema_name,
            indexrelname AS index_name,
            idx_blks_read,
            idx_blks_hit
        FROM pg_statio_all_indexes
        ORDER BY indexrelid;
    """


def get_index_usage_query(connector):
    """
    Returns scans of every non-unique user index together with the number
    of row writes that had to maintain it. HOT updates do not touch indexes
    and are not counted as writes.
    """
    return """
        SELECT
            si.schemaname AS schema_name,
            si.indexrelname AS index_name,
            si.idx_scan,
            coalesce(st.n_tup_ins, 0) + coalesce(st.n_tup_upd, 0) -
                coalesce(st.n_tup_hot_upd, 0) + coalesce(st.n_tup_del, 0) AS table_writes
        FROM pg_stat_user_indexes AS si
        JOIN pg_stat_user_tables AS st ON st.relid = si.relid
        JOIN pg_index AS i ON i.indexrelid = si.indexrelid
        WHERE NOT i.indisunique
        ORDER BY si.indexrelid;
    """
