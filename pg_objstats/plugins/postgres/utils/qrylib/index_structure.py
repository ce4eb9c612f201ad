"""
Query library for the redundant index and foreign key coverage checks.
"""

REDUNDANT_INDEX_COLUMNS = (
    'schema_name', 'table_name', 'index_name', 'table_oid', 'index_key', 'key_count', 'column_names',
)

FOREIGN_KEY_COLUMNS = (
    'constraint_oid', 'schema_name', 'table_name', 'constraint_name', 'parent_name', 'table_oid',
    'key_attnums', 'column_names', 'table_size', 'parent_size', 'table_writes', 'parent_writes',
)

FK_INDEX_COLUMNS = ('table_oid', 'index_name', 'index_key', 'key_count', 'has_predicate', 'access_method')


def _key_count_column(connector):
    # INCLUDE columns are stored in indkey from PostgreSQL 11 on
    if connector.version_info.get('is_pg11_or_newer'):
        return 'i.indnkeyatts'
    return 'i.indnatts'


def get_redundant_index_query(connector):
    """
    Returns every user index with its key attribute numbers and the names of
    its key columns.
    """
    key_count = _key_count_column(connector)
    return f"""
        SELECT
            ui.schemaname AS schema_name,
            ui.relname AS table_name,
            ui.indexrelname AS index_name,
            i.indrelid AS table_oid,
            pg_catalog.string_to_array(pg_catalog.textin(pg_catalog.int2vectorout(i.indkey)), ' ')::int[] AS index_key,
            {key_count} AS key_count,
            ARRAY(
                SELECT a.attname::text
                FROM pg_attribute AS a
                WHERE a.attrelid = i.indexrelid
                  AND a.attnum BETWEEN 1 AND {key_count}
                ORDER BY a.attnum
            ) AS column_names
        FROM pg_stat_user_indexes AS ui
        JOIN pg_index AS i ON i.indexrelid = ui.indexrelid
        ORDER BY i.indrelid, i.indexrelid;
    """


def get_foreign_key_query(connector):
    """
    Returns foreign key constraints between user tables with the size and
    write activity of both the referencing and the referenced table.
    """
    return """
        SELECT
            c.oid AS constraint_oid,
            n.nspname AS schema_name,
            t.relname AS table_name,
            c.conname AS constraint_name,
            p.relname AS parent_name,
            c.conrelid AS table_oid,
            c.conkey::int[] AS key_attnums,
            ARRAY(
                SELECT a.attname::text
                FROM pg_attribute AS a
                WHERE a.attrelid = c.conrelid AND a.attnum = ANY(c.conkey)
                ORDER BY a.attnum
            ) AS column_names,
            pg_relation_size(c.conrelid) AS table_size,
            pg_relation_size(c.confrelid) AS parent_size,
            ts.n_tup_ins + ts.n_tup_upd + ts.n_tup_del + ts.n_tup_hot_upd AS table_writes,
            ps.n_tup_ins + ps.n_tup_upd + ps.n_tup_del + ps.n_tup_hot_upd AS parent_writes
        FROM pg_constraint AS c
        JOIN pg_class AS t ON t.oid = c.conrelid
        JOIN pg_namespace AS n ON n.oid = t.relnamespace
        JOIN pg_class AS p ON p.oid = c.confrelid
        JOIN pg_stat_user_tables AS ts ON ts.relid = c.conrelid
        JOIN pg_stat_user_tables AS ps ON ps.relid = c.confrelid
        WHERE c.contype = 'f'
        ORDER BY c.oid;
    """


def get_fk_index_query(connector):
    """
    Returns the valid indexes of every table that holds a foreign key.
    """
    key_count = _key_count_column(connector)
    return f"""
        SELECT
            i.indrelid AS table_oid,
            ic.relname AS index_name,
            pg_catalog.string_to_array(pg_catalog.textin(pg_catalog.int2vectorout(i.indkey)), ' ')::int[] AS index_key,
            {key_count} AS key_count,
            i.indpred IS NOT NULL AS has_predicate,
            am.amname AS access_method
        FROM pg_index AS i
        JOIN pg_class AS ic ON ic.oid = i.indexrelid
        JOIN pg_am AS am ON am.oid = ic.relam
        WHERE i.indisvalid
          AND i.indrelid IN (SELECT conrelid FROM pg_constraint WHERE contype = 'f')
        ORDER BY i.indrelid, i.indexrelid;
    """
