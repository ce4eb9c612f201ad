"""
Query library for database enumeration.
"""

DATABASE_COLUMNS = ('datname', 'size')


def get_database_list_query(connector):
    """
    Returns a query listing databases that accept connections, largest first.
    """
    return """
        SELECT
            datname,
            pg_database_size(oid) AS size
        FROM pg_database
        WHERE datallowconn
        ORDER BY pg_database_size(oid) DESC, oid;
    """
