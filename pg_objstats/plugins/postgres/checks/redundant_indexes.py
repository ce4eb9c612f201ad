from pg_objstats.plugins.postgres.utils.index_structure import find_redundant_indexes
from pg_objstats.plugins.postgres.utils.qrylib.index_structure import (
    REDUNDANT_INDEX_COLUMNS,
    get_redundant_index_query
)
from pg_objstats.plugins.postgres.utils.row_decoding import decode_rows
from pg_objstats.utils.event_reporter import redundant_index_records


def run_redundant_indexes(connector, config, database):
    """Reports indexes made redundant by a sibling on the same leading column."""
    rows = decode_rows(connector.execute_query(get_redundant_index_query(connector)), REDUNDANT_INDEX_COLUMNS, 'redundant indexes')
    return redundant_index_records(find_redundant_indexes(rows), database)
