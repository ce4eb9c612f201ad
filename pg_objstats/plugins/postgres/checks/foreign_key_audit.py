"""
Foreign key index coverage.

A foreign key whose referencing columns are not indexed turns every update
or delete of a parent row into a scan of the child table. Only keys on
tables that are large or busy enough are reported.
"""

import logging

from pg_objstats.plugins.postgres.utils.index_structure import find_uncovered_foreign_keys
from pg_objstats.plugins.postgres.utils.qrylib.index_structure import (
    FK_INDEX_COLUMNS,
    FOREIGN_KEY_COLUMNS,
    get_fk_index_query,
    get_foreign_key_query
)
from pg_objstats.plugins.postgres.utils.row_decoding import decode_rows
from pg_objstats.utils.event_reporter import foreign_key_records

logger = logging.getLogger(__name__)


def run_foreign_key_audit(connector, config, database):
    fk_rows = decode_rows(connector.execute_query(get_foreign_key_query(connector)), FOREIGN_KEY_COLUMNS, 'foreign keys')
    if not fk_rows:
        logger.debug(f"No foreign keys in {database}")
        return foreign_key_records([], database)

    index_rows = decode_rows(connector.execute_query(get_fk_index_query(connector)), FK_INDEX_COLUMNS, 'foreign key indexes')
    findings = find_uncovered_foreign_keys(fk_rows, index_rows, config)
    logger.debug(f"{len(findings)} of {len(fk_rows)} foreign keys in {database} lack a usable index")
    return foreign_key_records(findings, database)
