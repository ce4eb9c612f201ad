"""
Turns rankings and findings into output records and writes them out.

Every record becomes one JSON line on the ``pg_objstats.events`` logger, so
the log pipeline that collects the process output receives one event per
finding. A category that legitimately finds nothing still produces a
single "none found" record, which keeps an empty result distinguishable
from a check that never ran.
"""

import logging
from typing import Iterable, List

from pg_objstats.models import (
    DatabaseRecord,
    FailureRecord,
    ForeignKeyRecord,
    IndexRecord,
    NoneFoundRecord,
    RedundantIndexRecord,
    TableRecord,
)
from pg_objstats.plugins.common.ranking import MODE_AVERAGE
from pg_objstats.utils.json_utils import record_to_json

EVENT_LOGGER_NAME = 'pg_objstats.events'

OBJECT_DATABASE = 'database'
OBJECT_TABLE = 'table'
OBJECT_INDEX = 'index'

_LEVELS = {'info': logging.INFO, 'error': logging.ERROR}


def format_value(value, mode):
    """Ratios are reported with two decimals, counts as integers."""
    if mode == MODE_AVERAGE:
        return round(float(value), 2)
    if isinstance(value, float) and not value.is_integer():
        return value
    return int(value)


def none_found_message(message):
    """'Top tables by X' becomes 'No tables by X'."""
    if message.startswith('Top '):
        return 'No ' + message[len('Top '):]
    return 'No ' + message[0].lower() + message[1:]


def ranking_records(result, db, object_kind) -> List:
    """Records for one ranking, or a single "none found" record.

    Args:
        result (TopNResult): The ranking to report.
        db (str): Database the ranking belongs to (for database rankings,
            ignored: the entry key is the database).
        object_kind (str): ``OBJECT_DATABASE``, ``OBJECT_TABLE`` or
            ``OBJECT_INDEX``.
    """
    if not len(result):
        return [NoneFoundRecord(message=none_found_message(result.message), db=db)]

    records = []
    for entry in result:
        value = format_value(entry.value, result.mode)
        if object_kind == OBJECT_DATABASE:
            records.append(DatabaseRecord(message=result.message, db=entry.key[0], value=value))
        elif object_kind == OBJECT_TABLE:
            records.append(TableRecord(
                message=result.message, db=db, schema=entry.key[0], table=entry.key[1], value=value))
        elif object_kind == OBJECT_INDEX:
            records.append(IndexRecord(
                message=result.message, db=db, schema=entry.key[0], index=entry.key[1], value=value))
        else:
            raise ValueError(f"Unknown object kind: {object_kind}")
    return records


def redundant_index_records(findings, db, message='Redundant indexes') -> List:
    if not findings:
        return [NoneFoundRecord(message=none_found_message(message), db=db)]
    return [
        RedundantIndexRecord(
            message=message,
            db=db,
            schema=f.schema,
            table=f.table,
            index=f.index,
            columns=list(f.columns),
            redundant_with=list(f.redundant_with)
        )
        for f in findings
    ]


def foreign_key_records(findings, db, message='Foreign keys without indexes') -> List:
    if not findings:
        return [NoneFoundRecord(message=none_found_message(message), db=db)]
    return [
        ForeignKeyRecord(
            message=message,
            db=db,
            schema=f.schema,
            table=f.table,
            fk=f.constraint,
            issue=f.severity,
            parent_table=f.parent_table,
            columns=list(f.columns)
        )
        for f in findings
    ]


def failure_record(failure) -> FailureRecord:
    """Failure record for a ``CategoryFailure``."""
    return FailureRecord(
        message=failure.message,
        db=failure.database,
        category=failure.category,
        detail=failure.detail
    )


class EventReporter:
    """Writes records, one JSON object per log line."""

    def __init__(self, event_logger=None):
        self.logger = event_logger or logging.getLogger(EVENT_LOGGER_NAME)
        self.emitted = 0

    def emit(self, record):
        self.logger.log(_LEVELS[record.level], record_to_json(record))
        self.emitted += 1

    def emit_all(self, records: Iterable):
        for record in records:
            self.emit(record)
