"""
Structural index analysis: redundant indexes and foreign key coverage.

Both analyses work on catalog metadata only (index key attribute numbers,
constraint keys, relation sizes and write counters), never on row data.
"""

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List

from pg_objstats.models import (
    SEVERITY_NO_INDEX,
    SEVERITY_QUESTIONABLE_INDEX,
    RedundantIndexFinding,
    UncoveredForeignKeyFinding,
)

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 ** 2


def _key_attnums(row) -> List[int]:
    """Key attribute numbers of an index, without INCLUDE columns."""
    key = [int(attnum) for attnum in (row['index_key'] or [])]
    key_count = row.get('key_count')
    if key_count is not None:
        key = key[:int(key_count)]
    return key


def is_redundant_pair(first: List[int], second: List[int]) -> bool:
    """True when two index keys on one table make one of them redundant.

    The keys must start with the same column, one must contain the other
    as a set of columns, and they must not be the same ordered key.
    """
    if not first or not second:
        return False
    if first[0] != second[0] or first == second:
        return False
    first_set, second_set = set(first), set(second)
    return first_set >= second_set or first_set <= second_set


def find_redundant_indexes(index_rows: Iterable[Dict]) -> List[RedundantIndexFinding]:
    """Finds indexes that share a leading column with a containing sibling.

    Only indexes whose leading key is a plain column take part. Findings
    are ordered by schema, table, column list and index name.

    Args:
        index_rows: Decoded rows of the redundant index query.

    Returns:
        list[RedundantIndexFinding]: One finding per redundant index.
    """
    by_table = OrderedDict()
    for row in index_rows:
        key = _key_attnums(row)
        if not key or key[0] <= 0:
            continue
        by_table.setdefault(row['table_oid'], []).append((row, key))

    findings = []
    for indexes in by_table.values():
        for row, key in indexes:
            siblings = [
                other['index_name'] for other, other_key in indexes
                if other is not row and is_redundant_pair(key, other_key)
            ]
            if siblings:
                findings.append(RedundantIndexFinding(
                    schema=row['schema_name'],
                    table=row['table_name'],
                    index=row['index_name'],
                    columns=tuple(row['column_names'] or ()),
                    redundant_with=tuple(sorted(siblings))
                ))

    findings.sort(key=lambda f: (f.schema, f.table, f.columns, f.index))
    logger.debug(f"Found {len(findings)} redundant indexes")
    return findings


def covers_foreign_key(key_attnums: List[int], index_key: List[int]) -> bool:
    """True when the first len(key) index columns contain every key column."""
    if not key_attnums:
        return False
    leading = index_key[:len(key_attnums)]
    return set(leading) >= set(key_attnums)


def is_ideal_fk_index(key_attnums: List[int], index_row: Dict) -> bool:
    """A covering index is ideal when it is a plain btree without a
    predicate and with at most one key column beyond the foreign key."""
    return (
        index_row['access_method'] == 'btree'
        and not index_row['has_predicate']
        and len(_key_attnums(index_row)) - 1 <= len(key_attnums)
    )


def classify_foreign_key(key_attnums: List[int], table_indexes: Iterable[Dict]):
    """Severity of a foreign key's index coverage, or None when covered well."""
    covering = [
        index for index in table_indexes
        if covers_foreign_key(key_attnums, _key_attnums(index))
    ]
    if not covering:
        return SEVERITY_NO_INDEX
    if any(is_ideal_fk_index(key_attnums, index) for index in covering):
        return None
    return SEVERITY_QUESTIONABLE_INDEX


def _size_mb(size) -> int:
    """Relation size in whole megabytes, rounded."""
    return round((size or 0) / BYTES_PER_MB)


def is_consequential(fk_row: Dict, config) -> bool:
    """Whether the tables behind a foreign key matter enough to report.

    The referencing table must pass its size floor, and then either table
    must be busy or the parent large.
    """
    if _size_mb(fk_row['table_size']) <= config.fk_min_table_mb:
        return False
    return (
        (fk_row['table_writes'] or 0) > config.fk_min_writes
        or (fk_row['parent_writes'] or 0) > config.fk_min_parent_writes
        or _size_mb(fk_row['parent_size']) > config.fk_min_parent_mb
    )


def find_uncovered_foreign_keys(fk_rows: Iterable[Dict], index_rows: Iterable[Dict], config) -> List[UncoveredForeignKeyFinding]:
    """Finds foreign keys without a usable index on the referencing side.

    Args:
        fk_rows: Decoded rows of the foreign key query.
        index_rows: Decoded rows of the foreign key index query.
        config (StatsConfig): Size and activity floors for reporting.

    Returns:
        list[UncoveredForeignKeyFinding]: "no index" findings first, then
        "questionable index", each by referencing table size in whole
        megabytes descending, then table and constraint name.
    """
    indexes_by_table = {}
    for index in index_rows:
        indexes_by_table.setdefault(index['table_oid'], []).append(index)

    findings = []
    for fk in fk_rows:
        key_attnums = [int(attnum) for attnum in (fk['key_attnums'] or [])]
        severity = classify_foreign_key(key_attnums, indexes_by_table.get(fk['table_oid'], []))
        if severity is None or not is_consequential(fk, config):
            continue
        findings.append(UncoveredForeignKeyFinding(
            schema=fk['schema_name'],
            table=fk['table_name'],
            constraint=fk['constraint_name'],
            severity=severity,
            parent_table=fk['parent_name'],
            columns=tuple(fk['column_names'] or ()),
            table_mb=_size_mb(fk['table_size'])
        ))

    severity_order = {SEVERITY_NO_INDEX: 1, SEVERITY_QUESTIONABLE_INDEX: 2}
    findings.sort(key=lambda f: (severity_order[f.severity], -f.table_mb, f.table, f.constraint))
    return findings
