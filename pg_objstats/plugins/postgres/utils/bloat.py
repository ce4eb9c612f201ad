"""
Approximate bloat estimation for heap tables and btree indexes.

Both models predict how many pages an object would need if it were freshly
written, using the planner's column statistics (average width and null
fraction), and compare that prediction with the pages actually allocated.
The result is an approximation: exact numbers require scanning the relation.

Objects or columns without statistics are skipped rather than guessed.
"""

import logging
import math
import re
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pg_objstats.models import BloatEstimate

logger = logging.getLogger(__name__)

PAGE_HEADER_SIZE = 24
HEAP_TUPLE_HEADER_SIZE = 23
BTREE_OPAQUE_SIZE = 16
ITEM_POINTER_SIZE = 4
INDEX_TUPLE_HEADER_SIZE = 8
# IndexAttributeBitMapData for INDEX_MAX_KEYS (32) columns
INDEX_NULL_BITMAP_SIZE = (32 + 8 - 1) // 8

DEFAULT_TABLE_FILLFACTOR = 100
DEFAULT_BTREE_FILLFACTOR = 90

_WIDE_PLATFORM_RE = re.compile(r'mingw32|64-bit|x86_64|ppc64|ia64|amd64|aarch64|arm64')
_FILLFACTOR_RE = re.compile(r'^fillfactor=(\d+)$')


def maxalign_for(version_banner: Optional[str]) -> int:
    """MAXALIGN of the server: 8 on 64-bit builds, 4 otherwise."""
    if version_banner and _WIDE_PLATFORM_RE.search(version_banner):
        return 8
    return 4


def parse_fillfactor(reloptions: Optional[Sequence[str]], default: int) -> int:
    """Extracts ``fillfactor`` from a relation's storage options."""
    for option in reloptions or ():
        match = _FILLFACTOR_RE.match(option.strip())
        if match:
            return int(match.group(1))
    return default


def align(width, maxalign: int):
    """Rounds a width up to the next multiple of ``maxalign``."""
    return maxalign * math.ceil(width / maxalign)


class ColumnStatistics:
    """Planner statistics indexed by relation and by column.

    Expression index columns have their statistics stored under the index
    name, so the same lookup serves both tables and indexes.
    """

    def __init__(self, stat_rows: Iterable[Dict]):
        self._by_column: Dict[Tuple[str, str, str], Tuple[float, float]] = {}
        self._by_relation: Dict[Tuple[str, str], List[Tuple[float, float]]] = OrderedDict()
        for row in stat_rows:
            if row['null_frac'] is None or row['avg_width'] is None:
                continue
            entry = (float(row['null_frac']), float(row['avg_width']))
            self._by_column[(row['schema_name'], row['table_name'], row['column_name'])] = entry
            self._by_relation.setdefault((row['schema_name'], row['table_name']), []).append(entry)

    def column(self, schema, relation, column):
        return self._by_column.get((schema, relation, column))

    def relation(self, schema, relation):
        return self._by_relation.get((schema, relation), [])


def heap_bloat_percent(row_count, column_stats, relation_size, block_size, fillfactor, maxalign):
    """Raw heap bloat estimate in percent, before clamping.

    Args:
        row_count: Estimated number of row versions (live and dead).
        column_stats: ``(null_frac, avg_width)`` per analyzed column.
        relation_size: Bytes allocated to the heap.
        block_size: Server page size in bytes.
        fillfactor: Table fill factor, in percent.
        maxalign: Platform alignment boundary.
    """
    if relation_size <= 0:
        return 0.0

    data_width = sum((1 - null_frac) * width for null_frac, width in column_stats)
    max_null_frac = max(null_frac for null_frac, _ in column_stats)

    header_with_nulls = align(HEAP_TUPLE_HEADER_SIZE + align(len(column_stats), maxalign), maxalign)
    header_without_nulls = align(HEAP_TUPLE_HEADER_SIZE, maxalign)
    row_width = (
        max_null_frac * align(header_with_nulls + data_width, maxalign) +
        (1 - max_null_frac) * align(header_without_nulls + data_width, maxalign)
    )

    pure_pages = math.ceil(max(row_count, 0) * row_width / (block_size - PAGE_HEADER_SIZE))
    expected_pages = pure_pages * 100 / fillfactor
    actual_pages = relation_size / block_size
    return 100 * (1 - expected_pages / actual_pages)


def btree_bloat_percent(reltuples, relpages, column_stats, block_size, fillfactor, maxalign):
    """Raw btree index bloat estimate in percent, before clamping."""
    null_data_width = sum((1 - null_frac) * width for null_frac, width in column_stats)
    if any(null_frac > 0 for null_frac, _ in column_stats):
        tuple_header = INDEX_TUPLE_HEADER_SIZE + INDEX_NULL_BITMAP_SIZE
    else:
        tuple_header = INDEX_TUPLE_HEADER_SIZE

    data_padding = 0
    if null_data_width:
        remainder = int(null_data_width + 0.5) % maxalign
        data_padding = maxalign - remainder if remainder else 0
    tuple_width = align(tuple_header, maxalign) + null_data_width + data_padding

    usable = (block_size - BTREE_OPAQUE_SIZE - PAGE_HEADER_SIZE) * fillfactor
    tuples_per_page = max(1, math.floor(usable / (100 * (ITEM_POINTER_SIZE + tuple_width))))
    expected_pages = 1 + math.ceil(max(reltuples or 0, 0) / tuples_per_page)
    return 100 * (relpages - expected_pages) / relpages


def estimate_table_bloat(table_rows: Iterable[Dict], stats: ColumnStatistics, maxalign: int) -> List[BloatEstimate]:
    """Heap bloat estimates for every table that has column statistics.

    Row counts come from the live and dead tuple counters, falling back to
    ``reltuples`` for relations without access statistics.
    """
    estimates = []
    for row in table_rows:
        column_stats = stats.relation(row['schema_name'], row['table_name'])
        if not column_stats:
            continue

        if row['n_live_tup'] is not None or row['n_dead_tup'] is not None:
            row_count = (row['n_live_tup'] or 0) + (row['n_dead_tup'] or 0)
        else:
            row_count = float(row['reltuples'] or 0)

        raw = heap_bloat_percent(
            row_count=row_count,
            column_stats=column_stats,
            relation_size=int(row['relation_size'] or 0),
            block_size=int(row['block_size']),
            fillfactor=parse_fillfactor(row['reloptions'], DEFAULT_TABLE_FILLFACTOR),
            maxalign=maxalign
        )
        estimates.append(BloatEstimate.from_raw((row['schema_name'], row['table_name']), raw))
    return estimates


def estimate_index_bloat(index_rows: Iterable[Dict], stats: ColumnStatistics, maxalign: int) -> List[BloatEstimate]:
    """Btree bloat estimates from per-column index rows.

    Rows arrive grouped by index. Plain columns take the statistics of the
    table column, expression columns those of the index itself. Indexes on
    ``name`` columns are skipped: their statistics do not describe the
    stored width.
    """
    indexes = OrderedDict()
    for row in index_rows:
        key = (row['schema_name'], row['index_name'])
        index = indexes.setdefault(key, {'row': row, 'stats': [], 'is_na': False})
        if row['is_name_type']:
            index['is_na'] = True
        if row['table_column'] is not None:
            column = stats.column(row['schema_name'], row['table_name'], row['table_column'])
        else:
            column = stats.column(row['schema_name'], row['index_name'], row['index_column'])
        if column is not None:
            index['stats'].append(column)

    estimates = []
    for key, index in indexes.items():
        row = index['row']
        if index['is_na'] or not index['stats'] or not row['relpages']:
            logger.debug(f"Skipping bloat estimate for index {key[0]}.{key[1]}")
            continue
        raw = btree_bloat_percent(
            reltuples=float(row['reltuples'] or 0),
            relpages=int(row['relpages']),
            column_stats=index['stats'],
            block_size=int(row['block_size']),
            fillfactor=parse_fillfactor(row['reloptions'], DEFAULT_BTREE_FILLFACTOR),
            maxalign=maxalign
        )
        estimates.append(BloatEstimate.from_raw(key, raw))
    return estimates
