"""
Typed decoding of query results.

Checks never look at raw tuples: they go through ``decode_rows`` first, which
checks the row shape against the columns the query declares and turns every
row into a dictionary keyed by column name.
"""

from typing import Dict, List, Sequence

from pg_objstats.errors import InvariantViolation
from pg_objstats.models import MetricSample


def decode_rows(rows, columns: Sequence[str], category: str) -> List[Dict]:
    """Maps raw rows to dictionaries keyed by the declared column names.

    Args:
        rows: Tuples returned by the query executor.
        columns: Column names the query is declared to return, in order.
        category: Category being decoded, for error context.

    Raises:
        InvariantViolation: If any row does not have exactly one value per
            declared column.
    """
    decoded = []
    for position, row in enumerate(rows, start=1):
        if len(row) != len(columns):
            raise InvariantViolation(
                f"Wrong number of columns in the {category} data",
                f"row {position} has {len(row)} values, expected {len(columns)}")
        decoded.append(dict(zip(columns, row)))
    return decoded


def as_count(value) -> int:
    """Reads a counter column. NULL counters mean nothing was counted."""
    if value is None:
        return 0
    return int(value)


def as_number(value):
    """Reads a numeric column as float, leaving NULL as None."""
    if value is None:
        return None
    return float(value)


def ratio(numerator, denominator):
    """Ratio of two counters, or None when the denominator is zero."""
    numerator = as_count(numerator)
    denominator = as_count(denominator)
    if denominator == 0:
        return None
    return numerator / denominator


def build_samples(rows, key_columns: Sequence[str], value_fn, observations_fn=None) -> List[MetricSample]:
    """Builds metric samples from decoded rows.

    Rows for which ``value_fn`` returns None (a ratio over nothing) are left
    out rather than reported as zero.
    """
    samples = []
    for row in rows:
        value = value_fn(row)
        if value is None:
            continue
        samples.append(MetricSample(
            key=tuple(row[column] for column in key_columns),
            value=value,
            observations=observations_fn(row) if observations_fn else None
        ))
    return samples
