"""
Data model for one collection run.

Samples, rankings and findings are computed fresh for every run and thrown
away once reported. Output records are frozen dataclasses; the declaration
order of their fields is the order in which they are serialized.
"""

from dataclasses import dataclass, field, fields
from typing import Any, List, Optional, Tuple

OVERFLOW_LABEL = "all the other"

SEVERITY_NO_INDEX = "no index"
SEVERITY_QUESTIONABLE_INDEX = "questionable index"


@dataclass(frozen=True)
class DatabaseTarget:
    """A database that accepts connections, with its size in bytes."""
    name: str
    size: int


@dataclass(frozen=True)
class MetricSample:
    """One metric value for one object.

    ``observations`` is the size of the sample behind a ratio metric (block
    reads plus hits, row operations, ...). It is ``None`` for count metrics,
    which are never filtered.
    """
    key: Tuple[str, ...]
    value: Any
    observations: Optional[int] = None


@dataclass(frozen=True)
class RankedEntry:
    rank: int
    key: Tuple[str, ...]
    value: Any
    weight: int = 1
    is_overflow: bool = False


@dataclass(frozen=True)
class TopNResult:
    """Ranked entries of one category: individual entries, then the overflow."""
    message: str
    mode: str
    entries: Tuple[RankedEntry, ...] = ()

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def overflow(self) -> Optional[RankedEntry]:
        if self.entries and self.entries[-1].is_overflow:
            return self.entries[-1]
        return None


@dataclass(frozen=True)
class BloatEstimate:
    """Estimated wasted space of a table or index, in percent."""
    key: Tuple[str, ...]
    value: float

    def __post_init__(self):
        if not 0 <= self.value <= 100:
            raise ValueError(f"Bloat estimate out of range for {self.key}: {self.value}")

    @classmethod
    def from_raw(cls, key, raw_value):
        """Clamps a raw heuristic result into [0, 100]."""
        return cls(key=tuple(key), value=min(100.0, max(0.0, float(raw_value))))


@dataclass(frozen=True)
class RedundantIndexFinding:
    schema: str
    table: str
    index: str
    columns: Tuple[str, ...]
    redundant_with: Tuple[str, ...]


@dataclass(frozen=True)
class UncoveredForeignKeyFinding:
    schema: str
    table: str
    constraint: str
    severity: str
    parent_table: str
    columns: Tuple[str, ...]
    table_mb: int = 0


# --- Output records ---

@dataclass(frozen=True)
class Record:
    """Base class of every emitted record."""

    level = "info"

    def ordered_items(self) -> List[Tuple[str, Any]]:
        return [(f.name, getattr(self, f.name)) for f in fields(self)]


@dataclass(frozen=True)
class DatabaseRecord(Record):
    message: str
    db: str
    value: Any


@dataclass(frozen=True)
class TableRecord(Record):
    message: str
    db: str
    schema: str
    table: str
    value: Any


@dataclass(frozen=True)
class IndexRecord(Record):
    message: str
    db: str
    schema: str
    index: str
    value: Any


@dataclass(frozen=True)
class RedundantIndexRecord(Record):
    message: str
    db: str
    schema: str
    table: str
    index: str
    columns: List[str] = field(default_factory=list)
    redundant_with: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ForeignKeyRecord(Record):
    message: str
    db: str
    schema: str
    table: str
    fk: str
    issue: str
    parent_table: str
    columns: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class NoneFoundRecord(Record):
    message: str
    db: Optional[str] = None


@dataclass(frozen=True)
class FailureRecord(Record):
    level = "error"

    message: str
    db: Optional[str] = None
    category: Optional[str] = None
    detail: Optional[str] = None
