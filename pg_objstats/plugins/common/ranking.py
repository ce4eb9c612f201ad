"""
Top-N ranking with an overflow bucket.

Every "top X" category goes through ``rank_samples``: samples are grouped by
key, ordered by value, the first N groups are kept as individual entries and
everything below them is folded into one "all the other" entry. Folding never
loses mass: for count metrics the entry values add up to the total of the
input, for ratio metrics the weight-averaged entry values equal the average of
the input.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pg_objstats.errors import InvariantViolation
from pg_objstats.models import OVERFLOW_LABEL, MetricSample, RankedEntry, TopNResult

logger = logging.getLogger(__name__)

DESCENDING = 'desc'
ASCENDING = 'asc'

MODE_SUM = 'sum'
MODE_AVERAGE = 'average'


def filter_by_observations(samples: Iterable[MetricSample], floor: int) -> List[MetricSample]:
    """Drops samples backed by too few observations.

    A sample survives only when its observation count is strictly greater
    than ``floor``. Samples without an observation count are dropped too.
    """
    return [s for s in samples if s.observations is not None and s.observations > floor]


def combine(values: Sequence, weights: Sequence[int], mode: str):
    """Combines values according to the aggregation mode.

    Sums for ``MODE_SUM``; weighted mean for ``MODE_AVERAGE``.
    """
    if mode == MODE_SUM:
        return sum(values)
    total_weight = sum(weights)
    if not total_weight:
        return 0
    return sum(v * w for v, w in zip(values, weights)) / total_weight


def aggregate_samples(samples: Sequence[MetricSample], mode: str):
    """Aggregate of an unranked sample list, comparable with ``aggregate_result``."""
    return combine([s.value for s in samples], [1] * len(samples), mode)


def aggregate_result(result: TopNResult):
    """Aggregate of all entries of a ranking, overflow included."""
    return combine([e.value for e in result], [e.weight for e in result], result.mode)


def _group(samples: Sequence[MetricSample], mode: str) -> List[Tuple[Tuple[str, ...], object, int]]:
    groups: Dict[Tuple[str, ...], List] = {}
    for sample in samples:
        groups.setdefault(sample.key, []).append(sample.value)
    return [
        (key, combine(values, [1] * len(values), mode), len(values))
        for key, values in groups.items()
    ]


def rank_samples(
    samples: Iterable[MetricSample],
    message: str,
    threshold: int,
    order: str = DESCENDING,
    mode: str = MODE_SUM,
    arity: int = 2,
    min_observations: Optional[int] = None
) -> TopNResult:
    """Ranks samples and folds everything past the threshold into one entry.

    Args:
        samples: Unranked samples, in catalog order. Input order breaks ties.
        message: Human-readable category description carried by the result.
        threshold: Number of individual entries to keep.
        order: ``DESCENDING`` for "top" metrics, ``ASCENDING`` for "least".
        mode: ``MODE_SUM`` for counts, ``MODE_AVERAGE`` for ratios.
        arity: Number of labels in every sample key.
        min_observations: When set, samples at or below this observation
            count are removed before ranking.

    Returns:
        TopNResult: At most ``threshold`` individual entries followed by at
        most one overflow entry.

    Raises:
        InvariantViolation: If a sample key does not have ``arity`` labels.
    """
    if order not in (DESCENDING, ASCENDING):
        raise ValueError(f"Unknown ranking order: {order}")
    if mode not in (MODE_SUM, MODE_AVERAGE):
        raise ValueError(f"Unknown aggregation mode: {mode}")
    if threshold < 1:
        raise ValueError(f"Ranking threshold must be positive, got {threshold}")

    samples = list(samples)
    for sample in samples:
        if len(sample.key) != arity:
            raise InvariantViolation(
                f"Unexpected key width in '{message}'",
                f"expected {arity} labels, got {len(sample.key)}: {sample.key!r}")

    if min_observations is not None:
        eligible = filter_by_observations(samples, min_observations)
        logger.debug(f"{message}: {len(eligible)} of {len(samples)} objects above {min_observations} observations")
    else:
        eligible = samples

    groups = _group(eligible, mode)
    sign = -1 if order == DESCENDING else 1
    ranked = sorted(enumerate(groups), key=lambda item: (sign * item[1][1], item[0]))

    entries = [
        RankedEntry(rank=position, key=key, value=value, weight=weight)
        for position, (_, (key, value, weight)) in enumerate(ranked[:threshold], start=1)
    ]

    rest = [group for _, group in ranked[threshold:]]
    if rest:
        entries.append(RankedEntry(
            rank=len(entries) + 1,
            key=(OVERFLOW_LABEL,) * arity,
            value=combine([value for _, value, _ in rest], [weight for _, _, weight in rest], mode),
            weight=sum(weight for _, _, weight in rest),
            is_overflow=True
        ))

    return TopNResult(message=message, mode=mode, entries=tuple(entries))
