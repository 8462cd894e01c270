"""Null-safe aggregation utilities.

Every function here skips None inputs instead of treating them as zero,
and returns None (never 0 or NaN) when nothing is left to aggregate.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TypeVar

from pydantic import BaseModel

from evaldash.models.types import (
    CoverageMetrics,
    DiversityMetrics,
    ShannonEntry,
    TokenCounts,
    ValidationErrors,
)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

VALIDATION_KINDS = ("syntax", "multiplicities", "invariants")


def mean(values: Iterable[float | None]) -> float | None:
    """Arithmetic mean of the non-None values.

    Examples:
        >>> mean([2, None, 4])
        3.0
        >>> mean([None, None]) is None
        True
    """
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


def total(values: Iterable[T | None]) -> T | None:
    """Sum of the non-None values, or None if there are none."""
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present)


def rate(errors: int | None, total_count: int | None) -> float | None:
    """Success rate 1 - errors/total.

    Undefined (None) when either input is missing or total is zero.
    """
    if errors is None or not total_count:
        return None
    return 1 - errors / total_count


def success_rate(flags: Iterable[bool | None]) -> float | None:
    """Fraction of True among the non-None flags."""
    present = [f for f in flags if f is not None]
    if not present:
        return None
    return sum(1 for f in present if f) / len(present)


# ============================================================================
# Structural averaging
# ============================================================================


def average_fields(records: Iterable[M | None], model: type[M]) -> M:
    """Average each numeric field of a flat pydantic model independently."""
    present = [r for r in records if r is not None]
    return model(
        **{name: mean(getattr(r, name) for r in present) for name in model.model_fields}
    )


def average_coverage(records: Iterable[CoverageMetrics | None]) -> CoverageMetrics:
    return average_fields(records, CoverageMetrics)


def average_diversity(records: Iterable[DiversityMetrics | None]) -> DiversityMetrics:
    return average_fields(records, DiversityMetrics)


def average_validation(records: Iterable[ValidationErrors]) -> dict[str, float | None]:
    """Mean success rate per validation kind.

    Each (errors, total) pair is turned into a rate first; pairs with no
    defined rate are skipped.

    Returns:
        Mapping "syntax"/"multiplicities"/"invariants" -> mean rate.
    """
    records = list(records)
    return {
        kind: mean(
            rate(getattr(r, f"{kind}_errors"), getattr(r, f"{kind}_total")) for r in records
        )
        for kind in VALIDATION_KINDS
    }


def average_evenness_all(entries: Iterable[ShannonEntry]) -> float | None:
    """Mean "evenness over all groups" across Shannon entries."""
    return mean(entry.entropy.evenness_all for entry in entries)


def sum_token_counts(counts: Iterable[TokenCounts | None]) -> TokenCounts:
    """Sum input and output tokens independently, skipping unknowns."""
    present = [c for c in counts if c is not None]
    return TokenCounts(
        input=total(c.input for c in present),
        output=total(c.output for c in present),
    )


def dense(mapping: Mapping[int, T], count: int, factory: Callable[[int], T]) -> list[T]:
    """Build a positional list over identifiers 1..count.

    Identifiers absent from mapping are filled by factory(number), so the
    result is always exactly count long.
    """
    return [mapping[n] if n in mapping else factory(n) for n in range(1, count + 1)]
