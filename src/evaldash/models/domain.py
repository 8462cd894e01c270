"""Domain models for evaldash.

Pure Python dataclasses for intermediate extractor results and
persisted record entities. These are independent of SQLAlchemy and
of the serialized output shapes in types.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from evaldash.models.types import (
    CoverageMetrics,
    DiversityMetrics,
    DomainValidationEntry,
    Overconstraints,
    PriceInfo,
    UncoveredData,
    ValidationErrors,
)

# ============================================================================
# Price Domain
# ============================================================================


@dataclass
class ModelPrices:
    """Price info of one model for both modes."""

    simple: PriceInfo | None = None
    cot: PriceInfo | None = None


@dataclass
class TotalPrices:
    """Cross-model aggregate prices from the designated aggregate section."""

    simple: PriceInfo = field(default_factory=PriceInfo)
    cot: PriceInfo = field(default_factory=PriceInfo)


# ============================================================================
# Coverage / Difference Domain
# ============================================================================


@dataclass
class CotCoverageCategory:
    """Coverage, instantiation and annotations of one CoT category."""

    coverage: CoverageMetrics = field(default_factory=CoverageMetrics)
    instantiation: CoverageMetrics = field(default_factory=CoverageMetrics)
    uncovered: UncoveredData | None = None


@dataclass
class SimpleDifferenceModel:
    """Per-generation diversity rows plus the all-generations summary."""

    generations: dict[int, DiversityMetrics] = field(default_factory=dict)
    all_generations: DiversityMetrics | None = None


@dataclass
class CotDifferenceGeneration:
    """Per-category diversity of one CoT generation."""

    categories: dict[str, DiversityMetrics] = field(default_factory=dict)
    all_categories: DiversityMetrics | None = None


@dataclass
class CotDifferenceModel:
    """CoT diversity of one model."""

    generations: dict[int, CotDifferenceGeneration] = field(default_factory=dict)
    all_generations: DiversityMetrics | None = None


# ============================================================================
# Validation Metrics Domain
# ============================================================================


@dataclass
class SimpleMetricsGeneration:
    """Validation results of one single-shot generation."""

    errors: ValidationErrors = field(default_factory=ValidationErrors)
    domain_validation: list[DomainValidationEntry] | None = None


@dataclass
class CotMetricsCategory:
    """Validation results of one CoT category."""

    errors: ValidationErrors = field(default_factory=ValidationErrors)
    overconstraints: Overconstraints | None = None
    domain_validation: list[DomainValidationEntry] | None = None


# ============================================================================
# Record Persistence Domain
# ============================================================================

RecordKind = Literal["model", "dashboard"]
ReportRunStatus = Literal["running", "succeeded", "failed"]


@dataclass
class ReportRecordEntity:
    """Domain model for a stored output record."""

    record_id: str
    run_id: str
    experiment_id: str
    kind: RecordKind
    name: str
    value_json: str
    sha256: str


@dataclass
class ReportRunEntity:
    """Domain model for one processing run."""

    run_id: str
    experiment_id: str
    status: ReportRunStatus
    model_count: int = 0
    started_at: datetime | None = None
    ended_at: datetime | None = None
    error_code: str | None = None
    error_detail: str | None = None
