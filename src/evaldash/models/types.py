"""Pydantic models for evaldash output records.

These are the serialized shapes handed to the presentation layer.
Every numeric field is nullable: None means "unknown", never zero.
"""

from typing import Literal

from pydantic import BaseModel, Field

CotCategoryName = Literal["baseline", "boundary", "complex", "edge", "invalid"]
Verdict = Literal["Realistic", "Unrealistic", "Unknown"]


# ============================================================================
# Base metrics
# ============================================================================


class PriceInfo(BaseModel):
    """Cost and token usage for a model in one mode."""

    price: float | None = None
    token_input: int | None = None
    token_output: int | None = None


class CoverageMetrics(BaseModel):
    """Classes / attributes / relationships scores.

    Used for both coverage ratios and instantiation counts.
    """

    classes: float | None = None
    attributes: float | None = None
    relationships: float | None = None


class DiversityMetrics(BaseModel):
    """Numeric, exact-string and Levenshtein diversity scores."""

    numeric: float | None = None
    string_equals: float | None = None
    string_lv: float | None = None


class ValidationErrors(BaseModel):
    """(errors, total) pairs for syntax, multiplicities and invariants."""

    syntax_errors: int | None = None
    syntax_total: int | None = None
    multiplicities_errors: int | None = None
    multiplicities_total: int | None = None
    invariants_errors: int | None = None
    invariants_total: int | None = None


class Overconstraints(BaseModel):
    """Errors excluded from the general tally (CoT invalid category only)."""

    multiplicities_errors: int | None = None
    multiplicities_total: int | None = None
    invariants_errors: int | None = None
    invariants_total: int | None = None


class TokenCounts(BaseModel):
    """Input/output tokens for one or more requests."""

    input: int | None = None
    output: int | None = None


class DomainValidationEntry(BaseModel):
    """One domain-specific validation (e.g. IBANs, Emails)."""

    name: str
    invalid: int | None = None
    total: int | None = None
    failure_rate: float | None = None  # fraction in [0, 1]
    failed_items: list[str] = Field(default_factory=list)


class UncoveredData(BaseModel):
    """Uncovered elements and hallucinated elements of a CoT category."""

    uncovered: list[str] = Field(default_factory=list)
    hallucinations: list[str] = Field(default_factory=list)


# ============================================================================
# Shannon entropy
# ============================================================================


class EnumDistribution(BaseModel):
    """Count of one enum value."""

    name: str
    count: float


class EntropyMetrics(BaseModel):
    """Entropy-derived scalars for one attribute."""

    entropy: float | None = None
    max_entropy_active: float | None = None
    evenness_active: float | None = None
    max_entropy_all: float | None = None
    evenness_all: float | None = None


class ShannonEntry(BaseModel):
    """Value distribution and entropy of one categorical attribute."""

    attribute: str
    distribution: list[EnumDistribution] = Field(default_factory=list)
    entropy: EntropyMetrics = Field(default_factory=EntropyMetrics)


# ============================================================================
# Graph kernel
# ============================================================================


class GraphData(BaseModel):
    """Raw structural graph of one generation."""

    adj: list[list[int]] = Field(default_factory=list)
    labels: dict[int, str] = Field(default_factory=dict)
    edges: list[tuple[int, int]] = Field(default_factory=list)


class GrakelMatrix(BaseModel):
    """Symmetric kernel similarity matrix between generations."""

    labels: list[str]
    values: list[list[float | None]]


class GrakelData(BaseModel):
    """Raw graphs plus the kernel matrix derived from them."""

    graphs: list[GraphData] = Field(default_factory=list)
    kernel: GrakelMatrix | None = None


# ============================================================================
# Judge
# ============================================================================


class JudgeResult(BaseModel):
    """Aggregate realism verdict tally."""

    realistic: int | None = None
    unrealistic: int | None = None
    unknown: int | None = None
    success_rate: float | None = None


class JudgeResponse(BaseModel):
    """Verdict and rationale for one generation."""

    response: Verdict | None = None
    why: str | None = None


# ============================================================================
# Generations
# ============================================================================


class SimpleGenerationMetrics(BaseModel):
    """All metrics of a single-shot generation."""

    errors: ValidationErrors = Field(default_factory=ValidationErrors)
    coverage: CoverageMetrics = Field(default_factory=CoverageMetrics)
    instantiation: CoverageMetrics = Field(default_factory=CoverageMetrics)
    diversity: DiversityMetrics = Field(default_factory=DiversityMetrics)
    domain_validation: list[DomainValidationEntry] | None = None


class SimpleGeneration(BaseModel):
    """One single-shot generation attempt."""

    id: str
    metrics: SimpleGenerationMetrics
    shannon: list[ShannonEntry] | None = None
    judge: JudgeResponse | None = None
    token_counts: TokenCounts | None = None
    pdf_available: bool = False
    pdf_url: str | None = None
    code: str | None = None


class CotCategoryMetrics(BaseModel):
    """All metrics of one CoT category within a generation."""

    errors: ValidationErrors = Field(default_factory=ValidationErrors)
    coverage: CoverageMetrics = Field(default_factory=CoverageMetrics)
    instantiation: CoverageMetrics = Field(default_factory=CoverageMetrics)
    uncovered: UncoveredData | None = None
    overconstraints: Overconstraints | None = None  # invalid category only
    domain_validation: list[DomainValidationEntry] | None = None


class CotCategory(BaseModel):
    """One category record of a CoT generation."""

    category: CotCategoryName
    metrics: CotCategoryMetrics
    shannon: list[ShannonEntry] | None = None
    token_counts: TokenCounts | None = None
    pdf_available: bool = False
    pdf_url: str | None = None
    code: str | None = None


class CotCategoryDiversity(BaseModel):
    """Diversity of one category inside a CoT generation."""

    category: CotCategoryName
    diversity: DiversityMetrics


class CotGeneration(BaseModel):
    """One CoT generation: always five categories in fixed order."""

    id: str
    categories: list[CotCategory]
    diversity: list[CotCategoryDiversity] | None = None
    all_categories_diversity: DiversityMetrics | None = None
    token_counts: TokenCounts | None = None
    judge: JudgeResponse | None = None


# ============================================================================
# Model and dashboard
# ============================================================================


class ModelSummary(BaseModel):
    """Per-model, per-mode aggregate."""

    price: PriceInfo = Field(default_factory=PriceInfo)
    syntax: float | None = None  # success rate (0-1)
    multiplicities: float | None = None
    invariants: float | None = None
    coverage: CoverageMetrics = Field(default_factory=CoverageMetrics)
    instantiation: CoverageMetrics = Field(default_factory=CoverageMetrics)
    diversity: DiversityMetrics = Field(default_factory=DiversityMetrics)
    realism: float | None = None
    avg_evenness_all: float | None = None


class SimpleModeData(BaseModel):
    """Single-shot mode data of a model."""

    summary: ModelSummary
    grakel: GrakelData | None = None
    judge: JudgeResult | None = None
    token_totals: TokenCounts = Field(default_factory=TokenCounts)
    generations: list[SimpleGeneration]


class CotModeData(BaseModel):
    """Chain-of-thought mode data of a model."""

    summary: ModelSummary
    grakel: GrakelData | None = None
    judge: JudgeResult | None = None
    token_totals: TokenCounts = Field(default_factory=TokenCounts)
    generations: list[CotGeneration]


class ModelData(BaseModel):
    """Complete per-model output record."""

    name: str
    diagram_pdf: str | None = None
    simple: SimpleModeData
    cot: CotModeData


class DashboardTotals(BaseModel):
    """Cross-model averages for one mode (equal weight per model)."""

    price: PriceInfo = Field(default_factory=PriceInfo)
    syntax: float | None = None
    multiplicities: float | None = None
    invariants: float | None = None
    coverage: CoverageMetrics = Field(default_factory=CoverageMetrics)
    instantiation: CoverageMetrics = Field(default_factory=CoverageMetrics)
    diversity: DiversityMetrics = Field(default_factory=DiversityMetrics)
    realism: float | None = None
    avg_evenness_all: float | None = None


class DashboardModel(BaseModel):
    """Per-model entry of the dashboard."""

    name: str
    simple: ModelSummary
    cot: ModelSummary


class DashboardModeTotals(BaseModel):
    """Totals for both modes."""

    simple: DashboardTotals
    cot: DashboardTotals


class DashboardData(BaseModel):
    """Global dashboard record."""

    experiment_id: str
    totals: DashboardModeTotals
    combined_diversity: dict[str, DiversityMetrics] | None = None
    models: list[DashboardModel]


# ============================================================================
# API payloads
# ============================================================================


class ModelRecordSummary(BaseModel):
    """Listing entry for a stored model record."""

    name: str
    record_id: str
    sha256: str


class ReportRunStatusResponse(BaseModel):
    """Status of the latest report run of an experiment."""

    run_id: str
    experiment_id: str
    status: str
    model_count: int
    error_code: str | None = None
    error_detail: str | None = None


# ============================================================================
# Per-generation export files
# ============================================================================


class FlatGenerationMetrics(BaseModel):
    """Generation metrics with the validation counts lifted to the top level."""

    syntax_errors: int | None = None
    syntax_total: int | None = None
    multiplicities_errors: int | None = None
    multiplicities_total: int | None = None
    invariants_errors: int | None = None
    invariants_total: int | None = None
    coverage: CoverageMetrics = Field(default_factory=CoverageMetrics)
    instantiation: CoverageMetrics = Field(default_factory=CoverageMetrics)
    diversity: DiversityMetrics | None = None  # simple mode only
    overconstraints: Overconstraints | None = None  # CoT invalid category only


class SimpleGenerationFile(BaseModel):
    """generations/<model>/simple-genN.json"""

    id: str
    metrics: FlatGenerationMetrics
    judge: JudgeResponse | None = None
    pdf_available: bool = False
    pdf_url: str | None = None
    code: str | None = None


class CotCategoryFile(BaseModel):
    category: CotCategoryName
    metrics: FlatGenerationMetrics
    pdf_available: bool = False
    pdf_url: str | None = None
    code: str | None = None


class CotGenerationFile(BaseModel):
    """generations/<model>/cot-genN.json"""

    id: str
    categories: list[CotCategoryFile]
    diversity: list[CotCategoryDiversity] | None = None
    all_categories_diversity: DiversityMetrics | None = None
