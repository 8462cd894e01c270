"""Model assembly.

Runs every extractor over one model's documents and joins their outputs
by generation number (and category for CoT) into a dense ModelData
record. Global documents are parsed once per run and shared by all models.

Extractor output is keyed sparsely; the assembler iterates the full
configured range 1..N and fills missing keys with all-null records, so
output arrays are always positionally addressable.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TypeVar

from evaldash.adapter.documents import DocumentStore
from evaldash.aggregation import stats
from evaldash.config import ExperimentConfig
from evaldash.models.domain import (
    CotCoverageCategory,
    CotDifferenceModel,
    CotMetricsCategory,
    ModelPrices,
    SimpleDifferenceModel,
    SimpleMetricsGeneration,
    TotalPrices,
)
from evaldash.models.types import (
    CotCategory,
    CotCategoryDiversity,
    CotCategoryMetrics,
    CotGeneration,
    CotModeData,
    CoverageMetrics,
    DiversityMetrics,
    JudgeResponse,
    JudgeResult,
    ModelData,
    ModelSummary,
    Overconstraints,
    PriceInfo,
    ShannonEntry,
    SimpleGeneration,
    SimpleGenerationMetrics,
    SimpleModeData,
    ValidationErrors,
)
from evaldash.parsers import (
    derive_judge_result,
    parse_combined_difference,
    parse_cot_coverage,
    parse_cot_difference,
    parse_cot_logs,
    parse_cot_metrics,
    parse_cot_shannon,
    parse_global_judge_responses,
    parse_global_judge_results,
    parse_grakel,
    parse_judge_responses,
    parse_judge_results,
    parse_price,
    parse_simple_coverage,
    parse_simple_difference,
    parse_simple_instantiation,
    parse_simple_logs,
    parse_simple_metrics,
    parse_simple_shannon,
    parse_total_prices,
)
from evaldash.parsers.primitives import generation_id

logger = logging.getLogger(__name__)

V = TypeVar("V")

# Global document names, relative to the experiment root
PRICE_DOC = "price.md"
SIMPLE_COVERAGE_DOC = "simpleCoverage.md"
SIMPLE_DIFFERENCE_DOC = "simpleDifference.md"
SIMPLE_SHANNON_DOC = "simpleShannon.md"
COT_COVERAGE_DOC = "cotCoverage.md"
COT_DIFFERENCE_DOC = "cotDifference.md"
COT_SHANNON_DOC = "cotShannon.md"
COMBINED_DIFFERENCE_DOC = "combinedDifference.md"
GLOBAL_JUDGE_RESULTS_DOC = "Simple/judge-results.md"
GLOBAL_JUDGE_RESPONSES_DOC = "Simple/judge-responses.md"

# Per-model document names, relative to the model's run folder
METRICS_DOC = "metrics.md"
GRAKEL_DOC = "grakel.md"
LOGS_DOC = "logs.md"
JUDGE_RESULTS_DOC = "judge-results.md"
JUDGE_RESPONSES_DOC = "judge-responses.md"


def lookup_model(mapping: Mapping[str, V], name: str) -> V | None:
    """Find a model's entry, falling back to a case-insensitive match.

    Document headings do not always use the configured capitalization
    ("## bank" vs "Bank").
    """
    if name in mapping:
        return mapping[name]
    folded = name.casefold()
    for key, value in mapping.items():
        if key.casefold() == folded:
            return value
    return None


@dataclass
class GlobalDocuments:
    """Parsed cross-model documents shared by every model of a run."""

    prices: dict[str, ModelPrices] = field(default_factory=dict)
    total_prices: TotalPrices = field(default_factory=TotalPrices)
    simple_coverage: dict[str, dict[int, CoverageMetrics]] = field(default_factory=dict)
    simple_instantiation: dict[str, dict[int, CoverageMetrics]] = field(default_factory=dict)
    simple_difference: dict[str, SimpleDifferenceModel] = field(default_factory=dict)
    simple_shannon: dict[str, dict[int, list[ShannonEntry]]] = field(default_factory=dict)
    cot_coverage: dict[str, dict[int, dict[str, CotCoverageCategory]]] = field(default_factory=dict)
    cot_difference: dict[str, CotDifferenceModel] = field(default_factory=dict)
    cot_shannon: dict[str, dict[int, dict[str, list[ShannonEntry]]]] = field(default_factory=dict)
    combined_difference: dict[str, DiversityMetrics] = field(default_factory=dict)
    judge_results: dict[str, JudgeResult] = field(default_factory=dict)
    judge_responses: dict[str, dict[int, JudgeResponse]] = field(default_factory=dict)


def _parse_or(text: str | None, parser, default):
    return parser(text) if text is not None else default


class ModelAssembler:
    """Builds ModelData records for the configured models.

    Args:
        config: Experiment configuration (models, categories, counts).
        documents: Document store of the experiment root.
    """

    def __init__(self, config: ExperimentConfig, documents: DocumentStore):
        self.config = config
        self.documents = documents

    # ========================================================================
    # Global documents
    # ========================================================================

    def parse_global_documents(self) -> GlobalDocuments:
        """Read and parse every cross-model document once."""
        read = self.documents.read_global

        price = read(PRICE_DOC)
        simple_coverage = read(SIMPLE_COVERAGE_DOC)
        global_docs = GlobalDocuments(
            prices=_parse_or(price, parse_price, {}),
            total_prices=_parse_or(price, parse_total_prices, TotalPrices()),
            simple_coverage=_parse_or(simple_coverage, parse_simple_coverage, {}),
            simple_instantiation=_parse_or(simple_coverage, parse_simple_instantiation, {}),
            simple_difference=_parse_or(read(SIMPLE_DIFFERENCE_DOC), parse_simple_difference, {}),
            simple_shannon=_parse_or(read(SIMPLE_SHANNON_DOC), parse_simple_shannon, {}),
            cot_coverage=_parse_or(read(COT_COVERAGE_DOC), parse_cot_coverage, {}),
            cot_difference=_parse_or(read(COT_DIFFERENCE_DOC), parse_cot_difference, {}),
            cot_shannon=_parse_or(read(COT_SHANNON_DOC), parse_cot_shannon, {}),
            combined_difference=_parse_or(
                read(COMBINED_DIFFERENCE_DOC), parse_combined_difference, {}
            ),
            judge_results=_parse_or(
                read(GLOBAL_JUDGE_RESULTS_DOC), parse_global_judge_results, {}
            ),
            judge_responses=_parse_or(
                read(GLOBAL_JUDGE_RESPONSES_DOC), parse_global_judge_responses, {}
            ),
        )

        logger.info(
            f"Parsed global documents: {len(global_docs.prices)} priced models, "
            f"{len(global_docs.simple_coverage)} simple / "
            f"{len(global_docs.cot_coverage)} CoT coverage models"
        )
        return global_docs

    # ========================================================================
    # Per-model assembly
    # ========================================================================

    def assemble_model(self, name: str, global_docs: GlobalDocuments) -> ModelData:
        """Assemble the full record of one model.

        Args:
            name: Configured model identifier.
            global_docs: Parsed cross-model documents of this run.

        Returns:
            ModelData with dense generation arrays for both modes.
        """
        logger.info(f"Assembling model {name}")
        prices = lookup_model(global_docs.prices, name) or ModelPrices()

        diagram_pdf = None
        if self.documents.diagram_exists(name):
            diagram_pdf = f"{self.config.diagram_url_prefix.rstrip('/')}/{name.lower()}/diagram.pdf"

        return ModelData(
            name=name,
            diagram_pdf=diagram_pdf,
            simple=self._assemble_simple(name, global_docs, prices.simple),
            cot=self._assemble_cot(name, global_docs, prices.cot),
        )

    def _read_model_doc(self, mode: str, name: str, relative: str) -> str | None:
        text = self.documents.read_model(mode, name, relative)
        if text is None:
            logger.warning(f"Missing {mode} document for {name}: {relative}")
        return text

    def _simple_judge(
        self, name: str, global_docs: GlobalDocuments
    ) -> tuple[JudgeResult, dict[int, JudgeResponse]]:
        """Resolve the aggregate verdict and per-generation responses.

        Aggregate source order: global results file, the model's own
        results file, derivation from responses, all-null.
        """
        responses = lookup_model(global_docs.judge_responses, name)
        if responses is None:
            own = self.documents.read_model("simple", name, JUDGE_RESPONSES_DOC)
            responses = parse_judge_responses(own) if own is not None else {}

        result = lookup_model(global_docs.judge_results, name)
        if result is None:
            own = self.documents.read_model("simple", name, JUDGE_RESULTS_DOC)
            if own is not None:
                result = parse_judge_results(own)
        if result is None and responses:
            result = derive_judge_result(responses)
        return result or JudgeResult(), responses

    def _assemble_simple(
        self, name: str, global_docs: GlobalDocuments, price: PriceInfo | None
    ) -> SimpleModeData:
        metrics_text = self._read_model_doc("simple", name, METRICS_DOC)
        grakel_text = self._read_model_doc("simple", name, GRAKEL_DOC)
        logs_text = self._read_model_doc("simple", name, LOGS_DOC)

        metrics = _parse_or(metrics_text, parse_simple_metrics, {})
        logs = _parse_or(logs_text, parse_simple_logs, {})
        coverage = lookup_model(global_docs.simple_coverage, name) or {}
        instantiation = lookup_model(global_docs.simple_instantiation, name) or {}
        difference = lookup_model(global_docs.simple_difference, name) or SimpleDifferenceModel()
        shannon = lookup_model(global_docs.simple_shannon, name) or {}
        judge, responses = self._simple_judge(name, global_docs)
        base_url = self.config.artifact_base_url
        count = self.config.simple_generations

        metrics_by_gen = stats.dense(metrics, count, lambda _: SimpleMetricsGeneration())
        coverage_by_gen = stats.dense(coverage, count, lambda _: CoverageMetrics())
        instantiation_by_gen = stats.dense(instantiation, count, lambda _: CoverageMetrics())
        diversity_by_gen = stats.dense(difference.generations, count, lambda _: DiversityMetrics())

        def build(number: int) -> SimpleGeneration:
            gen_id = generation_id(number)
            index = number - 1
            gen_metrics = metrics_by_gen[index]
            pdf = f"{gen_id}/output.pdf"
            return SimpleGeneration(
                id=gen_id,
                metrics=SimpleGenerationMetrics(
                    errors=gen_metrics.errors,
                    coverage=coverage_by_gen[index],
                    instantiation=instantiation_by_gen[index],
                    diversity=diversity_by_gen[index],
                    domain_validation=gen_metrics.domain_validation,
                ),
                shannon=shannon.get(number),
                judge=responses.get(number),
                token_counts=logs.get(number),
                pdf_available=self.documents.artifact_exists("simple", name, pdf),
                pdf_url=self.documents.artifact_url(base_url, "simple", name, pdf),
                code=self.documents.read_model("simple", name, f"{gen_id}/output.soil"),
            )

        generations = [build(n) for n in range(1, count + 1)]
        validation = stats.average_validation(g.metrics.errors for g in generations)

        summary = ModelSummary(
            price=price or PriceInfo(),
            syntax=validation["syntax"],
            multiplicities=validation["multiplicities"],
            invariants=validation["invariants"],
            coverage=stats.average_coverage(g.metrics.coverage for g in generations),
            instantiation=stats.average_coverage(g.metrics.instantiation for g in generations),
            diversity=difference.all_generations or DiversityMetrics(),
            realism=judge.success_rate,
            avg_evenness_all=stats.average_evenness_all(
                entry for g in generations for entry in (g.shannon or [])
            ),
        )

        return SimpleModeData(
            summary=summary,
            grakel=_parse_or(grakel_text, parse_grakel, None),
            judge=judge,
            token_totals=stats.sum_token_counts(g.token_counts for g in generations),
            generations=generations,
        )

    def _assemble_cot(
        self, name: str, global_docs: GlobalDocuments, price: PriceInfo | None
    ) -> CotModeData:
        metrics_text = self._read_model_doc("cot", name, METRICS_DOC)
        grakel_text = self._read_model_doc("cot", name, GRAKEL_DOC)
        logs_text = self._read_model_doc("cot", name, LOGS_DOC)

        metrics = _parse_or(metrics_text, parse_cot_metrics, {})
        logs = _parse_or(logs_text, parse_cot_logs, {})
        coverage = lookup_model(global_docs.cot_coverage, name) or {}
        difference = lookup_model(global_docs.cot_difference, name) or CotDifferenceModel()
        shannon = lookup_model(global_docs.cot_shannon, name) or {}
        base_url = self.config.artifact_base_url
        categories = self.config.cot_categories
        count = self.config.cot_generations

        metrics_by_gen = stats.dense(metrics, count, lambda _: {})
        coverage_by_gen = stats.dense(coverage, count, lambda _: {})

        def build_category(number: int, category: str) -> CotCategory:
            gen_id = generation_id(number)
            cat_metrics = metrics_by_gen[number - 1].get(category) or CotMetricsCategory()
            cat_coverage = coverage_by_gen[number - 1].get(category) or CotCoverageCategory()
            pdf = f"{gen_id}/{category}.pdf"
            return CotCategory(
                category=category,
                metrics=CotCategoryMetrics(
                    errors=cat_metrics.errors,
                    coverage=cat_coverage.coverage,
                    instantiation=cat_coverage.instantiation,
                    uncovered=cat_coverage.uncovered,
                    overconstraints=(
                        (cat_metrics.overconstraints or Overconstraints())
                        if category == "invalid"
                        else None
                    ),
                    domain_validation=cat_metrics.domain_validation,
                ),
                shannon=shannon.get(number, {}).get(category),
                token_counts=logs.get(number, {}).get(category),
                pdf_available=self.documents.artifact_exists("cot", name, pdf),
                pdf_url=self.documents.artifact_url(base_url, "cot", name, pdf),
                code=self.documents.read_model("cot", name, f"{gen_id}/{category}.soil"),
            )

        def build(number: int) -> CotGeneration:
            gen_difference = difference.generations.get(number)
            diversity = None
            if gen_difference is not None:
                diversity = [
                    CotCategoryDiversity(category=c, diversity=gen_difference.categories[c])
                    for c in categories
                    if c in gen_difference.categories
                ]
            gen_logs = logs.get(number)
            return CotGeneration(
                id=generation_id(number),
                categories=[build_category(number, c) for c in categories],
                diversity=diversity,
                all_categories_diversity=gen_difference.all_categories if gen_difference else None,
                token_counts=stats.sum_token_counts(gen_logs.values()) if gen_logs else None,
            )

        generations = [build(n) for n in range(1, count + 1)]
        all_categories = [c for g in generations for c in g.categories]
        errors: list[ValidationErrors] = [c.metrics.errors for c in all_categories]
        validation = stats.average_validation(errors)

        summary = ModelSummary(
            price=price or PriceInfo(),
            syntax=validation["syntax"],
            multiplicities=validation["multiplicities"],
            invariants=validation["invariants"],
            coverage=stats.average_coverage(c.metrics.coverage for c in all_categories),
            instantiation=stats.average_coverage(c.metrics.instantiation for c in all_categories),
            diversity=difference.all_generations or DiversityMetrics(),
            realism=None,
            avg_evenness_all=stats.average_evenness_all(
                entry for c in all_categories for entry in (c.shannon or [])
            ),
        )

        return CotModeData(
            summary=summary,
            grakel=_parse_or(grakel_text, parse_grakel, None),
            judge=None,
            token_totals=stats.sum_token_counts(c.token_counts for c in all_categories),
            generations=generations,
        )
