"""Dashboard aggregation.

Folds per-model summaries into cross-model totals. Every model weighs
the same, whatever its number of generations or tokens.
"""

from __future__ import annotations

from evaldash.aggregation.stats import average_coverage, average_diversity, mean, total
from evaldash.models.domain import TotalPrices
from evaldash.models.types import (
    DashboardData,
    DashboardModel,
    DashboardModeTotals,
    DashboardTotals,
    DiversityMetrics,
    ModelData,
    ModelSummary,
    PriceInfo,
)


def _has_any_value(price: PriceInfo) -> bool:
    return any(getattr(price, name) is not None for name in PriceInfo.model_fields)


def _total_price(aggregate: PriceInfo, summaries: list[ModelSummary]) -> PriceInfo:
    """Aggregate section of the price document, else the sum of model prices."""
    if _has_any_value(aggregate):
        return aggregate
    return PriceInfo(
        price=total(s.price.price for s in summaries),
        token_input=total(s.price.token_input for s in summaries),
        token_output=total(s.price.token_output for s in summaries),
    )


def summarize_mode(summaries: list[ModelSummary], aggregate_price: PriceInfo) -> DashboardTotals:
    """Equally weighted mean of each summary field across models.

    Args:
        summaries: One ModelSummary per model, all of the same mode.
        aggregate_price: Price from the document's aggregate section.

    Returns:
        DashboardTotals for the mode.
    """
    return DashboardTotals(
        price=_total_price(aggregate_price, summaries),
        syntax=mean(s.syntax for s in summaries),
        multiplicities=mean(s.multiplicities for s in summaries),
        invariants=mean(s.invariants for s in summaries),
        coverage=average_coverage(s.coverage for s in summaries),
        instantiation=average_coverage(s.instantiation for s in summaries),
        diversity=average_diversity(s.diversity for s in summaries),
        realism=mean(s.realism for s in summaries),
        avg_evenness_all=mean(s.avg_evenness_all for s in summaries),
    )


def build_dashboard(
    models: list[ModelData],
    total_prices: TotalPrices,
    combined_diversity: dict[str, DiversityMetrics],
    experiment_id: str,
) -> DashboardData:
    """Build the global dashboard record.

    Combined diversity is passed through unmodified, keyed by the model
    names used in its document; an empty table becomes None.
    """
    return DashboardData(
        experiment_id=experiment_id,
        totals=DashboardModeTotals(
            simple=summarize_mode([m.simple.summary for m in models], total_prices.simple),
            cot=summarize_mode([m.cot.summary for m in models], total_prices.cot),
        ),
        combined_diversity=combined_diversity or None,
        models=[
            DashboardModel(name=m.name, simple=m.simple.summary, cot=m.cot.summary)
            for m in models
        ],
    )
