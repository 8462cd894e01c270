"""Tests for dashboard aggregation.

Invariants:
1. Every model weighs the same in the totals
2. The aggregate price section wins when it carries any value
3. Combined diversity is passed through unmodified
"""

import pytest

from evaldash.adapter.documents import DocumentStore
from evaldash.aggregation.assembler import ModelAssembler
from evaldash.aggregation.dashboard import build_dashboard, summarize_mode
from evaldash.models.domain import TotalPrices
from evaldash.models.types import CoverageMetrics, DiversityMetrics, ModelSummary, PriceInfo


class TestSummarizeMode:
    def test_equal_weighting(self):
        summaries = [
            ModelSummary(syntax=1.0, coverage=CoverageMetrics(classes=1.0)),
            ModelSummary(syntax=0.0, coverage=CoverageMetrics(classes=0.5)),
            ModelSummary(syntax=None),
        ]
        totals = summarize_mode(summaries, PriceInfo())
        assert totals.syntax == 0.5
        assert totals.coverage.classes == 0.75
        assert totals.realism is None

    def test_aggregate_price_wins(self):
        summaries = [ModelSummary(price=PriceInfo(price=1.0))]
        totals = summarize_mode(summaries, PriceInfo(price=9.0))
        assert totals.price.price == 9.0

    def test_price_summed_without_aggregate(self):
        summaries = [
            ModelSummary(price=PriceInfo(price=1.0, token_input=10)),
            ModelSummary(price=PriceInfo(price=2.5, token_input=None)),
        ]
        price = summarize_mode(summaries, PriceInfo()).price
        assert price.price == 3.5
        assert price.token_input == 10
        assert price.token_output is None

    def test_no_models(self):
        totals = summarize_mode([], PriceInfo())
        assert totals.syntax is None
        assert totals.price.price is None


class TestBuildDashboard:
    @pytest.fixture
    def dashboard(self, config):
        assembler = ModelAssembler(config, DocumentStore(config.data_root))
        global_docs = assembler.parse_global_documents()
        models = [assembler.assemble_model(name, global_docs) for name in config.models]
        return build_dashboard(
            models, global_docs.total_prices, global_docs.combined_difference, config.experiment_id
        )

    def test_models_in_configured_order(self, dashboard):
        assert dashboard.experiment_id == "exp-test"
        assert [m.name for m in dashboard.models] == ["Bank", "Restaurant"]

    def test_totals(self, dashboard):
        simple = dashboard.totals.simple
        assert simple.price.price == pytest.approx(7.12)
        assert simple.syntax == pytest.approx(0.75)
        assert simple.realism == pytest.approx((0.6667 + 2 / 3) / 2)
        assert dashboard.totals.cot.price.price == pytest.approx(3.0)

    def test_combined_diversity(self, dashboard):
        assert dashboard.combined_diversity == {
            "Bank": DiversityMetrics(numeric=0.9, string_equals=0.99, string_lv=0.85)
        }

    def test_empty_combined_diversity_is_none(self):
        dashboard = build_dashboard([], TotalPrices(), {}, "exp")
        assert dashboard.combined_diversity is None
        assert dashboard.models == []
