"""Tests for model assembly.

Invariants:
1. Generation arrays are dense: exactly N entries, ids gen1..genN
2. Every CoT generation has all five categories in fixed order
3. Missing documents yield null fields, never a failure
"""

import pytest

from evaldash.adapter.documents import DocumentStore
from evaldash.aggregation.assembler import ModelAssembler, lookup_model
from evaldash.models.types import CoverageMetrics, Overconstraints, ValidationErrors


@pytest.fixture
def assembler(config):
    documents = DocumentStore(config.data_root, diagram_root=config.diagram_root)
    return ModelAssembler(config, documents)


@pytest.fixture
def global_docs(assembler):
    return assembler.parse_global_documents()


@pytest.fixture
def bank(assembler, global_docs):
    return assembler.assemble_model("Bank", global_docs)


@pytest.fixture
def restaurant(assembler, global_docs):
    return assembler.assemble_model("Restaurant", global_docs)


class TestLookupModel:
    def test_exact_then_case_insensitive(self):
        mapping = {"Bank": 1, "restaurant": 2}
        assert lookup_model(mapping, "Bank") == 1
        assert lookup_model(mapping, "Restaurant") == 2
        assert lookup_model(mapping, "Football") is None


class TestSimpleAssembly:
    def test_dense_generations(self, bank):
        assert [g.id for g in bank.simple.generations] == ["gen1", "gen2", "gen3"]

    def test_generation_join(self, bank):
        gen1 = bank.simple.generations[0]
        assert gen1.metrics.errors.syntax_total == 10
        assert gen1.metrics.coverage.classes == 1.0
        assert gen1.metrics.instantiation.classes == 14.0
        assert gen1.metrics.diversity.numeric == 1.0
        assert gen1.metrics.domain_validation[0].failed_items == ["ES00 0000"]
        assert gen1.shannon[0].attribute == "Account.type"
        assert (gen1.token_counts.input, gen1.token_counts.output) == (670, 592)

    def test_artifacts(self, bank):
        gen1, gen2 = bank.simple.generations[:2]
        assert gen1.pdf_available
        assert gen1.pdf_url == "/data/dataset/exp-test/Simple/Bank/2024-01-01_10-00/gen1/output.pdf"
        assert gen1.code == "!new Bank('b1')\n"
        assert not gen2.pdf_available
        assert gen2.pdf_url is None
        assert gen2.code is None

    def test_missing_generation_is_all_null(self, bank):
        gen3 = bank.simple.generations[2]
        assert gen3.metrics.errors.syntax_errors is None
        assert gen3.metrics.coverage.classes is None
        assert gen3.metrics.domain_validation is None
        assert gen3.shannon is None
        assert gen3.token_counts is None

    def test_summary(self, bank):
        summary = bank.simple.summary
        assert summary.price.price == pytest.approx(5.12)
        assert summary.syntax == pytest.approx(0.75)
        assert summary.multiplicities == pytest.approx(0.75)
        assert summary.invariants == pytest.approx(1.0)
        assert summary.coverage.classes == pytest.approx(0.75)
        assert summary.instantiation.classes == pytest.approx(14.0)
        assert summary.diversity.numeric == pytest.approx(0.9639)
        assert summary.realism == pytest.approx(0.6667)
        assert summary.avg_evenness_all == pytest.approx(0.5)

    def test_mode_level_fields(self, bank):
        assert bank.simple.judge.realistic == 2
        assert (bank.simple.token_totals.input, bank.simple.token_totals.output) == (770, 642)
        assert bank.simple.grakel.kernel.values[1][0] == 0.5
        assert bank.diagram_pdf == "/data/prompts/bank/diagram.pdf"

    def test_judge_derived_from_responses(self, restaurant):
        """Without a results table the tally is derived from responses."""
        judge = restaurant.simple.judge
        assert (judge.realistic, judge.unrealistic, judge.unknown) == (2, 0, 1)
        assert restaurant.simple.summary.realism == pytest.approx(2 / 3)
        assert restaurant.simple.generations[0].judge.response == "Realistic"

    def test_case_insensitive_document_headings(self, restaurant):
        assert restaurant.simple.generations[0].metrics.coverage.classes == 0.25

    def test_sparse_model(self, restaurant):
        assert restaurant.diagram_pdf is None
        assert restaurant.simple.grakel is None
        assert restaurant.cot.summary.price.price is None
        assert restaurant.simple.token_totals.input is None


class TestCotAssembly:
    def test_fixed_category_order(self, bank, restaurant):
        for model in (bank, restaurant):
            assert len(model.cot.generations) == 2
            for generation in model.cot.generations:
                assert [c.category for c in generation.categories] == [
                    "baseline",
                    "boundary",
                    "complex",
                    "edge",
                    "invalid",
                ]

    def test_absent_categories_fully_null(self, bank):
        """Categories no document mentions keep their slot with every field null."""
        gen1 = bank.cot.generations[0]
        by_name = {c.category: c for c in gen1.categories}
        assert {d.category for d in gen1.diversity} == {"baseline", "edge", "invalid"}

        for name in ("boundary", "complex"):
            category = by_name[name]
            assert category.metrics.errors == ValidationErrors()
            assert category.metrics.coverage == CoverageMetrics()
            assert category.metrics.instantiation == CoverageMetrics()
            assert category.metrics.uncovered is None
            assert category.metrics.overconstraints is None
            assert category.metrics.domain_validation is None
            assert category.shannon is None
            assert category.token_counts is None
            assert not category.pdf_available
            assert category.code is None

    def test_category_join(self, bank):
        baseline = bank.cot.generations[0].categories[0]
        assert baseline.metrics.errors.syntax_errors == 1
        assert baseline.metrics.coverage.classes == 1.0
        assert baseline.metrics.uncovered.uncovered == ["Branch"]
        assert baseline.pdf_available
        assert baseline.token_counts.input == 10

    def test_overconstraints_only_for_invalid(self, bank):
        gen1, gen2 = bank.cot.generations
        assert gen1.categories[4].metrics.overconstraints.multiplicities_errors == 2
        assert gen2.categories[4].metrics.overconstraints == Overconstraints()
        assert all(c.metrics.overconstraints is None for c in gen1.categories[:4])

    def test_diversity_in_fixed_order(self, bank):
        """Present categories only, in configured order, whatever the document order."""
        gen1, gen2 = bank.cot.generations
        assert [d.category for d in gen1.diversity] == ["baseline", "edge", "invalid"]
        assert gen1.all_categories_diversity.numeric == 0.8
        assert gen2.diversity is None

    def test_generation_token_counts(self, bank):
        gen1, gen2 = bank.cot.generations
        assert (gen1.token_counts.input, gen1.token_counts.output) == (30, 12)
        assert gen2.token_counts is None

    def test_summary(self, bank):
        summary = bank.cot.summary
        assert summary.syntax == pytest.approx(0.875)
        assert summary.realism is None
        assert summary.diversity.numeric == pytest.approx(0.95)
        assert summary.price.price == pytest.approx(3.0)
        assert bank.cot.judge is None
        assert bank.cot.token_totals.input == 30


class TestMissingDocuments:
    def test_empty_root(self, tmp_path, config):
        empty = tmp_path / "empty"
        empty.mkdir()
        local = config.model_copy(update={"data_root": empty})
        assembler = ModelAssembler(local, DocumentStore(empty))
        model = assembler.assemble_model("Bank", assembler.parse_global_documents())
        assert len(model.simple.generations) == 3
        assert model.simple.summary.syntax is None
        assert model.simple.judge.success_rate is None
        assert model.cot.generations[0].categories[4].metrics.overconstraints == Overconstraints()
