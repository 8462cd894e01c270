"""Tests for the parse position value."""

import pytest

from evaldash.parsers.position import ParsePosition, heading_text, normalize_category


class TestParsePosition:
    """Entering a level clears every lower level."""

    def test_model_clears_everything_below(self):
        position = ParsePosition(model="Bank", generation=2, category="edge", table="general")
        assert position.at_model("Restaurant") == ParsePosition(model="Restaurant")

    def test_generation_clears_category_and_table(self):
        position = ParsePosition(model="Bank", generation=1, category="edge", table="general")
        assert position.at_generation(2) == ParsePosition(model="Bank", generation=2)

    def test_table_keeps_upper_levels(self):
        position = ParsePosition(model="Bank", generation=1).at_table("domain")
        assert position.generation == 1
        assert position.without_table().table is None

    def test_positions_are_immutable(self):
        position = ParsePosition(model="Bank")
        position.at_generation(1)
        assert position.generation is None
        with pytest.raises(AttributeError):
            position.model = "Other"  # type: ignore[misc]

    def test_in_category_requires_all_levels(self):
        assert not ParsePosition(model="Bank", category="edge").in_category
        assert ParsePosition(model="Bank", generation=1, category="edge").in_category


class TestHelpers:
    """Tests for heading_text and normalize_category."""

    def test_heading_exact_level(self):
        assert heading_text("## Bank", 2) == "Bank"
        assert heading_text("### gen1", 2) is None
        assert heading_text("#Bank", 1) is None

    @pytest.mark.parametrize("text", ["baseline", "Boundary", " EDGE "])
    def test_known_categories(self, text):
        assert normalize_category(text) == text.strip().lower()

    def test_unknown_category(self):
        assert normalize_category("extra") is None
        assert normalize_category("ALL Categories") is None
