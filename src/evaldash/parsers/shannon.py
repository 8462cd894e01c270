"""Shannon entropy extractors.

Format (Simple; CoT adds a "#### <category>" level under the generation):
    ## Bank
    ### gen1
    | Account.type | Nº |
    |---|---|
    | **Savings** | 1.0000 |
    | **Checking** | 0.0000 |

    | Entropy | Value |
    |---|---|
    | **Entropy** | 1.5850 |
    | **Max Entropy (active groups)** | 1.5850 |
    | **Evenness (active groups)** | 1.0000 |
    | **Max Entropy (all groups)** | 2.0000 |
    | **Evenness (all groups)** | 0.7925 |
"""

from __future__ import annotations

import re
from collections.abc import Callable

from evaldash.models.types import EnumDistribution, ShannonEntry
from evaldash.parsers.position import ParsePosition, heading_text, normalize_category
from evaldash.parsers.primitives import (
    cell,
    float_or_null,
    generation_number,
    is_separator_row,
    split_row,
    strip_emphasis,
)

DISTRIBUTION_TABLE = "distribution"
ENTROPY_TABLE = "entropy"

_DISTRIBUTION_HEADER_RE = re.compile(
    r"\|\s*([A-Za-z_][A-Za-z0-9_]*\.[A-Za-z_][A-Za-z0-9_]*)\s*\|\s*Nº\s*\|"
)
_ENTROPY_HEADER_RE = re.compile(r"\|\s*Entropy\s*\|\s*Value\s*\|", re.IGNORECASE)


def distribution_header(line: str) -> str | None:
    """Return the "Class.attribute" name of a distribution table header."""
    match = _DISTRIBUTION_HEADER_RE.search(line)
    return match.group(1) if match else None


def entropy_field(label: str) -> str | None:
    """Map an entropy row label to its EntropyMetrics field.

    "Entropy" must match exactly; the other four labels are recognized by
    case-insensitive substrings ("max entropy"/"evenness" plus
    "active"/"all").
    """
    label = strip_emphasis(label).lower()
    if label == "entropy":
        return "entropy"
    if "max entropy" in label and "active" in label:
        return "max_entropy_active"
    if "evenness" in label and "active" in label:
        return "evenness_active"
    if "max entropy" in label and "all" in label:
        return "max_entropy_all"
    if "evenness" in label and "all" in label:
        return "evenness_all"
    return None


def _distribution_row(line: str) -> EnumDistribution | None:
    cells = split_row(line, drop_empty=False)
    name = strip_emphasis(cell(cells, 0) or "")
    count = float_or_null(cell(cells, 1))
    if not name or count is None:
        return None
    return EnumDistribution(name=name, count=count)


class _AttributeBlock:
    """Attribute currently being read; attached to its list once it has data."""

    def __init__(self, attribute: str):
        self.entry = ShannonEntry(attribute=attribute)
        self.attached = False

    def attach(self, target: list[ShannonEntry] | None) -> None:
        if self.attached or target is None:
            return
        for existing in target:
            if existing.attribute == self.entry.attribute:
                if self.entry.distribution:
                    existing.distribution = self.entry.distribution
                self.entry = existing
                self.attached = True
                return
        target.append(self.entry)
        self.attached = True

    def flush(self, target: list[ShannonEntry] | None) -> None:
        if self.entry.distribution:
            self.attach(target)


def _walk_entries(
    content: str,
    heading: Callable[[str, ParsePosition], ParsePosition | None],
    target: Callable[[ParsePosition], list[ShannonEntry] | None],
) -> None:
    """Drive the attribute/entropy table state machine.

    Args:
        content: Raw markdown text.
        heading: Returns the new position for a heading line, else None.
        target: Returns the entry list for a position, creating it if the
            position is complete, else None.
    """
    position = ParsePosition()
    block: _AttributeBlock | None = None

    for line in content.splitlines():
        stripped = line.strip()

        new_position = heading(line, position)
        if new_position is not None:
            if block is not None:
                block.flush(target(position))
            position = new_position
            target(position)
            block = None
            continue

        attribute = distribution_header(stripped)
        if attribute is not None:
            if block is not None:
                block.flush(target(position))
            block = _AttributeBlock(attribute)
            position = position.at_table(DISTRIBUTION_TABLE)
            continue

        if _ENTROPY_HEADER_RE.search(stripped):
            position = position.at_table(ENTROPY_TABLE)
            continue

        if is_separator_row(stripped):
            continue

        if block is not None and "|" in stripped:
            if position.table == DISTRIBUTION_TABLE:
                row = _distribution_row(stripped)
                if row is not None:
                    block.entry.distribution.append(row)
                continue
            if position.table == ENTROPY_TABLE:
                entries = target(position)
                if entries is None:
                    continue
                block.attach(entries)
                cells = split_row(stripped, drop_empty=False)
                field = entropy_field(cell(cells, 0) or "")
                if field is not None:
                    setattr(block.entry.entropy, field, float_or_null(cell(cells, 1)))
                continue

        if stripped == "":
            if block is not None and position.table == DISTRIBUTION_TABLE:
                block.flush(target(position))
            position = position.without_table()

    if block is not None:
        block.flush(target(position))


def _gen_heading(line: str) -> int | None:
    if not line.startswith("### gen"):
        return None
    return generation_number(heading_text(line, 3) or "")


# ============================================================================
# Simple Shannon
# ============================================================================


def parse_simple_shannon(content: str) -> dict[str, dict[int, list[ShannonEntry]]]:
    """Parse attribute entries per model and generation.

    Returns:
        Mapping model -> generation number -> list of ShannonEntry in
        document order.
    """
    result: dict[str, dict[int, list[ShannonEntry]]] = {}

    def heading(line: str, position: ParsePosition) -> ParsePosition | None:
        model = heading_text(line, 2)
        if model is not None:
            return position.at_model(model)
        generation = _gen_heading(line)
        if generation is not None:
            return position.at_generation(generation)
        return None

    def target(position: ParsePosition) -> list[ShannonEntry] | None:
        if not position.in_generation:
            return None
        return result.setdefault(position.model, {}).setdefault(position.generation, [])

    _walk_entries(content, heading, target)
    return result


# ============================================================================
# CoT Shannon
# ============================================================================


def parse_cot_shannon(content: str) -> dict[str, dict[int, dict[str, list[ShannonEntry]]]]:
    """Parse attribute entries per model, generation and category.

    "#### ALL ..." headings and unknown categories leave the category unset,
    so their tables are skipped.

    Returns:
        Mapping model -> generation number -> category -> list of ShannonEntry.
    """
    result: dict[str, dict[int, dict[str, list[ShannonEntry]]]] = {}

    def heading(line: str, position: ParsePosition) -> ParsePosition | None:
        model = heading_text(line, 2)
        if model is not None:
            return position.at_model(model)
        generation = _gen_heading(line)
        if generation is not None:
            return position.at_generation(generation)
        title = heading_text(line, 4)
        if title is not None:
            category = None if "ALL" in title else normalize_category(title)
            return position.at_category(category)
        return None

    def target(position: ParsePosition) -> list[ShannonEntry] | None:
        if not position.in_category:
            return None
        generations = result.setdefault(position.model, {})
        return generations.setdefault(position.generation, {}).setdefault(position.category, [])

    _walk_entries(content, heading, target)
    return result
