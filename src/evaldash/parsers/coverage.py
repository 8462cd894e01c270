"""Coverage and instantiation extractors.

Simple format:
    ## Bank
    ### gen1
    | Model Coverage | instantiated | defined | coverage |
    |---|---|---|---|
    | **classes** | 4.0000 | 4.0000 | 1.0000 |
    ...
    | Instantiation Stats | total instantiated | total possible | ratio |
    |---|---|---|---|
    | **classes** | 14.0000 | Infinity | 0.0000 |

CoT format nests a "#### <category>" level below the generation and adds
"Uncovered: [...]" and "Hallucinations: [...]" annotations per category.
"""

from __future__ import annotations

import logging

from evaldash.models.domain import CotCoverageCategory
from evaldash.models.types import CoverageMetrics, UncoveredData
from evaldash.parsers.position import ParsePosition, heading_text, normalize_category
from evaldash.parsers.primitives import (
    bracketed_list,
    cell,
    float_or_null,
    generation_number,
    is_separator_row,
    split_row,
    strip_emphasis,
)

logger = logging.getLogger(__name__)

COVERAGE_TABLE = "coverage"
INSTANTIATION_TABLE = "instantiation"

# Column holding the value of interest (outer pipes dropped)
_COVERAGE_COLUMN = 3  # ratio: last column
_INSTANTIATION_COLUMN = 1  # absolute instantiated count

_FIELDS = ("classes", "attributes", "relationships")


def _row_field(line: str) -> tuple[str, list[str]] | None:
    """Return (field, cells) for a classes/attributes/relationships row."""
    if "|" not in line or is_separator_row(line):
        return None
    cells = split_row(line, drop_empty=False)
    label = strip_emphasis(cell(cells, 0) or "").lower()
    if label in _FIELDS:
        return label, cells
    return None


def _table_marker(line: str) -> str | None:
    if "Model Coverage" in line:
        return COVERAGE_TABLE
    if "Instantiation Stats" in line:
        return INSTANTIATION_TABLE
    return None


def _generation_heading(line: str) -> int | None:
    title = heading_text(line, 3)
    if title is None or not title.lower().startswith("gen"):
        return None
    return generation_number(title)


def _walk_simple(content: str):
    """Yield (position, line) with model/generation/table tracked."""
    position = ParsePosition()
    for line in content.splitlines():
        model = heading_text(line, 2)
        if model is not None:
            position = position.at_model(model)
            yield position, None
            continue

        generation = _generation_heading(line)
        if generation is not None:
            position = position.at_generation(generation)
            yield position, None
            continue

        marker = _table_marker(line)
        if marker is not None:
            position = position.at_table(marker)
            continue

        yield position, line


# ============================================================================
# Simple Coverage
# ============================================================================


def parse_simple_coverage(content: str) -> dict[str, dict[int, CoverageMetrics]]:
    """Parse coverage ratios per model and generation.

    Only the first occurrence of each row label per generation is kept:
    the Instantiation Stats table reuses the same labels with values on a
    different scale and must never overwrite the coverage ratios.

    Returns:
        Mapping model -> generation number -> CoverageMetrics.
    """
    result: dict[str, dict[int, CoverageMetrics]] = {}

    for position, line in _walk_simple(content):
        if position.model is not None:
            model_result = result.setdefault(position.model, {})
            if position.generation is not None:
                model_result.setdefault(position.generation, CoverageMetrics())
        if line is None or not position.in_generation:
            continue
        if position.table == INSTANTIATION_TABLE:
            continue

        row = _row_field(line)
        if row is None:
            continue
        field, cells = row
        metrics = result[position.model][position.generation]
        if getattr(metrics, field) is None:
            setattr(metrics, field, float_or_null(cell(cells, _COVERAGE_COLUMN)))

    return result


def parse_simple_instantiation(content: str) -> dict[str, dict[int, CoverageMetrics]]:
    """Parse absolute instantiated counts from the Instantiation Stats table.

    Returns:
        Mapping model -> generation number -> CoverageMetrics of counts.
    """
    result: dict[str, dict[int, CoverageMetrics]] = {}

    for position, line in _walk_simple(content):
        if position.model is not None:
            model_result = result.setdefault(position.model, {})
            if position.generation is not None:
                model_result.setdefault(position.generation, CoverageMetrics())
        if line is None or not position.in_generation:
            continue
        if position.table != INSTANTIATION_TABLE:
            continue

        row = _row_field(line)
        if row is None:
            continue
        field, cells = row
        metrics = result[position.model][position.generation]
        setattr(metrics, field, float_or_null(cell(cells, _INSTANTIATION_COLUMN)))

    return result


# ============================================================================
# CoT Coverage
# ============================================================================


def parse_cot_coverage(content: str) -> dict[str, dict[int, dict[str, CotCoverageCategory]]]:
    """Parse coverage, instantiation and annotations per CoT category.

    Lines under "#### ALL Categories" and unknown category names are skipped.

    Returns:
        Mapping model -> generation number -> category -> CotCoverageCategory.
    """
    result: dict[str, dict[int, dict[str, CotCoverageCategory]]] = {}
    position = ParsePosition()

    for line in content.splitlines():
        stripped = line.strip()

        model = heading_text(line, 2)
        if model is not None:
            position = position.at_model(model)
            result.setdefault(model, {})
            continue

        generation = _generation_heading(line)
        if generation is not None:
            position = position.at_generation(generation)
            if position.in_generation:
                result[position.model].setdefault(generation, {})
            continue

        title = heading_text(line, 4)
        if title is not None:
            category = None if "ALL" in title else normalize_category(title)
            if category is None and "ALL" not in title:
                logger.debug(f"Skipping unknown coverage category: {title!r}")
            position = position.at_category(category)
            if position.in_category:
                result[position.model][position.generation].setdefault(
                    category, CotCoverageCategory()
                )
            continue

        marker = _table_marker(line) if stripped.startswith("|") else None
        if marker is not None:
            position = position.at_table(marker)
            continue

        if not position.in_category:
            continue
        data = result[position.model][position.generation][position.category]

        uncovered = bracketed_list(stripped, "Uncovered")
        if uncovered is not None or stripped.startswith("Uncovered:"):
            if data.uncovered is None:
                data.uncovered = UncoveredData()
            data.uncovered.uncovered = uncovered or []
            continue

        hallucinations = bracketed_list(stripped, "Hallucinations")
        if hallucinations is not None or stripped.startswith("Hallucinations:"):
            if data.uncovered is None:
                data.uncovered = UncoveredData()
            data.uncovered.hallucinations = hallucinations or []
            continue

        if position.table is None:
            continue
        row = _row_field(line)
        if row is None:
            continue
        field, cells = row
        if position.table == COVERAGE_TABLE:
            setattr(data.coverage, field, float_or_null(cell(cells, _COVERAGE_COLUMN)))
        else:
            setattr(data.instantiation, field, float_or_null(cell(cells, _INSTANTIATION_COLUMN)))

    return result
