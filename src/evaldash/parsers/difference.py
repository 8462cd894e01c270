"""Diversity (difference) extractors.

Simple format:
    ## Bank
    | Generations | Numeric | StringEquals | StringLv |
    |---|---|---|---|
    | gen1 | 1.0000 | 1.0000 | 0.7762 |
    | ALL Gen | 0.9639 | 0.9997 | 0.8372 |

CoT format:
    ## Bank
    | gen1 | Numeric | StringEquals | StringLv |
    |---|---|---|---|
    | invalid | 0.9778 | 1.0000 | 0.8343 |
    | ALL Categories | 0.9684 | 0.9998 | 0.8722 |

    | ALL Generations | Numeric | StringEquals | StringLv |
    |---|---|---|---|
    | ALL Generations | 0.9790 | 0.9992 | 0.8814 |

Combined format keeps only the "ALL Generations" row of each model.
"""

from __future__ import annotations

import re

from evaldash.models.domain import (
    CotDifferenceGeneration,
    CotDifferenceModel,
    SimpleDifferenceModel,
)
from evaldash.models.types import DiversityMetrics
from evaldash.parsers.position import ParsePosition, heading_text, normalize_category
from evaldash.parsers.primitives import (
    cell,
    float_or_null,
    generation_number,
    is_separator_row,
    split_row,
    strip_emphasis,
)

ALL_GENERATIONS_LABELS = ("all gen", "all generations")
ALL_CATEGORIES_LABEL = "all categories"

_GEN_LABEL_RE = re.compile(r"^gen\d+$", re.IGNORECASE)
_ALL_GENERATIONS_TABLE = "all-generations"


def _diversity_row(cells: list[str]) -> DiversityMetrics:
    return DiversityMetrics(
        numeric=float_or_null(cell(cells, 1)),
        string_equals=float_or_null(cell(cells, 2)),
        string_lv=float_or_null(cell(cells, 3)),
    )


def _table_rows(content: str):
    """Yield (position, cells) for table rows; headings update the model.

    Header rows (second cell "Numeric") are yielded too, with the
    position's table slot left to the caller.
    """
    position = ParsePosition()
    for line in content.splitlines():
        model = heading_text(line, 2)
        if model is not None:
            position = position.at_model(model)
            yield position, None
            continue
        if "|" not in line or is_separator_row(line):
            continue
        cells = split_row(line, drop_empty=False)
        if cells:
            yield position, cells


def _row_label(cells: list[str]) -> str:
    return strip_emphasis(cell(cells, 0) or "").lower()


def _is_header(cells: list[str]) -> bool:
    return (cell(cells, 1) or "").strip().lower() == "numeric"


def parse_simple_difference(content: str) -> dict[str, SimpleDifferenceModel]:
    """Parse per-generation rows and the all-generations row per model."""
    result: dict[str, SimpleDifferenceModel] = {}

    for position, cells in _table_rows(content):
        if position.model is None:
            continue
        model = result.setdefault(position.model, SimpleDifferenceModel())
        if cells is None or _is_header(cells):
            continue

        label = _row_label(cells)
        if label in ALL_GENERATIONS_LABELS:
            model.all_generations = _diversity_row(cells)
        elif _GEN_LABEL_RE.match(label):
            model.generations[generation_number(label)] = _diversity_row(cells)

    return result


def parse_cot_difference(content: str) -> dict[str, CotDifferenceModel]:
    """Parse per-generation/per-category diversity and the model summary.

    Each "| genN | Numeric | ..." header opens a generation sub-table whose
    rows are categories plus an "ALL Categories" summary. The separate
    "| ALL Generations | Numeric | ..." table carries the model-level row.
    """
    result: dict[str, CotDifferenceModel] = {}
    position = ParsePosition()

    for row_position, cells in _table_rows(content):
        if row_position.model != position.model:
            position = position.at_model(row_position.model)
        if position.model is None:
            continue
        model = result.setdefault(position.model, CotDifferenceModel())
        if cells is None:
            continue

        label = _row_label(cells)

        if _is_header(cells):
            if _GEN_LABEL_RE.match(label):
                position = position.at_generation(generation_number(label))
                model.generations.setdefault(position.generation, CotDifferenceGeneration())
            elif label in ALL_GENERATIONS_LABELS:
                position = position.at_generation(None).at_table(_ALL_GENERATIONS_TABLE)
            continue

        if position.table == _ALL_GENERATIONS_TABLE:
            if label in ALL_GENERATIONS_LABELS:
                model.all_generations = _diversity_row(cells)
            continue

        if position.generation is None:
            continue
        generation = model.generations[position.generation]
        if label == ALL_CATEGORIES_LABEL:
            generation.all_categories = _diversity_row(cells)
            continue
        category = normalize_category(label)
        if category is not None:
            generation.categories[category] = _diversity_row(cells)

    return result


def parse_combined_difference(content: str) -> dict[str, DiversityMetrics]:
    """Parse the cross-mode "ALL Generations" row of each model."""
    result: dict[str, DiversityMetrics] = {}

    for position, cells in _table_rows(content):
        if position.model is None or cells is None or _is_header(cells):
            continue
        if _row_label(cells) == "all generations":
            result[position.model] = _diversity_row(cells)

    return result
