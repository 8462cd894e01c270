"""Validation metrics extractors (per-model metrics.md).

Simple format:
    # Generation 1
    ```soil ...```
    ## Generation 1 summary
    | General | Errors | Total | Failure (%) |
    |---|---|---|---|
    | Syntax Errors | 0 | 59 | 0.00% |
    | Multiplicities Errors | 0 | 16 | 0.00% |
    | Invariants Errors | 0 | 2 | 0.00% |

    | Bank | Invalid | Total | Failure (%) |
    |---|---|---|---|
    | IBANs | 5 | 5 | 100.00% |

    | Failed IBANs |
    |---|
    ```ES00 0000```

CoT format nests "## Category <name>" sections under each generation. The
invalid category adds an "[Overconstraints Detection]" table whose
"(Not included on General)" rows are kept apart from the main tally.
"""

from __future__ import annotations

import logging
import re

from evaldash.models.domain import CotMetricsCategory, SimpleMetricsGeneration
from evaldash.models.types import DomainValidationEntry, Overconstraints
from evaldash.parsers.position import ParsePosition, normalize_category
from evaldash.parsers.primitives import (
    cell,
    float_or_null,
    int_or_null,
    is_separator_row,
    split_row,
)

logger = logging.getLogger(__name__)

GENERAL_TABLE = "general"
OVERCONSTRAINTS_TABLE = "overconstraints"
DOMAIN_TABLE = "domain"
FAILED_TABLE_PREFIX = "failed:"

_TERMINATOR_RE = re.compile(r"^# Summary for all generations", re.IGNORECASE)
_GENERATION_RE = re.compile(r"^# Generation (\d+)")
_CATEGORY_RE = re.compile(r"^## Category (.+)$", re.IGNORECASE)
_GENERATION_SUMMARY_RE = re.compile(r"^## Generation \d+ summary", re.IGNORECASE)
_DOMAIN_HEADER_RE = re.compile(r"^\|[^|]+\|\s*Invalid\s*\|\s*Total\s*\|\s*Failure", re.IGNORECASE)
_DOMAIN_ROW_RE = re.compile(r"^\|[^|]+\|\s*\d+")
_FAILED_HEADER_RE = re.compile(r"^\|\s*Failed\s+([^|]+?)\s*\|$")

_ERROR_ROWS = {
    "syntax errors": "syntax",
    "multiplicities errors": "multiplicities",
    "invariants errors": "invariants",
}
_EXCLUDED_MARKER = "not included"


def _error_row(cells: list[str]) -> tuple[str, bool] | None:
    """Return (kind, excluded) for a Syntax/Multiplicities/Invariants row."""
    label = (cell(cells, 0) or "").replace("**", "").strip().lower()
    for prefix, kind in _ERROR_ROWS.items():
        if label.startswith(prefix):
            return kind, _EXCLUDED_MARKER in label
    return None


def _domain_entry(cells: list[str]) -> DomainValidationEntry | None:
    name = cell(cells, 0)
    if not name:
        return None
    failure = float_or_null(cell(cells, 3))
    return DomainValidationEntry(
        name=name,
        invalid=int_or_null(cell(cells, 1)),
        total=int_or_null(cell(cells, 2)),
        failure_rate=failure / 100 if failure is not None else None,
    )


def _failed_kind(table: str | None) -> str | None:
    if table is None or not table.startswith(FAILED_TABLE_PREFIX):
        return None
    return table[len(FAILED_TABLE_PREFIX) :]


def _append_failed_item(entries: list[DomainValidationEntry] | None, kind: str, value: str) -> None:
    if not entries or not value:
        return
    for entry in entries:
        if entry.name.lower() == kind.lower():
            entry.failed_items.append(value)
            return


def _read_validation_line(
    target: SimpleMetricsGeneration | CotMetricsCategory,
    position: ParsePosition,
    line: str,
) -> ParsePosition:
    """Apply one line to the generation/category record it belongs to.

    Returns:
        The position after the line (only its table slot ever changes).
    """
    stripped = line.strip()

    if "[Overconstraints Detection]" in stripped:
        return position.at_table(OVERCONSTRAINTS_TABLE)
    if "| General |" in stripped:
        return position.at_table(GENERAL_TABLE)

    if _DOMAIN_HEADER_RE.match(stripped) and "General" not in stripped:
        if target.domain_validation is None:
            target.domain_validation = []
        return position.at_table(DOMAIN_TABLE)

    failed = _FAILED_HEADER_RE.match(stripped)
    if failed:
        return position.at_table(FAILED_TABLE_PREFIX + failed.group(1))

    if position.table == DOMAIN_TABLE and _DOMAIN_ROW_RE.match(stripped):
        entry = _domain_entry(split_row(stripped, drop_empty=False))
        if entry is not None and target.domain_validation is not None:
            target.domain_validation.append(entry)
        return position

    kind = _failed_kind(position.table)
    if kind is not None and stripped.startswith("```") and len(stripped) > 3:
        _append_failed_item(target.domain_validation, kind, stripped.replace("`", "").strip())
        return position

    if "|" in stripped and not is_separator_row(stripped):
        cells = split_row(stripped, drop_empty=False)
        row = _error_row(cells)
        if row is None:
            return position
        name, excluded = row
        errors, total = int_or_null(cell(cells, 1)), int_or_null(cell(cells, 2))

        if excluded:
            overconstraints = getattr(target, "overconstraints", None)
            if (
                position.table == OVERCONSTRAINTS_TABLE
                and overconstraints is not None
                and name != "syntax"
            ):
                setattr(overconstraints, f"{name}_errors", errors)
                setattr(overconstraints, f"{name}_total", total)
        elif position.table not in (OVERCONSTRAINTS_TABLE, DOMAIN_TABLE):
            setattr(target.errors, f"{name}_errors", errors)
            setattr(target.errors, f"{name}_total", total)
        return position

    if stripped.startswith("#"):
        return position.without_table()
    if stripped == "" and position.table == DOMAIN_TABLE:
        return position.without_table()
    return position


# ============================================================================
# Simple Metrics
# ============================================================================


def parse_simple_metrics(content: str) -> dict[int, SimpleMetricsGeneration]:
    """Parse validation errors and domain validations per generation.

    Parsing stops at "# Summary for all generations" so pre-aggregated
    totals never leak into the last generation.

    Returns:
        Mapping generation number -> SimpleMetricsGeneration.
    """
    result: dict[int, SimpleMetricsGeneration] = {}
    position = ParsePosition()

    for line in content.splitlines():
        if _TERMINATOR_RE.match(line):
            break

        match = _GENERATION_RE.match(line)
        if match:
            position = position.at_generation(int(match.group(1)))
            result.setdefault(position.generation, SimpleMetricsGeneration())
            continue

        if position.generation is None:
            continue
        position = _read_validation_line(result[position.generation], position, line)

    return result


# ============================================================================
# CoT Metrics
# ============================================================================


def parse_cot_metrics(content: str) -> dict[int, dict[str, CotMetricsCategory]]:
    """Parse validation errors per generation and category.

    The generation summary sections are skipped. Only the invalid category
    carries an Overconstraints record.

    Returns:
        Mapping generation number -> category -> CotMetricsCategory.
    """
    result: dict[int, dict[str, CotMetricsCategory]] = {}
    position = ParsePosition()

    for line in content.splitlines():
        if _TERMINATOR_RE.match(line):
            break

        match = _GENERATION_RE.match(line)
        if match:
            position = position.at_generation(int(match.group(1)))
            result.setdefault(position.generation, {})
            continue

        match = _CATEGORY_RE.match(line)
        if match:
            if position.generation is None:
                continue
            category = normalize_category(match.group(1))
            if category is None:
                logger.debug(f"Skipping unknown metrics category: {match.group(1)!r}")
            else:
                result[position.generation].setdefault(
                    category,
                    CotMetricsCategory(
                        overconstraints=Overconstraints() if category == "invalid" else None
                    ),
                )
            position = position.at_category(category)
            continue

        if _GENERATION_SUMMARY_RE.match(line):
            position = position.at_category(None)
            continue

        if position.generation is None or position.category is None:
            continue
        category_result = result[position.generation][position.category]
        position = _read_validation_line(category_result, position, line)

    return result
