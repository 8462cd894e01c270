"""Primitive parsing helpers shared by every extractor.

Absence and non-numeric text are reported as None rather than zero.
None of these functions raise on malformed input.
"""

from __future__ import annotations

import math
import re

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INT_RE = re.compile(r"^[+-]?\d+")
_SEPARATOR_RE = re.compile(r"^\|[\s\-:|]+\|$")
_GEN_RE = re.compile(r"gen(\d+)", re.IGNORECASE)


def number_or_null(text: str | None) -> int | float | None:
    """Parse the leading numeric literal of text.

    Trailing units are ignored ("5.12$" -> 5.12, "66.67%" -> 66.67).

    Args:
        text: Raw cell or field text.

    Returns:
        int for an integral literal without a decimal part, finite float
        otherwise, or None if empty or unparseable.

    Examples:
        >>> number_or_null("42")
        42
        >>> number_or_null("4.0")
        4.0
        >>> number_or_null("n/a") is None
        True
    """
    if text is None:
        return None
    match = _NUMBER_RE.match(text.strip())
    if match is None:
        return None
    literal = match.group(0)
    if _INT_RE.fullmatch(literal):
        return int(literal)
    value = float(literal)
    return value if math.isfinite(value) else None


def float_or_null(text: str | None) -> float | None:
    """Parse the leading number of text as a float."""
    value = number_or_null(text)
    if value is None:
        return None
    try:
        return float(value)
    except OverflowError:
        return None


def int_or_null(text: str | None) -> int | None:
    """Parse the leading integer literal of text ("12.9" -> 12)."""
    if text is None:
        return None
    match = _INT_RE.match(text.strip())
    return int(match.group(0)) if match else None


def strip_emphasis(text: str) -> str:
    """Remove markdown bold markers so labels compare equal."""
    return text.replace("**", "").strip()


def split_row(line: str, drop_empty: bool = True) -> list[str]:
    """Split a pipe-delimited table line into trimmed cells.

    Args:
        line: Table line such as "| a | b |".
        drop_empty: Drop every empty cell. When False only the outer cells
            produced by the leading/trailing pipes are dropped, so inner
            blank cells keep their position.

    Returns:
        List of cell strings.
    """
    cells = [cell.strip() for cell in line.strip().split("|")]
    if drop_empty:
        return [cell for cell in cells if cell]
    if cells and cells[0] == "":
        cells = cells[1:]
    if cells and cells[-1] == "":
        cells = cells[:-1]
    return cells


def is_separator_row(line: str) -> bool:
    """Detect a table separator line such as |---|:---:|."""
    return bool(_SEPARATOR_RE.match(line.strip()))


def cell(cells: list[str], index: int) -> str | None:
    """Return cells[index] or None when the row is too short."""
    if 0 <= index < len(cells):
        return cells[index]
    return None


def generation_number(text: str) -> int | None:
    """Extract N from an identifier like "gen12"."""
    match = _GEN_RE.search(text)
    return int(match.group(1)) if match else None


def generation_id(number: int) -> str:
    """Format the generation identifier used in output records."""
    return f"gen{number}"


def bracketed_list(text: str, label: str) -> list[str] | None:
    """Parse "Label: [a, b, c]" into its comma-separated items.

    Returns:
        The item list, or None if text is not a "Label: [...]" line.
    """
    match = re.match(rf"^{re.escape(label)}:\s*\[(.*?)\]", text.strip())
    if match is None:
        return None
    return [item.strip() for item in match.group(1).split(",") if item.strip()]
