"""Token usage extractors (per-model logs.md).

Format:
    # Input ISimple : gen1          (CoT: # Input ICoT_baseline : gen1)
    ... prompt ...
    |Response|
    |---|
    Finish Reason: STOP
    Input Tokens: 670
    Output Tokens: 592
"""

from __future__ import annotations

import re

from evaldash.models.types import TokenCounts
from evaldash.parsers.position import ParsePosition, normalize_category
from evaldash.parsers.primitives import int_or_null

RESPONSE_MARKER = "|Response|"
RESPONSE_TABLE = "response"

_SIMPLE_INPUT_RE = re.compile(r"^# Input\s+ISimple\s*:\s*gen(\d+)", re.IGNORECASE)
_COT_INPUT_RE = re.compile(r"^# Input\s+ICoT_(\w+)\s*:\s*gen(\d+)", re.IGNORECASE)


def _read_token_line(counts: TokenCounts, position: ParsePosition, stripped: str) -> ParsePosition:
    """Consume one line of a request block.

    Token fields count only after the response marker; the output field
    closes the block.
    """
    if stripped == RESPONSE_MARKER:
        return position.at_table(RESPONSE_TABLE)
    if stripped.startswith("# Input"):
        return position.without_table()
    if position.table != RESPONSE_TABLE:
        return position

    if stripped.startswith("Input Tokens:"):
        counts.input = int_or_null(stripped[len("Input Tokens:") :])
    elif stripped.startswith("Output Tokens:"):
        counts.output = int_or_null(stripped[len("Output Tokens:") :])
        return position.without_table()
    return position


def parse_simple_logs(content: str) -> dict[int, TokenCounts]:
    """Parse token counts per generation.

    Returns:
        Mapping generation number -> TokenCounts.
    """
    result: dict[int, TokenCounts] = {}
    position = ParsePosition()

    for line in content.splitlines():
        stripped = line.strip()

        match = _SIMPLE_INPUT_RE.match(stripped)
        if match:
            position = position.at_generation(int(match.group(1)))
            result.setdefault(position.generation, TokenCounts())
            continue

        if position.generation is None:
            continue
        position = _read_token_line(result[position.generation], position, stripped)

    return result


def parse_cot_logs(content: str) -> dict[int, dict[str, TokenCounts]]:
    """Parse token counts per generation and category.

    Requests for unknown categories are ignored.

    Returns:
        Mapping generation number -> category -> TokenCounts.
    """
    result: dict[int, dict[str, TokenCounts]] = {}
    position = ParsePosition()

    for line in content.splitlines():
        stripped = line.strip()

        match = _COT_INPUT_RE.match(stripped)
        if match:
            category = normalize_category(match.group(1))
            if category is not None:
                position = position.at_generation(int(match.group(2))).at_category(category)
                result.setdefault(position.generation, {}).setdefault(category, TokenCounts())
            else:
                position = position.reset()
            continue

        if position.generation is None or position.category is None:
            continue
        counts = result[position.generation][position.category]
        position = _read_token_line(counts, position, stripped)

    return result
