"""Price document extractor.

Format:
    # Simple
    ## Bank
    precio: 5.12$
    token-input: 12000
    token-output: 4800
    ## All Systems
    ...
    # CoT
    ## Bank
    ...
"""

from __future__ import annotations

from evaldash.models.domain import ModelPrices, TotalPrices
from evaldash.models.types import PriceInfo
from evaldash.parsers.position import ParsePosition, heading_text
from evaldash.parsers.primitives import float_or_null, int_or_null

AGGREGATE_SECTION = "All Systems"

_MODES = {"Simple": "simple", "CoT": "cot"}


def _mode_of(line: str) -> str | None:
    title = heading_text(line.strip(), 1)
    if title is None:
        return None
    for prefix, mode in _MODES.items():
        if title.startswith(prefix):
            return mode
    return None


def _is_aggregate(name: str | None) -> bool:
    return name is not None and name.casefold() == AGGREGATE_SECTION.casefold()


def _is_placeholder(name: str) -> bool:
    return _is_aggregate(name) or "..." in name


def _apply_price_field(info: PriceInfo, line: str) -> None:
    if line.startswith("precio:"):
        info.price = float_or_null(line[len("precio:") :].replace("$", ""))
    elif line.startswith("token-input:"):
        info.token_input = int_or_null(line[len("token-input:") :])
    elif line.startswith("token-output:"):
        info.token_output = int_or_null(line[len("token-output:") :])


def _walk(content: str):
    """Yield (position, stripped line) for every non-heading line.

    The position's table slot carries the mode ("simple"/"cot").
    """
    position = ParsePosition()
    for raw in content.splitlines():
        line = raw.strip()

        mode = _mode_of(line)
        if mode is not None:
            position = position.reset().at_table(mode)
            continue

        section = heading_text(line, 2)
        if section is not None:
            mode = position.table
            position = position.at_model(section).at_table(mode)
            continue

        yield position, line


def parse_price(content: str) -> dict[str, ModelPrices]:
    """Parse per-model prices for both modes.

    Placeholder sections ("All Systems", names containing "...") are
    excluded from the per-model result.

    Args:
        content: Raw markdown text.

    Returns:
        Mapping of model name to ModelPrices.
    """
    result: dict[str, ModelPrices] = {}

    for position, line in _walk(content):
        mode = position.table
        if mode is None or position.model is None or _is_placeholder(position.model):
            continue

        prices = result.setdefault(position.model, ModelPrices())
        info = getattr(prices, mode)
        if info is None:
            info = PriceInfo()
            setattr(prices, mode, info)
        _apply_price_field(info, line)

    return result


def parse_total_prices(content: str) -> TotalPrices:
    """Parse the cross-model totals from the aggregate section of each mode."""
    totals = TotalPrices()

    for position, line in _walk(content):
        if position.table is None or not _is_aggregate(position.model):
            continue
        _apply_price_field(getattr(totals, position.table), line)

    return totals
