"""Judge verdict extractors.

Vertical results (per model):
    | Metric       | Value  |
    |--------------|--------|
    | Realistic    | **20** |
    | Unrealistic  | 10     |
    | Unknown      | 0      |
    | Success Rate | 66.67% |

Horizontal results (global file):
    | Model    | Realistic | Unrealistic | Unknown | Success Rate |
    |----------|-----------|-------------|---------|--------------|
    | **Bank** | 20        | 10          | 0       | 66.67        |

Responses (per model: sequential "# output.soil" / "# genN" blocks;
global: "# <model>" then "## genN"):
    **Response**: Realistic
    **Why**: The instance correctly represents...
"""

from __future__ import annotations

import re

from evaldash.aggregation.stats import success_rate
from evaldash.models.types import JudgeResponse, JudgeResult, Verdict
from evaldash.parsers.primitives import (
    cell,
    float_or_null,
    generation_number,
    int_or_null,
    is_separator_row,
    split_row,
    strip_emphasis,
)

_RESPONSE_RE = re.compile(r"\*\*Response\*\*:?\s*(\w+)", re.IGNORECASE)
_WHY_RE = re.compile(r"\*\*Why\*\*:?\s*(.*)", re.IGNORECASE)
_BLOCK_RE = re.compile(r"^# (?:output\.soil|gen\d+)", re.IGNORECASE)
_GLOBAL_GEN_RE = re.compile(r"^## gen\d+", re.IGNORECASE)
_GLOBAL_MODEL_RE = re.compile(r"^# [^#]")
_GLOBAL_MODEL_EXCLUDES = ("GPT", "Simple", "CoT")


def normalize_verdict(word: str) -> Verdict:
    """Map a one-word verdict to Realistic/Unrealistic, else Unknown."""
    word = word.strip().lower()
    if word == "realistic":
        return "Realistic"
    if word == "unrealistic":
        return "Unrealistic"
    return "Unknown"


def _percent_fraction(text: str | None) -> float | None:
    value = float_or_null(strip_emphasis(text or ""))
    return value / 100 if value is not None else None


def _rounded(text: str | None) -> int | None:
    value = float_or_null(strip_emphasis(text or ""))
    return round(value) if value is not None else None


# ============================================================================
# Aggregate results
# ============================================================================


def parse_judge_results(content: str) -> JudgeResult:
    """Parse the vertical two-column verdict table of one model.

    The success rate is converted from a percentage to a 0-1 fraction.
    """
    result = JudgeResult()

    for line in content.splitlines():
        stripped = line.strip()
        if "|" not in stripped or is_separator_row(stripped):
            continue
        cells = split_row(stripped, drop_empty=False)
        label = strip_emphasis(cell(cells, 0) or "").lower()
        value = strip_emphasis(cell(cells, 1) or "")

        if label == "realistic":
            result.realistic = int_or_null(value)
        elif label == "unrealistic":
            result.unrealistic = int_or_null(value)
        elif label == "unknown":
            result.unknown = int_or_null(value)
        elif label == "success rate":
            result.success_rate = _percent_fraction(value)

    return result


def parse_global_judge_results(content: str) -> dict[str, JudgeResult]:
    """Parse the horizontal one-row-per-model verdict table.

    The header row, separator rows and the "Total" row are skipped. Cells
    missing from a short row leave their field None. Counts are rounded to
    integers.

    Returns:
        Mapping of model name (emphasis stripped, original case) to result.
    """
    result: dict[str, JudgeResult] = {}

    for line in content.splitlines():
        stripped = line.strip()
        if not stripped.startswith("|") or "---" in stripped or "Realistic" in stripped:
            continue
        cells = split_row(stripped, drop_empty=False)
        name = strip_emphasis(cell(cells, 0) or "")
        if not name or name.lower() == "total":
            continue

        result[name] = JudgeResult(
            realistic=_rounded(cell(cells, 1)),
            unrealistic=_rounded(cell(cells, 2)),
            unknown=_rounded(cell(cells, 3)),
            success_rate=_percent_fraction(cell(cells, 4)),
        )

    return result


def derive_judge_result(responses: dict[int, JudgeResponse]) -> JudgeResult:
    """Recompute the verdict tally from per-generation responses.

    Responses without a recognized verdict count as Unknown.
    """
    flags = [r.response == "Realistic" for r in responses.values()]
    realistic = sum(flags)
    unrealistic = sum(1 for r in responses.values() if r.response == "Unrealistic")

    return JudgeResult(
        realistic=realistic,
        unrealistic=unrealistic,
        unknown=len(flags) - realistic - unrealistic,
        success_rate=success_rate(flags),
    )


# ============================================================================
# Per-generation responses
# ============================================================================


class _ResponseReader:
    """Accumulates one response block's verdict and rationale."""

    def __init__(self) -> None:
        self.verdict: Verdict | None = None
        self.why = ""
        self.in_why = False

    def feed(self, stripped: str) -> None:
        if "**Response**" in stripped:
            match = _RESPONSE_RE.search(stripped)
            if match:
                self.verdict = normalize_verdict(match.group(1))
            self.in_why = False
            return

        if "**Why**" in stripped:
            match = _WHY_RE.search(stripped)
            if match:
                self.why = match.group(1).strip()
                self.in_why = True
            return

        if self.in_why and stripped and not stripped.startswith("#"):
            self.why = f"{self.why} {stripped}"

    def build(self) -> JudgeResponse:
        return JudgeResponse(response=self.verdict, why=self.why.strip() or None)


def parse_judge_responses(content: str) -> dict[int, JudgeResponse]:
    """Parse sequential response blocks of one model.

    Blocks are numbered in document order starting at 1, whatever their
    heading says.

    Returns:
        Mapping generation number -> JudgeResponse.
    """
    result: dict[int, JudgeResponse] = {}
    number = 0
    reader: _ResponseReader | None = None

    for line in content.splitlines():
        stripped = line.strip()

        if _BLOCK_RE.match(stripped):
            if reader is not None:
                result[number] = reader.build()
            number += 1
            reader = _ResponseReader()
            continue

        if reader is not None:
            reader.feed(stripped)

    if reader is not None:
        result[number] = reader.build()

    return result


def _global_model_heading(line: str) -> str | None:
    if not _GLOBAL_MODEL_RE.match(line):
        return None
    if any(marker in line for marker in _GLOBAL_MODEL_EXCLUDES):
        return None
    return strip_emphasis(line[2:])


def parse_global_judge_responses(content: str) -> dict[str, dict[int, JudgeResponse]]:
    """Parse "# <model>" / "## genN" response blocks of every model.

    Top-level headings mentioning GPT, Simple or CoT are document titles,
    not models.

    Returns:
        Mapping model name -> generation number -> JudgeResponse.
    """
    result: dict[str, dict[int, JudgeResponse]] = {}
    model: str | None = None
    generation: int | None = None
    reader: _ResponseReader | None = None

    def save() -> None:
        if model is not None and generation is not None and reader is not None:
            result.setdefault(model, {})[generation] = reader.build()

    for line in content.splitlines():
        heading = _global_model_heading(line)
        if heading is not None:
            save()
            model, generation, reader = heading, None, None
            continue

        if _GLOBAL_GEN_RE.match(line):
            save()
            generation = generation_number(line)
            reader = _ResponseReader()
            continue

        if model is None or reader is None:
            continue
        reader.feed(line.strip())

    save()
    return result
