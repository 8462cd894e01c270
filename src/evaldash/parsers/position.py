"""Parse position threaded through every extractor's line loop.

A position is model -> generation -> category -> table. Entering a
level returns a new position with every lower level cleared; the value
itself is never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from evaldash.config import COT_CATEGORIES


@dataclass(frozen=True)
class ParsePosition:
    """Current heading/table context of a document walk."""

    model: str | None = None
    generation: int | None = None
    category: str | None = None
    table: str | None = None

    def at_model(self, model: str | None) -> ParsePosition:
        return ParsePosition(model=model)

    def at_generation(self, generation: int | None) -> ParsePosition:
        return ParsePosition(model=self.model, generation=generation)

    def at_category(self, category: str | None) -> ParsePosition:
        return ParsePosition(model=self.model, generation=self.generation, category=category)

    def at_table(self, table: str | None) -> ParsePosition:
        return replace(self, table=table)

    def without_table(self) -> ParsePosition:
        return replace(self, table=None)

    def reset(self) -> ParsePosition:
        return ParsePosition()

    @property
    def in_generation(self) -> bool:
        """True when both a model and a generation are set."""
        return self.model is not None and self.generation is not None

    @property
    def in_category(self) -> bool:
        return self.in_generation and self.category is not None


def normalize_category(text: str) -> str | None:
    """Map a heading or row label to one of the fixed CoT categories.

    Matching is case-insensitive; anything else yields None.
    """
    name = text.strip().lower()
    return name if name in COT_CATEGORIES else None


def heading_text(line: str, level: int) -> str | None:
    """Return the text of a heading of exactly the given level.

    heading_text("## Bank", 2) -> "Bank"; heading_text("### gen1", 2) -> None.
    """
    prefix = "#" * level + " "
    if line.startswith(prefix):
        return line[len(prefix) :].strip()
    return None
