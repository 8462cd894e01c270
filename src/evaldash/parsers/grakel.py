"""Graph-kernel document extractor.

Format:
    # Adj, edge, label
    ```
    Adj1: [[0, 1], [1, 0]]
    Labels1: {0: 'Bank', 1: 'Account'}
    Edges1: [(0, 1)]
    ```
    # Kernel 2D table:
    |          | gen1 | gen2 |
    |----------|------|------|
    | **gen1** | 1.0  | 0.5  |
    | **gen2** |      | 1.0  |

Only the upper triangle of the kernel table is written; the lower
triangle is reconstructed by mirroring.
"""

from __future__ import annotations

import ast
import logging
import re

import numpy as np

from evaldash.models.types import GrakelData, GrakelMatrix, GraphData
from evaldash.parsers.primitives import (
    float_or_null,
    is_separator_row,
    split_row,
    strip_emphasis,
)

logger = logging.getLogger(__name__)

GRAPH_SECTION = "# Adj, edge, label"
KERNEL_SECTION = "# Kernel 2D table:"

_DECLARATION_RE = re.compile(r"^(Adj|Labels|Edges)(\d+):\s*(.+)$")
_LABEL_RE = re.compile(r"(\d+)\s*:\s*['\"]([^'\"]+)['\"]")
_EDGE_RE = re.compile(r"\((\d+),\s*(\d+)\)")


# ============================================================================
# Graph declarations
# ============================================================================


def _literal(text: str):
    try:
        return ast.literal_eval(text.strip())
    except (ValueError, SyntaxError, MemoryError, RecursionError):
        return None


def _parse_adjacency(text: str) -> list[list[int]]:
    value = _literal(text)
    if not isinstance(value, (list, tuple)):
        return []
    rows: list[list[int]] = []
    for row in value:
        if not isinstance(row, (list, tuple)):
            return []
        try:
            rows.append([int(item) for item in row])
        except (TypeError, ValueError):
            return []
    return rows


def _parse_labels(text: str) -> dict[int, str]:
    return {int(index): name for index, name in _LABEL_RE.findall(text)}


def _parse_edges(text: str) -> list[tuple[int, int]]:
    return [(int(a), int(b)) for a, b in _EDGE_RE.findall(text)]


def parse_graph_declarations(lines: list[str]) -> list[GraphData]:
    """Parse Adj<i>/Labels<i>/Edges<i> declarations into ordered graphs.

    Graphs are numbered from 1; an index declared by none of the three
    kinds still occupies its slot as an empty graph so positions line up
    with generation numbers.

    Args:
        lines: Lines of the declaration block (fences already removed).

    Returns:
        Graphs for indices 1..max declared index.
    """
    adjacency: dict[int, list[list[int]]] = {}
    labels: dict[int, dict[int, str]] = {}
    edges: dict[int, list[tuple[int, int]]] = {}

    for line in lines:
        match = _DECLARATION_RE.match(line.strip())
        if match is None:
            continue
        kind, index, body = match.group(1), int(match.group(2)), match.group(3)
        if kind == "Adj":
            adjacency[index] = _parse_adjacency(body)
        elif kind == "Labels":
            labels[index] = _parse_labels(body)
        else:
            edges[index] = _parse_edges(body)

    max_index = max([*adjacency, *labels, *edges, 0])
    return [
        GraphData(
            adj=adjacency.get(index, []),
            labels=labels.get(index, {}),
            edges=edges.get(index, []),
        )
        for index in range(1, max_index + 1)
    ]


# ============================================================================
# Kernel matrix
# ============================================================================


def mirror_upper_triangle(rows: dict[int, list[float | None]], size: int) -> list[list[float | None]]:
    """Build a full symmetric matrix from upper-triangular table rows.

    A row holding ``size`` cells is read positionally (blank lower cells
    kept). A shorter row holds only the cells from the diagonal onward.
    Cells that are absent on both sides stay None.

    Args:
        rows: Row index (0-based) -> parsed cell values of that row.
        size: Matrix dimension (number of header labels).

    Returns:
        size x size nested list with M[i][j] == M[j][i].
    """
    matrix = np.full((size, size), np.nan)

    for row, values in rows.items():
        if not 0 <= row < size:
            continue
        offset = 0 if len(values) >= size else row
        for position, value in enumerate(values):
            col = position + offset
            if col < row or col >= size or value is None:
                continue
            matrix[row, col] = value

    missing = np.isnan(matrix) & ~np.isnan(matrix.T)
    matrix = np.where(missing, matrix.T, matrix)

    return [[None if np.isnan(value) else float(value) for value in row] for row in matrix]


def _kernel_rows(lines: list[str]) -> tuple[list[str], dict[int, list[float | None]]]:
    """Header labels and body rows keyed by the header position of their bold label."""
    labels: list[str] = []
    rows: dict[int, list[float | None]] = {}

    for line in lines:
        stripped = line.strip()
        if not stripped.startswith("|") or is_separator_row(stripped):
            continue

        if "**" not in stripped:
            if "gen" in stripped and not labels:
                labels = [c for c in split_row(stripped) if c.lower().startswith("gen")]
            continue

        cells = split_row(stripped, drop_empty=False)
        keys = [label.lower() for label in labels]
        row_label = strip_emphasis(cells[0]).lower() if cells else ""
        if row_label not in keys:
            continue
        rows[keys.index(row_label)] = [float_or_null(value) for value in cells[1:]]

    return labels, rows


def parse_grakel(content: str) -> GrakelData:
    """Parse graph declarations and the kernel similarity matrix.

    Returns:
        GrakelData; kernel is None when the document has no kernel table.
    """
    graph_lines: list[str] = []
    kernel_lines: list[str] = []
    section: str | None = None

    for line in content.splitlines():
        stripped = line.strip()
        if stripped == GRAPH_SECTION:
            section = GRAPH_SECTION
            continue
        if stripped == KERNEL_SECTION:
            section = KERNEL_SECTION
            continue
        if stripped.startswith("```"):
            continue
        if section == GRAPH_SECTION:
            graph_lines.append(line)
        elif section == KERNEL_SECTION:
            kernel_lines.append(line)

    graphs = parse_graph_declarations(graph_lines)
    labels, rows = _kernel_rows(kernel_lines)

    kernel = None
    if labels and rows:
        kernel = GrakelMatrix(labels=labels, values=mirror_upper_triangle(rows, len(labels)))
    else:
        logger.debug("No kernel table found")

    return GrakelData(graphs=graphs, kernel=kernel)
