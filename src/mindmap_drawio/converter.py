"""
Mindmap -> draw.io Conversion
=============================

Runs parse, layout and serialization in order.
"""

import logging
from datetime import datetime
from typing import List, NamedTuple, Optional

from .drawio import flatten, render_drawio
from .layout import CANVAS_HEIGHT, CANVAS_WIDTH, assign_positions
from .models import Edge, MindmapNode
from .parser import parse_mindmap

logger = logging.getLogger(__name__)


class ConversionResult(NamedTuple):
    root: Optional[MindmapNode]
    nodes: List[MindmapNode]
    edges: List[Edge]

    @property
    def is_empty(self) -> bool:
        return self.root is None


def build_mindmap(source_text: str) -> ConversionResult:
    """Parse and lay out ``source_text``; nodes and edges come back in pre-order."""
    root = parse_mindmap(source_text)
    if root is None:
        return ConversionResult(None, [], [])

    assign_positions(root, CANVAS_WIDTH / 2, CANVAS_HEIGHT / 2)
    nodes, edges = flatten(root)
    logger.debug("Laid out %d nodes and %d edges", len(nodes), len(edges))
    return ConversionResult(root, nodes, edges)


def convert(source_text: str, now: Optional[datetime] = None) -> str:
    """Convert Mermaid mindmap text to a draw.io XML document.

    Empty input (blank lines or only the ``mindmap`` directive) yields a
    document with no vertices and no edges.

    Args:
        source_text: Mermaid mindmap source
        now: Fixed clock value for the timestamp and diagram id

    Returns:
        draw.io XML as a string
    """
    result = build_mindmap(source_text)
    return render_drawio(result.nodes, result.edges, now=now)
