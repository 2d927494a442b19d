"""
draw.io Serializer
==================

Writes a laid-out mindmap tree as a draw.io ``mxfile`` document.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from .layout import CANVAS_HEIGHT, CANVAS_WIDTH
from .models import Edge, MindmapNode, Shape

HOST = "app.diagrams.net"
AGENT = "Mermaid-Mindmap-Converter"
VERSION = "21.0.0"
DIAGRAM_NAME = "Mindmap"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

BASE_NODE_STYLE = "rounded=1;whiteSpace=wrap;html=1;overflow=hidden;"
BASE_EDGE_STYLE = (
    "edgeStyle=entityRelationEdgeStyle;curved=1;rounded=0;orthogonalLoop=1;"
    "jettySize=auto;html=1;endArrow=none;strokeWidth=2;"
)

ACCENT_COLORS = "fillColor=#d5e8d4;strokeColor=#82b366;fontStyle=1;"
BRANCH_COLORS = "fillColor=#fff2cc;strokeColor=#d6b656;"
LEAF_COLORS = "fillColor=#f8cecc;strokeColor=#b85450;"

_XML_ESCAPES = {
    '<': '&lt;',
    '>': '&gt;',
    '&': '&amp;',
    "'": '&#39;',
    '"': '&quot;',
}


def escape_xml(text: str) -> str:
    return ''.join(_XML_ESCAPES.get(c, c) for c in text)


def _num(value: float) -> str:
    """Format a coordinate without a trailing ``.0``."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


# ============================================================================
# Graph flattening
# ============================================================================

def flatten(root: MindmapNode) -> Tuple[List[MindmapNode], List[Edge]]:
    """Collect nodes and parent->child edges, both in pre-order."""
    nodes: List[MindmapNode] = []
    edges: List[Edge] = []

    # (node, parent) pairs; an edge is emitted just before its child is visited
    stack: List[Tuple[MindmapNode, Optional[MindmapNode]]] = [(root, None)]
    while stack:
        node, parent = stack.pop()
        if parent is not None:
            edges.append(Edge(source=parent.id, target=node.id))
        nodes.append(node)
        stack.extend((child, node) for child in reversed(node.children))

    return nodes, edges


def connector_sides(source: MindmapNode, target: MindmapNode) -> Tuple[int, int]:
    """Return ``(exitX, entryX)``: 0 is the left side of a cell, 1 the right.

    A target left of its source leaves the source on the left and enters
    the target on the right; anything else goes the other way.
    """
    if target.x < source.x:
        return 0, 1
    return 1, 0


# ============================================================================
# Styles
# ============================================================================

def font_size(level: int) -> int:
    if level == 0:
        return 14
    if level == 1:
        return 12
    return 11


def node_style(shape: Shape, level: int) -> str:
    style = BASE_NODE_STYLE + f"fontSize={font_size(level)};"

    if shape == Shape.CIRCLE or level == 0:
        style += ACCENT_COLORS
    elif level == 1:
        style += BRANCH_COLORS
    else:
        style += LEAF_COLORS

    return style


def edge_style(exit_x: int, entry_x: int) -> str:
    return BASE_EDGE_STYLE + f"exitX={exit_x};exitY=0.5;entryX={entry_x};entryY=0.5;"


# ============================================================================
# Document
# ============================================================================

def _timestamp(now: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. ``2024-05-01T12:00:00.000Z``."""
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"


def _vertex_cell(node: MindmapNode) -> str:
    return (
        f'        <mxCell id="{node.id}" value="{escape_xml(node.text)}" '
        f'style="{node_style(node.shape, node.level)}" vertex="1" parent="1">\n'
        f'          <mxGeometry x="{_num(node.x)}" y="{_num(node.y)}" '
        f'width="{_num(node.width)}" height="{_num(node.height)}" as="geometry"/>\n'
        f'        </mxCell>'
    )


def _edge_cell(index: int, edge: Edge, source: MindmapNode, target: MindmapNode) -> str:
    exit_x, entry_x = connector_sides(source, target)
    return (
        f'        <mxCell id="conn{index + 2}" style="{edge_style(exit_x, entry_x)}" '
        f'edge="1" parent="1" source="{edge.source}" target="{edge.target}">\n'
        f'          <mxGeometry relative="1" as="geometry"/>\n'
        f'        </mxCell>'
    )


def render_drawio(nodes: List[MindmapNode], edges: List[Edge],
                  now: Optional[datetime] = None) -> str:
    """Create the draw.io XML document for laid-out nodes and their edges.

    Args:
        nodes: Nodes with geometry, in output order
        edges: Edges between those nodes
        now: Clock value for ``modified`` and the diagram id (defaults to now)

    Returns:
        The complete ``mxfile`` document as a string
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    diagram_id = f"diagram_{(now - EPOCH) // timedelta(milliseconds=1)}"
    by_id = {node.id: node for node in nodes}

    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<mxfile host="{HOST}" modified="{_timestamp(now)}" agent="{AGENT}" version="{VERSION}">',
        f'  <diagram name="{DIAGRAM_NAME}" id="{diagram_id}">',
        f'    <mxGraphModel dx="1000" dy="600" grid="1" gridSize="10" guides="1" tooltips="1" '
        f'connect="1" arrows="1" fold="1" page="1" pageScale="1" pageWidth="{CANVAS_WIDTH}" '
        f'pageHeight="{CANVAS_HEIGHT}" math="0" shadow="0">',
        '      <root>',
        '        <mxCell id="0"/>',
        '        <mxCell id="1" parent="0"/>',
    ]

    # One block each for vertices and edges; an empty block leaves a blank line
    parts.append('\n'.join(_vertex_cell(node) for node in nodes))
    parts.append('\n'.join(
        _edge_cell(index, edge, by_id[edge.source], by_id[edge.target])
        for index, edge in enumerate(edges)
    ))

    parts.extend([
        '      </root>',
        '    </mxGraphModel>',
        '  </diagram>',
        '</mxfile>',
    ])
    return '\n'.join(parts)
