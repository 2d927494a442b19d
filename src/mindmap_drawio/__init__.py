"""
Mindmap draw.io
===============

Convert Mermaid mindmap diagrams to draw.io XML.

Pipeline:
- Parsing: indentation tree with shape markers ((circle)), [square], (rounded),
  {{hexagon}}, )cloud(, ))bang((
- Layout: left/right balanced horizontal tree
- Output: draw.io mxfile with curved, side-anchored connectors

Entry points:
- convert(): text in, XML out
- mindmap-drawio CLI: files or stdin
- MCP server (stdio, SSE, HTTP)
"""

__version__ = "0.1.0"

from .converter import ConversionResult, build_mindmap, convert
from .models import Edge, MindmapNode, Shape

__all__ = [
    "convert",
    "build_mindmap",
    "ConversionResult",
    "MindmapNode",
    "Edge",
    "Shape",
    "__version__",
]
