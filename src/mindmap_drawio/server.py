#!/usr/bin/env python3
"""
Mindmap draw.io - MCP Server Implementation
===========================================

Exposes the Mermaid mindmap converter as MCP tools.

Tools:
- mindmap_convert: Convert Mermaid mindmap text to draw.io XML
- mindmap_write: Convert and save a .drawio file in the project directory
- mindmap_inspect: Show the parsed, laid-out tree and its connectors
"""

import json
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from .converter import build_mindmap
from .drawio import connector_sides, render_drawio

logging.getLogger("mcp.server").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

# Configuration from environment
PROJECT_DIR = Path(os.environ.get("MINDMAP_DRAWIO_PROJECT_DIR", os.getcwd())).resolve()

DRAWIO_SUFFIXES = ('.drawio', '.xml')


def _resolve_path(path: str) -> Path:
    """Resolve path relative to project directory and validate it stays within."""
    resolved = (PROJECT_DIR / path).resolve()
    try:
        resolved.relative_to(PROJECT_DIR)
    except ValueError:
        raise ValueError(f"Path '{path}' escapes the project directory")
    return resolved


@asynccontextmanager
async def server_lifespan(server: FastMCP):
    """Initialize on startup, cleanup on shutdown."""
    PROJECT_DIR.mkdir(parents=True, exist_ok=True)
    yield


# Initialize the MCP server
mcp = FastMCP("mindmap-drawio", lifespan=server_lifespan)


def create_server() -> FastMCP:
    """Create and return the MCP server instance."""
    return mcp


# ============================================================================
# Conversion
# ============================================================================

@mcp.tool()
def mindmap_convert(
    mermaid_code: Annotated[str, Field(description="Mermaid mindmap source, starting with 'mindmap'")],
) -> str:
    """Convert a Mermaid mindmap to draw.io XML.

    Example Mermaid code:
    ```
    mindmap
      root((mindmap))
        Origins
          Long history
        Research
    ```

    Returns:
        JSON string with the XML document and node/edge counts
    """
    try:
        result = build_mindmap(mermaid_code)
        return json.dumps({
            "xml": render_drawio(result.nodes, result.edges),
            "node_count": len(result.nodes),
            "edge_count": len(result.edges)
        }, indent=2)

    except Exception as e:
        logger.exception("Mindmap conversion failed")
        return json.dumps({"error": f"Conversion failed: {str(e)}"})


@mcp.tool()
def mindmap_write(
    path: Annotated[str, Field(description="Output .drawio path relative to project directory")],
    mermaid_code: Annotated[str, Field(description="Mermaid mindmap source")],
) -> str:
    """Convert a Mermaid mindmap and save it as a draw.io file.

    Args:
        path: Output file path ending in .drawio or .xml
        mermaid_code: Mermaid mindmap source

    Returns:
        JSON string with success status, path and counts
    """
    try:
        file_path = _resolve_path(path)

        if file_path.suffix.lower() not in DRAWIO_SUFFIXES:
            return json.dumps({
                "error": f"Output path must end with .drawio or .xml, got: {path}"
            })

        result = build_mindmap(mermaid_code)
        if result.is_empty:
            return json.dumps({"error": "mermaid_code contains no mindmap nodes"})

        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(render_drawio(result.nodes, result.edges), encoding='utf-8')

        return json.dumps({
            "success": True,
            "path": str(file_path.relative_to(PROJECT_DIR)),
            "format": "drawio",
            "node_count": len(result.nodes),
            "edge_count": len(result.edges)
        }, indent=2)

    except ValueError as e:
        return json.dumps({"error": str(e)})
    except Exception as e:
        return json.dumps({"error": f"Failed to write diagram: {str(e)}"})


# ============================================================================
# Inspection
# ============================================================================

@mcp.tool()
def mindmap_inspect(
    mermaid_code: Annotated[str, Field(description="Mermaid mindmap source")],
) -> str:
    """Parse and lay out a Mermaid mindmap without rendering it.

    Useful for checking which shape and level each line was given.

    Returns JSON with:
    - tree: Nested nodes (id, text, shape, level, geometry, direction)
    - edges: Parent/child pairs with exit/entry sides
    - metadata: Node and edge counts
    """
    try:
        result = build_mindmap(mermaid_code)
        by_id = {node.id: node for node in result.nodes}

        edges = []
        for edge in result.edges:
            exit_x, entry_x = connector_sides(by_id[edge.source], by_id[edge.target])
            edges.append({
                "source": edge.source,
                "target": edge.target,
                "exit": "left" if exit_x == 0 else "right",
                "entry": "left" if entry_x == 0 else "right"
            })

        return json.dumps({
            "tree": result.root.model_dump(mode="json") if result.root else None,
            "edges": edges,
            "metadata": {
                "node_count": len(result.nodes),
                "edge_count": len(result.edges)
            }
        }, indent=2)

    except Exception as e:
        return json.dumps({"error": f"Failed to inspect mindmap: {str(e)}"})
