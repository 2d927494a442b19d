#!/usr/bin/env python3
"""
Mindmap draw.io - Entry Point

Converts Mermaid mindmaps from a file or stdin, or runs the MCP server:
- file: writes <input>.drawio.xml (or the given output path)
- stdin: writes the XML to stdout
- --serve: MCP server over stdio, sse or http
"""

import argparse
import logging
import os
import re
import sys
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger("mindmap_drawio")

OUTPUT_SUFFIX = ".drawio.xml"


def extract_mermaid(content: str) -> str:
    """Return the first ```mermaid fenced block of a markdown file."""
    match = re.search(r"```mermaid\s*(.*?)```", content, re.DOTALL)
    if match:
        return match.group(1)
    # No fenced block: treat the whole file as Mermaid
    return content


def derive_output_path(input_path: Path) -> Path:
    """``notes.mmd`` -> ``notes.drawio.xml`` (same for .txt, .md or any suffix)."""
    return input_path.with_name(input_path.stem + OUTPUT_SUFFIX)


def read_source(input_path: Path) -> str:
    content = input_path.read_text(encoding='utf-8')
    if input_path.suffix.lower() == '.md':
        return extract_mermaid(content)
    return content


def _configure_logging(verbosity: int):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _convert(args) -> int:
    from .converter import build_mindmap
    from .drawio import render_drawio

    if args.input is None:
        source = sys.stdin.read()
    else:
        input_path = Path(args.input)
        try:
            source = read_source(input_path)
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    result = build_mindmap(source)
    if result.is_empty:
        logger.warning("Input contains no mindmap nodes; writing an empty diagram")
    else:
        logger.info("Converted %d nodes and %d edges", len(result.nodes), len(result.edges))
    xml = render_drawio(result.nodes, result.edges)

    if args.input is None:
        print(xml)
        return 0

    output_path = Path(args.output) if args.output else derive_output_path(input_path)
    try:
        output_path.write_text(xml, encoding='utf-8')
    except (OSError, UnicodeEncodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Converted {input_path} to {output_path}")
    return 0


def _serve(args) -> int:
    # Set project directory environment variable
    os.environ["MINDMAP_DRAWIO_PROJECT_DIR"] = os.path.abspath(args.project_dir)

    # Import server after setting environment
    from .server import mcp

    if args.transport == "stdio":
        mcp.run()

    elif args.transport == "sse":
        try:
            from mcp.server.sse import SseServerTransport
            from starlette.applications import Starlette
            from starlette.routing import Route
            import uvicorn

            sse = SseServerTransport("/messages/")

            async def handle_sse(request):
                async with sse.connect_sse(
                    request.scope, request.receive, request._send
                ) as streams:
                    await mcp._mcp_server.run(
                        streams[0], streams[1], mcp._mcp_server.create_initialization_options()
                    )

            app = Starlette(
                routes=[
                    Route("/sse", endpoint=handle_sse),
                    Route("/messages/", endpoint=sse.handle_post_message, methods=["POST"]),
                ],
            )

            logger.info("SSE endpoint: http://%s:%s/sse", args.host, args.port)
            logger.info("Project directory: %s", args.project_dir)
            uvicorn.run(app, host=args.host, port=args.port)

        except ImportError as e:
            print(f"Error: SSE transport requires additional dependencies: {e}", file=sys.stderr)
            print("Install with: pip install 'mindmap-drawio[sse]'", file=sys.stderr)
            return 1

    elif args.transport == "http":
        try:
            import uvicorn

            logger.info("MCP endpoint: http://%s:%s/mcp", args.host, args.port)
            logger.info("Project directory: %s", args.project_dir)
            uvicorn.run(mcp.streamable_http_app(), host=args.host, port=args.port)

        except ImportError as e:
            print(f"Error: HTTP transport requires additional dependencies: {e}", file=sys.stderr)
            print("Install with: pip install 'mindmap-drawio[http]'", file=sys.stderr)
            return 1

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mindmap-drawio",
        description="Convert Mermaid mindmaps to draw.io XML",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert a file (writes notes.drawio.xml)
  mindmap-drawio notes.mmd

  # Convert to an explicit output path
  mindmap-drawio notes.mmd out/notes.drawio

  # Read from stdin, write XML to stdout
  cat notes.mmd | mindmap-drawio > notes.drawio.xml

  # Run the MCP server with SSE transport on port 8080
  mindmap-drawio --serve --transport sse --port 8080
"""
    )
    parser.add_argument(
        "input",
        nargs="?",
        help="Mermaid mindmap file (.mmd, .txt or .md); reads stdin if omitted"
    )
    parser.add_argument(
        "output",
        nargs="?",
        help="Output path (default: input with .drawio.xml suffix)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-vv for debug output)"
    )

    server = parser.add_argument_group("MCP server")
    server.add_argument(
        "--serve",
        action="store_true",
        help="Run as an MCP server instead of converting"
    )
    server.add_argument(
        "--transport",
        choices=["stdio", "sse", "http"],
        default="stdio",
        help="Transport mode (default: stdio)"
    )
    server.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port for SSE/HTTP transport (default: 8080)"
    )
    server.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind for SSE/HTTP transport (default: 0.0.0.0)"
    )
    server.add_argument(
        "--project-dir",
        type=str,
        default=os.getcwd(),
        help="Directory the server may write diagrams into (default: current directory)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__import__('mindmap_drawio').__version__}"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.serve and (args.input or args.output):
        parser.error("--serve does not take input or output paths")
    _configure_logging(args.verbose)

    if args.serve:
        return _serve(args)
    return _convert(args)


if __name__ == "__main__":
    sys.exit(main())
