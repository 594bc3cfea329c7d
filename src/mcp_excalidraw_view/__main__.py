#!/usr/bin/env python3
"""
MCP Excalidraw View - Entry Point

Supports multiple transport modes:
- stdio: Standard I/O (default, for Claude Desktop), with the standalone
  editor served over HTTP on PORT alongside
- sse: Server-Sent Events over HTTP
- http: Streamable HTTP transport
"""

import argparse
import importlib
import logging
import os
import sys
import threading

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    # stdout carries the stdio transport
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, stream=sys.stderr)
    if logging.getLogger().level > logging.DEBUG:
        logging.getLogger("mcp.server").setLevel(logging.WARNING)


def start_standalone_server(host: str, port: int) -> threading.Thread:
    """Serve the standalone editor bridge from a background thread."""
    import uvicorn

    from .server import create_standalone_app

    server = uvicorn.Server(uvicorn.Config(create_standalone_app(), host=host, port=port, log_level="warning"))
    thread = threading.Thread(target=server.run, name="excalidraw-standalone", daemon=True)
    thread.start()
    logging.getLogger(__name__).info("Standalone editor at http://%s:%d/excalidraw", host, port)
    return thread


def main():
    parser = argparse.ArgumentParser(
        description="MCP server that streams hand-drawn Excalidraw diagrams",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with STDIO transport (default, for Claude Desktop)
  mcp-excalidraw-view

  # Run with SSE transport on port 8080
  mcp-excalidraw-view --transport sse --port 8080

  # Run with HTTP transport on custom port
  mcp-excalidraw-view --transport http --port 3000

  # Serve widget assets from a custom build directory
  mcp-excalidraw-view --dist-dir /path/to/dist
"""
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "http"],
        default="stdio",
        help="Transport mode (default: stdio)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for SSE/HTTP transport, or for the standalone editor with stdio "
             "(default: 8080, or $PORT / 3001 for the standalone editor)"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind for HTTP servers (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--project-dir",
        type=str,
        default=os.getcwd(),
        help="Project directory for file-backed state (default: current directory)"
    )
    parser.add_argument(
        "--dist-dir",
        type=str,
        default=None,
        help="Directory holding mcp-app.html and standalone.html (default: <project-dir>/dist)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=None,
        help="Log level (default: $EXCALIDRAW_LOG_LEVEL or WARNING)"
    )
    parser.add_argument(
        "--no-standalone",
        action="store_true",
        help="Do not serve the standalone editor next to the stdio transport"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__import__('mcp_excalidraw_view').__version__}"
    )

    args = parser.parse_args()

    # Settings are read from the environment when the server is imported
    os.environ["MCP_PROJECT_DIR"] = os.path.abspath(args.project_dir)
    if args.dist_dir:
        os.environ["EXCALIDRAW_DIST_DIR"] = os.path.abspath(args.dist_dir)
    if args.log_level:
        os.environ["EXCALIDRAW_LOG_LEVEL"] = args.log_level
    if args.transport == "stdio" and args.port is not None:
        os.environ["PORT"] = str(args.port)

    from . import config

    # the package import may have read the environment already
    importlib.reload(config)

    configure_logging(config.LOG_LEVEL)

    # Import server after setting environment
    from .server import mcp

    if args.transport == "stdio":
        if not args.no_standalone:
            start_standalone_server(args.host, config.STANDALONE_PORT)
        mcp.run()
        return

    import uvicorn

    port = args.port or 8080
    mcp.settings.host = args.host
    mcp.settings.port = port

    if args.transport == "sse":
        app = mcp.sse_app()
        print(f"Starting SSE server on {args.host}:{port}", file=sys.stderr)
        print(f"SSE endpoint: http://{args.host}:{port}{mcp.settings.sse_path}", file=sys.stderr)
    else:
        app = mcp.streamable_http_app()
        print(f"Starting HTTP server on {args.host}:{port}", file=sys.stderr)
        print(f"MCP endpoint: http://{args.host}:{port}{mcp.settings.streamable_http_path}", file=sys.stderr)
    print(f"Standalone editor: http://{args.host}:{port}/excalidraw", file=sys.stderr)
    uvicorn.run(app, host=args.host, port=port)


if __name__ == "__main__":
    main()
