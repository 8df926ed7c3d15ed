from __future__ import annotations

import logging
import os
import sys

from .utils.logging import setup_logging

def main() -> None:
    """
    Entry point for running the server via the official SDK runner.

    Examples:
      python -m mcp_mermaid_png                                  # stdio
      MCP_TRANSPORT=streamable-http MCP_PORT=8001 python -m mcp_mermaid_png
      CONTENT_IMAGE_SUPPORTED=false python -m mcp_mermaid_png    # save to disk
    """
    if any(a in ("-h", "--help") for a in sys.argv[1:]):
        sys.stderr.write(
            "mcp-mermaid-png: runs an MCP server exposing a 'generate' tool that renders Mermaid to PNG.\n"
        )
        sys.stderr.flush()
        return

    # before the server import, so registration events are not lost
    setup_logging(os.getenv("LOG_LEVEL"))

    from .server import mcp, settings

    setup_logging(settings.LOG_LEVEL)
    log = logging.getLogger("mcp.mermaid_png.main")
    settings.log_summary()

    transport = settings.MCP_TRANSPORT

    # Configure settings BEFORE run()
    mcp.settings.host = settings.MCP_HOST
    mcp.settings.port = settings.MCP_PORT
    mcp.settings.streamable_http_path = settings.MCP_MOUNT_PATH
    mcp.settings.sse_path = settings.MCP_SSE_PATH

    log.info("server.start", extra={
        "transport": transport,
        "host": settings.MCP_HOST if transport != "stdio" else None,
        "port": settings.MCP_PORT if transport != "stdio" else None,
    })

    try:
        if transport == "streamable-http":
            import uvicorn

            from .transports.app import build_app

            uvicorn.run(build_app(), host=settings.MCP_HOST, port=settings.MCP_PORT, log_level=settings.LOG_LEVEL.lower())
        else:
            mcp.run(transport=transport)
    except KeyboardInterrupt:
        log.info("server.stopped")
    except Exception:
        log.critical("server.fatal", exc_info=True)
        sys.exit(1)

if __name__ == "__main__":
    main()
