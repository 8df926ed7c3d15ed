from __future__ import annotations

import contextlib
import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP
from starlette.applications import Starlette
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Mount, Route

logger = logging.getLogger("mcp.mermaid_png.app")

def build_app(server: Optional[FastMCP] = None) -> Starlette:
    """
    Streamable-HTTP deployment: MCP endpoint at settings.streamable_http_path
    (default /mcp) plus /health and / for probes.
    """
    if server is None:
        from ..server import mcp as server

    endpoint = server.settings.streamable_http_path
    # Mount at "/" so the MCP endpoint keeps its own path (no double prefix, no 307)
    mcp_app = server.streamable_http_app()

    async def health(_request):
        return JSONResponse(
            {
                "status": "ok",
                "name": "mcp-mermaid-png",
                "transport": "streamable-http",
                "endpoint": endpoint,
            },
            status_code=200,
        )

    async def root(_request):
        return PlainTextResponse(f"mcp-mermaid-png\ntransport: streamable-http at {endpoint}")

    # Lifespan: start/stop the MCP session manager so POST /mcp works
    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette):
        async with contextlib.AsyncExitStack() as stack:
            await stack.enter_async_context(server.session_manager.run())
            logger.info("app.ready", extra={"endpoint": endpoint})
            yield

    routes = [
        Route("/health", endpoint=health, methods=["GET"]),
        Route("/", endpoint=root, methods=["GET"]),
        Mount("/", app=mcp_app),
    ]
    return Starlette(routes=routes, lifespan=lifespan)
