from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP

from .engine.renderer import MermaidRenderer
from .settings import Settings
from .tools import build_tools
from .tools.mermaid_generate import GenerateHandler

logger = logging.getLogger("mcp.mermaid_png.server")

# Configuration is read once, at import
settings = Settings()

generate_handler = GenerateHandler(settings, MermaidRenderer.from_settings(settings))

mcp = FastMCP(
    "mermaid-png",
    instructions="Render Mermaid diagram source to a PNG image with the 'generate' tool.",
    tools=build_tools(generate_handler),
)
