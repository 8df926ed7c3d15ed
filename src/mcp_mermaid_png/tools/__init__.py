from __future__ import annotations

from typing import List

from mcp.server.fastmcp.tools import Tool

from .mermaid_generate import GenerateHandler, generate_tool

def build_tools(handler: GenerateHandler) -> List[Tool]:
    return [generate_tool(handler)]
