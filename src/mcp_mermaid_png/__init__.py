"""MCP server rendering Mermaid diagrams to PNG through a headless browser."""

__version__ = "0.2.0"
