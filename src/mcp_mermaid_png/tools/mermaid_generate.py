import logging
import time
from typing import Any, Dict, List, Optional, Protocol, get_args

from mcp.server.fastmcp import Context
from mcp.server.fastmcp.tools import Tool
from mcp.types import CallToolResult

from ..errors import InvalidArgumentsError
from ..models.io_contracts import (
    GenerateRequest,
    RenderFailure,
    RenderOutcome,
    Theme,
    validate_generate_args,
)
from ..settings import Settings
from ..utils.logging import preview
from .response import failure_result, invalid_arguments_result, result_text, shape_outcome

log = logging.getLogger("mcp.mermaid_png.tools.generate")

TOOL_NAME = "generate"
TOOL_TITLE = "Generate Mermaid PNG"
INLINE_DESCRIPTION = "Generate PNG image from mermaid markdown"
FILE_DESCRIPTION = (
    "Generate PNG image from mermaid markdown and save it to folder/name.png. "
    "Returns the path of the saved file."
)


def input_schema(save_to_disk: bool) -> Dict[str, Any]:
    """
    Advertised arguments of ``generate``. name/folder only exist, and are
    required, when images are saved to disk.
    """
    properties: Dict[str, Any] = {
        "code": {"type": "string", "description": "The mermaid markdown to generate an image from"},
    }
    required: List[str] = ["code"]
    if save_to_disk:
        properties["name"] = {
            "type": "string",
            "description": "Name of the diagram file, without the .png extension",
        }
        properties["folder"] = {
            "type": "string",
            "description": "Absolute path of an existing folder to save the diagram in",
        }
        required += ["name", "folder"]
    properties["theme"] = {
        "type": "string",
        "enum": list(get_args(Theme)),
        "description": "Theme for the diagram (optional)",
    }
    properties["backgroundColor"] = {
        "type": "string",
        "description": "Background color for the diagram, e.g. 'white', 'transparent', '#F0F0F0' (optional)",
    }
    return {"type": "object", "properties": properties, "required": required}


class Renderer(Protocol):
    async def render(self, req: GenerateRequest) -> RenderOutcome: ...


async def _client_log(ctx: Optional[Context], level: str, message: str) -> None:
    """Mirror a line to the MCP client as a log notification."""
    if ctx is None:
        return
    if level == "error":
        await ctx.error(message)
    else:
        await ctx.info(message)


class GenerateHandler:
    """validate -> render -> shape, one linear pass per call."""

    def __init__(self, settings: Settings, renderer: Renderer):
        self.settings = settings
        self.renderer = renderer

    async def __call__(self, arguments: Any, ctx: Optional[Context] = None) -> CallToolResult:
        t0 = time.time()

        try:
            req = validate_generate_args(arguments, require_output=self.settings.save_to_disk)
        except InvalidArgumentsError as e:
            log.warning("tool.request.invalid", extra=e.to_log_extra())
            await _client_log(ctx, "error", f"Invalid arguments for generate: {e.message}")
            return invalid_arguments_result(e)

        if self.settings.LOG_VERBOSE_INPUTS:
            log.info("tool.request.verbose", extra={
                "theme": req.theme,
                "background": req.background_color,
                "name": req.name,
                "folder": req.folder,
                "code": req.code,
            })
        else:
            log.info("tool.request", extra={
                "theme": req.theme,
                "background": req.background_color,
                "code_preview": preview(req.code, 120),
                "code_size": len(req.code),
            })
        await _client_log(ctx, "info", f"Rendering mermaid code: {preview(req.code, 50)}")

        try:
            outcome = await self.renderer.render(req)
            result = shape_outcome(outcome, req, self.settings.output_mode)
        except Exception as e:
            log.exception("tool.execution.failed")
            result = failure_result(RenderFailure(kind="internal", message=str(e) or type(e).__name__))

        if result.isError:
            await _client_log(ctx, "error", result_text(result) or "Error generating diagram")
        else:
            await _client_log(ctx, "info", "Mermaid rendered successfully")

        log.info("tool.response", extra={
            "took_ms": int((time.time() - t0) * 1000),
            "is_error": bool(result.isError),
            "mode": self.settings.output_mode,
        })
        return result


def generate_tool(handler: GenerateHandler) -> Tool:
    """
    FastMCP tool wrapping ``handler``. Parameters are left untyped so that
    every payload reaches validate_generate_args; the advertised schema is
    replaced with input_schema() for the configured mode.
    """
    save_to_disk = handler.settings.save_to_disk

    async def generate(
        ctx: Context,
        code: Any = None,
        theme: Any = None,
        backgroundColor: Any = None,
        name: Any = None,
        folder: Any = None,
    ) -> CallToolResult:
        args: Dict[str, Any] = {"code": code, "theme": theme, "backgroundColor": backgroundColor}
        if save_to_disk:
            args.update(name=name, folder=folder)
        return await handler({k: v for k, v in args.items() if v is not None}, ctx)

    tool = Tool.from_function(
        generate,
        name=TOOL_NAME,
        title=TOOL_TITLE,
        description=FILE_DESCRIPTION if save_to_disk else INLINE_DESCRIPTION,
    )
    log.info("tool.register", extra={
        "tool": TOOL_NAME,
        "output_mode": handler.settings.output_mode,
    })
    return tool.model_copy(update={"parameters": input_schema(save_to_disk)})
