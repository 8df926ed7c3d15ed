from __future__ import annotations

import logging
from typing import Optional

from mcp.types import CallToolResult, ImageContent, TextContent

from ..engine.sanity import looks_like_syntax_error, tail_lines
from ..errors import InvalidArgumentsError, OutputError
from ..models.io_contracts import GenerateRequest, RenderedImage, RenderFailure, RenderOutcome
from ..settings import OutputMode
from ..utils.paths import write_png

log = logging.getLogger("mcp.mermaid_png.tools.response")

IMAGE_CONFIRMATION = "Here is the generated image"
SYNTAX_HINT = "Mermaid syntax error. Please check your diagram syntax."
GENERIC_PREFIX = "Error generating diagram:"
MAX_DIAGNOSTIC_LINES = 50


def _text(text: str) -> TextContent:
    return TextContent(type="text", text=text)


def image_result(image: RenderedImage) -> CallToolResult:
    return CallToolResult(
        content=[
            _text(IMAGE_CONFIRMATION),
            ImageContent(type="image", data=image.to_base64(), mimeType=image.mime_type),
        ],
        isError=False,
    )


def saved_file_result(path: str) -> CallToolResult:
    return CallToolResult(content=[_text(path)], isError=False)


def format_failure(failure: RenderFailure) -> str:
    if looks_like_syntax_error(failure.message):
        text = f"{SYNTAX_HINT}\n\n{failure.message}"
    else:
        text = f"{GENERIC_PREFIX} {failure.message}"
    lines = tail_lines(failure.diagnostics, MAX_DIAGNOSTIC_LINES)
    if lines:
        text += "\n\nRenderer log:\n" + "\n".join(lines)
    return text


def failure_result(failure: RenderFailure) -> CallToolResult:
    return CallToolResult(content=[_text(format_failure(failure))], isError=True)


def invalid_arguments_result(err: InvalidArgumentsError) -> CallToolResult:
    return CallToolResult(content=[_text(f"Invalid arguments for generate: {err.message}")], isError=True)


def shape_outcome(outcome: RenderOutcome, req: GenerateRequest, mode: OutputMode) -> CallToolResult:
    """
    Map a render outcome onto the tool result for the configured output mode.
    File-mode write failures come back as an error result, never an exception.
    """
    if isinstance(outcome, RenderFailure):
        return failure_result(outcome)

    if mode == "inline":
        return image_result(outcome)

    try:
        path = write_png(req.folder or "", req.name or "", outcome.data)
    except OutputError as e:
        log.warning("response.write_failed", extra=e.to_log_extra())
        return failure_result(RenderFailure.from_error(e))
    log.info("response.saved", extra={"path": path, "bytes": len(outcome.data)})
    return saved_file_result(path)


def result_text(result: CallToolResult) -> Optional[str]:
    """First text block of a result, for logging."""
    for block in result.content:
        if isinstance(block, TextContent):
            return block.text
    return None
