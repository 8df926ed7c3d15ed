from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from ..errors import MermaidPngError, SandboxError
from ..models.io_contracts import GenerateRequest, RenderedImage, RenderFailure, RenderOutcome
from ..settings import Settings
from ..utils.images import png_dimensions
from ..utils.logging import preview
from .document import CONTAINER_ID, SVG_SELECTOR, html_document
from .sandbox import BrowserSandbox, PlaywrightSandbox

log = logging.getLogger("mcp.mermaid_png.engine.renderer")

DEFAULT_THEME = "default"


def mermaid_config(theme: Optional[str]) -> Dict[str, Any]:
    return {
        "startOnLoad": False,
        "theme": theme or DEFAULT_THEME,
        "securityLevel": "loose",
        "logLevel": "error",
    }


class MermaidRenderer:
    """
    Turns a validated GenerateRequest into exactly one RenderOutcome.

    The HTML shell and the browser session are both scoped to a single call
    and released on every exit path.
    """

    def __init__(
        self,
        sandbox: BrowserSandbox,
        *,
        mermaid_js_path: Optional[str] = None,
        mermaid_js_url: Optional[str] = None,
        temp_dir: Optional[str] = None,
    ):
        self.sandbox = sandbox
        self.mermaid_js_path = mermaid_js_path
        self.mermaid_js_url = mermaid_js_url
        self.temp_dir = temp_dir

    @classmethod
    def from_settings(cls, settings: Settings) -> "MermaidRenderer":
        sandbox = PlaywrightSandbox(
            executable_path=settings.BROWSER_EXECUTABLE_PATH,
            launch_args=settings.browser_args,
            viewport={"width": settings.VIEWPORT_WIDTH, "height": settings.VIEWPORT_HEIGHT},
            device_scale_factor=settings.DEVICE_SCALE_FACTOR,
        )
        return cls(
            sandbox,
            mermaid_js_path=settings.MERMAID_JS_PATH,
            mermaid_js_url=settings.MERMAID_JS_URL,
            temp_dir=settings.TEMP_DIR,
        )

    async def render(self, req: GenerateRequest) -> RenderOutcome:
        t0 = time.time()
        diagnostics: List[str] = []
        try:
            png = await self._render_png(req, diagnostics)
            width, height = png_dimensions(png)
            if width <= 0 or height <= 0:
                raise SandboxError("Screenshot produced an empty image")
        except MermaidPngError as e:
            log.warning("render.failed", extra={
                **e.to_log_extra(),
                "diagnostic_lines": len(diagnostics),
                "took_ms": int((time.time() - t0) * 1000),
            })
            return RenderFailure.from_error(e, diagnostics)
        except ValueError as e:
            log.warning("render.failed", extra={"kind": "sandbox", "error": str(e)})
            return RenderFailure(kind="sandbox", message=f"Invalid screenshot: {e}", diagnostics=diagnostics)

        log.info("render.ok", extra={
            "width": width,
            "height": height,
            "bytes": len(png),
            "took_ms": int((time.time() - t0) * 1000),
        })
        return RenderedImage(data=png, width=width, height=height)

    async def _render_png(self, req: GenerateRequest, diagnostics: List[str]) -> bytes:
        log.info("render.start", extra={
            "theme": req.theme or DEFAULT_THEME,
            "background": req.background_color,
            "code_preview": preview(req.code, 50),
        })
        with html_document(req.background_color, temp_dir=self.temp_dir) as doc:
            async with self.sandbox.session(diagnostics.append) as session:
                await session.open_document(doc)
                await session.inject_script(path=self.mermaid_js_path, url=self.mermaid_js_url)
                await session.render(req.code, mermaid_config(req.theme), container_id=CONTAINER_ID)
                return await session.capture(SVG_SELECTOR)
