from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Optional, Protocol, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from ..errors import DiagramRenderError, SandboxError
from ..utils.logging import preview

log = logging.getLogger("mcp.mermaid_png.engine.sandbox")

DiagnosticSink = Callable[[str], None]

# Runs inside the page. Mermaid errors come back as data so they are never
# confused with a broken page or a lost browser connection.
_RENDER_JS = """
async ({ code, config, containerId, svgId }) => {
  const container = document.getElementById(containerId);
  try {
    window.mermaid.initialize(config);
    const result = await window.mermaid.render(svgId, code);
    container.innerHTML = result.svg;
    if (result.bindFunctions) {
      result.bindFunctions(container);
    }
    return { ok: true };
  } catch (err) {
    const message = (err && (err.message || err.str)) || String(err);
    return { ok: false, error: String(message) };
  }
}
"""

_HAS_MERMAID_JS = "() => typeof window.mermaid !== 'undefined'"


class RenderSession(Protocol):
    """One live page able to load the document, run Mermaid and screenshot."""

    async def open_document(self, path: Path) -> None: ...

    async def inject_script(self, *, path: Optional[str] = None, url: Optional[str] = None) -> None: ...

    async def render(self, code: str, config: Dict[str, Any], *, container_id: str) -> None: ...

    async def capture(self, selector: str) -> bytes: ...


class BrowserSandbox(Protocol):
    def session(self, on_diagnostic: DiagnosticSink) -> Any:
        """Async context manager yielding a RenderSession; closes it on exit."""
        ...


class PlaywrightSession:
    def __init__(self, page: Page):
        self._page = page

    async def open_document(self, path: Path) -> None:
        try:
            await self._page.goto(path.resolve().as_uri(), wait_until="load")
        except PlaywrightError as e:
            raise SandboxError(f"Failed to load render document: {e.message}") from e

    async def inject_script(self, *, path: Optional[str] = None, url: Optional[str] = None) -> None:
        if not path and not url:
            raise SandboxError("No Mermaid script source configured")
        try:
            if path:
                await self._page.add_script_tag(path=path)
            else:
                await self._page.add_script_tag(url=url)
            loaded = await self._page.evaluate(_HAS_MERMAID_JS)
        except PlaywrightError as e:
            raise SandboxError(f"Failed to inject Mermaid from {path or url}: {e.message}") from e
        if not loaded:
            raise SandboxError(f"Mermaid did not load from {path or url}")

    async def render(self, code: str, config: Dict[str, Any], *, container_id: str) -> None:
        try:
            result = await self._page.evaluate(_RENDER_JS, {
                "code": code,
                "config": config,
                "containerId": container_id,
                "svgId": "mermaid-svg",
            })
        except PlaywrightError as e:
            raise SandboxError(f"Failed to run Mermaid: {e.message}") from e
        if not result or not result.get("ok"):
            raise DiagramRenderError((result or {}).get("error") or "Mermaid returned no diagram")

    async def capture(self, selector: str) -> bytes:
        try:
            locator = self._page.locator(selector).first
            await locator.wait_for(state="attached")
            box = await locator.bounding_box()
            if not box or box["width"] <= 0 or box["height"] <= 0:
                raise SandboxError("Rendered diagram has an empty bounding box")
            log.debug("sandbox.capture", extra={"box": box})
            return await locator.screenshot(type="png", omit_background=False)
        except PlaywrightError as e:
            raise SandboxError(f"Failed to capture diagram: {e.message}") from e


class PlaywrightSandbox:
    """
    Headless Chromium via Playwright. Every session() launches its own browser;
    nothing is shared between requests.
    """

    def __init__(
        self,
        *,
        executable_path: Optional[str] = None,
        launch_args: Sequence[str] = (),
        viewport: Dict[str, int] | None = None,
        device_scale_factor: float = 1.0,
    ):
        self.executable_path = executable_path
        self.launch_args = list(launch_args)
        self.viewport = viewport or {"width": 1280, "height": 800}
        self.device_scale_factor = device_scale_factor

    @asynccontextmanager
    async def session(self, on_diagnostic: DiagnosticSink) -> AsyncIterator[PlaywrightSession]:
        try:
            async with async_playwright() as p:
                log.info("sandbox.launch", extra={
                    "executable": self.executable_path or "<bundled>",
                    "args": self.launch_args,
                })
                try:
                    browser = await p.chromium.launch(
                        headless=True,
                        executable_path=self.executable_path,
                        args=self.launch_args,
                    )
                except PlaywrightError as e:
                    raise SandboxError(f"Failed to launch headless browser: {e.message}") from e

                try:
                    page = await browser.new_page(
                        viewport=self.viewport,
                        device_scale_factor=self.device_scale_factor,
                    )
                    page.on("console", lambda msg: on_diagnostic(f"[{msg.type}] {preview(msg.text, 1000)}"))
                    page.on("pageerror", lambda exc: on_diagnostic(f"[pageerror] {preview(exc, 1000)}"))
                    yield PlaywrightSession(page)
                finally:
                    await browser.close()
                    log.info("sandbox.closed")
        except PlaywrightError as e:
            # driver start-up problems surface here, before any launch
            raise SandboxError(f"Headless browser unavailable: {e.message}") from e
