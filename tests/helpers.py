from __future__ import annotations

import struct
import zlib
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from mcp_mermaid_png.errors import DiagramRenderError, SandboxError
from mcp_mermaid_png.models.io_contracts import GenerateRequest, RenderOutcome

PNG_SIG = b"\x89PNG\r\n\x1a\n"


# ---------------------------------------------------------
# PNG helpers
# ---------------------------------------------------------
def _chunk(tag: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", zlib.crc32(tag + data) & 0xFFFFFFFF)


def make_png(width: int, height: int, rgb: Tuple[int, int, int] = (255, 255, 255)) -> bytes:
    raw = b"".join(b"\x00" + bytes(rgb) * width for _ in range(height))
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return PNG_SIG + _chunk(b"IHDR", ihdr) + _chunk(b"IDAT", zlib.compress(raw)) + _chunk(b"IEND", b"")


def _paeth(a: int, b: int, c: int) -> int:
    p = a + b - c
    pa, pb, pc = abs(p - a), abs(p - b), abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    return b if pb <= pc else c


def decode_png(data: bytes) -> Tuple[int, int, List[List[Tuple[int, ...]]]]:
    """Minimal decoder for 8-bit RGB/RGBA, non-interlaced (what Chromium emits)."""
    assert data.startswith(PNG_SIG)
    pos = 8
    idat = b""
    width = height = color_type = 0
    while pos < len(data):
        (length,) = struct.unpack(">I", data[pos:pos + 4])
        tag = data[pos + 4:pos + 8]
        body = data[pos + 8:pos + 8 + length]
        pos += 12 + length
        if tag == b"IHDR":
            width, height, depth, color_type, _, _, interlace = struct.unpack(">IIBBBBB", body)
            assert depth == 8 and interlace == 0 and color_type in (2, 6)
        elif tag == b"IDAT":
            idat += body
        elif tag == b"IEND":
            break

    bpp = 3 if color_type == 2 else 4
    raw = zlib.decompress(idat)
    stride = width * bpp
    rows: List[List[Tuple[int, ...]]] = []
    prev = bytearray(stride)
    i = 0
    for _ in range(height):
        ftype = raw[i]
        line = bytearray(raw[i + 1:i + 1 + stride])
        i += 1 + stride
        for x in range(stride):
            left = line[x - bpp] if x >= bpp else 0
            up = prev[x]
            ul = prev[x - bpp] if x >= bpp else 0
            if ftype == 1:
                line[x] = (line[x] + left) & 0xFF
            elif ftype == 2:
                line[x] = (line[x] + up) & 0xFF
            elif ftype == 3:
                line[x] = (line[x] + ((left + up) >> 1)) & 0xFF
            elif ftype == 4:
                line[x] = (line[x] + _paeth(left, up, ul)) & 0xFF
        rows.append([tuple(line[x:x + bpp]) for x in range(0, stride, bpp)])
        prev = line
    return width, height, rows


# ---------------------------------------------------------
# Fake browser sandbox
# ---------------------------------------------------------
class FakeSession:
    def __init__(self, sandbox: "FakeSandbox"):
        self.sandbox = sandbox

    async def open_document(self, path: Path) -> None:
        self.sandbox.events.append("open_document")
        self.sandbox.document = path
        self.sandbox.document_existed = path.exists()
        self.sandbox.document_html = path.read_text(encoding="utf-8")

    async def inject_script(self, *, path: Optional[str] = None, url: Optional[str] = None) -> None:
        self.sandbox.events.append("inject_script")
        if self.sandbox.inject_error:
            raise SandboxError(self.sandbox.inject_error)
        self.sandbox.script = path or url

    async def render(self, code: str, config: Dict[str, Any], *, container_id: str) -> None:
        self.sandbox.events.append("render")
        self.sandbox.rendered.append((code, config, container_id))
        if self.sandbox.render_error:
            self.sandbox.sink("[error] " + self.sandbox.render_error)
            raise DiagramRenderError(self.sandbox.render_error)

    async def capture(self, selector: str) -> bytes:
        self.sandbox.events.append("capture")
        self.sandbox.selector = selector
        return self.sandbox.png


class FakeSandbox:
    def __init__(
        self,
        png: Optional[bytes] = None,
        render_error: Optional[str] = None,
        launch_error: Optional[str] = None,
        inject_error: Optional[str] = None,
        diagnostics: Sequence[str] = (),
    ):
        self.png = png if png is not None else make_png(40, 20)
        self.render_error = render_error
        self.launch_error = launch_error
        self.inject_error = inject_error
        self.diagnostics = list(diagnostics)
        self.launches = 0
        self.closes = 0
        self.events: List[str] = []
        self.rendered: List[Tuple[str, Dict[str, Any], str]] = []
        self.document: Optional[Path] = None
        self.document_existed = False
        self.document_html = ""
        self.script: Optional[str] = None
        self.selector: Optional[str] = None
        self.sink = lambda line: None

    @asynccontextmanager
    async def session(self, on_diagnostic):
        self.launches += 1
        if self.launch_error:
            raise SandboxError(self.launch_error)
        self.sink = on_diagnostic
        for line in self.diagnostics:
            on_diagnostic(line)
        try:
            yield FakeSession(self)
        finally:
            self.closes += 1


# ---------------------------------------------------------
# Fake renderer / MCP context
# ---------------------------------------------------------
class FakeRenderer:
    def __init__(self, outcome: Optional[RenderOutcome] = None, exc: Optional[Exception] = None):
        self.outcome = outcome
        self.exc = exc
        self.calls: List[GenerateRequest] = []

    async def render(self, req: GenerateRequest) -> RenderOutcome:
        self.calls.append(req)
        if self.exc is not None:
            raise self.exc
        assert self.outcome is not None
        return self.outcome


class FakeContext:
    def __init__(self) -> None:
        self.messages: List[Tuple[str, str]] = []

    async def info(self, message: str) -> None:
        self.messages.append(("info", message))

    async def error(self, message: str) -> None:
        self.messages.append(("error", message))
