"""Error taxonomy for the generate tool."""

from typing import Any, Dict, Optional


class MermaidPngError(Exception):
    """Base exception for per-request failures.

    Every subclass carries a JSON-RPC style ``code`` and a short ``kind`` used
    when the failure is reported back to the client.
    """

    kind = "internal"

    def __init__(
        self,
        message: str,
        code: int = -32603,
        data: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data or {}

    def to_log_extra(self) -> Dict[str, Any]:
        """Structured fields for the operator log."""
        extra = {"kind": self.kind, "code": self.code, "error": self.message}
        if self.data:
            extra["data"] = self.data
        return extra


class InvalidArgumentsError(MermaidPngError):
    """Malformed or missing tool arguments."""

    kind = "invalid_arguments"

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=-32602, data=data)


class SandboxError(MermaidPngError):
    """Headless browser could not be launched, navigated or scripted."""

    kind = "sandbox"

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=-32603, data=data)


class DiagramRenderError(MermaidPngError):
    """Mermaid rejected the diagram source."""

    kind = "render"

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=-32001, data=data)


class OutputError(MermaidPngError):
    """The rendered image could not be written to the requested location."""

    kind = "output"

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=-32002, data=data)
