from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Optional

# ---------- small helpers ----------

def preview(s: str | bytes | Any, n: int = 300) -> str:
    try:
        if isinstance(s, bytes):
            s = s.decode("utf-8", "replace")
        s = str(s)
    except Exception:
        return "<unprintable>"
    s = s.strip()
    return s if len(s) <= n else (s[: n - 20] + "... <truncated>")

# ---------- logging setup ----------

_STD_ATTRS = {
    "name","msg","args","levelname","levelno","pathname","filename","module","exc_info",
    "exc_text","stack_info","lineno","funcName","created","msecs","relativeCreated",
    "thread","threadName","processName","process","message","asctime","taskName",
}

class ExtraJSONFormatter(logging.Formatter):
    """
    Format: "YYYY-mm-dd HH:MM:SS.mmm | LEVEL | message | {json of extras}"
    """
    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()

        base_dt = self.formatTime(record, datefmt="%Y-%m-%d %H:%M:%S")
        ts = f"{base_dt}.{int(record.msecs):03d}"

        extras = {k: v for k, v in record.__dict__.items() if k not in _STD_ATTRS}

        base = f"{ts} | {record.levelname} | {record.message}"
        if extras:
            try:
                j = json.dumps(extras, ensure_ascii=False, default=str)
            except Exception:
                j = '{"_format_error":"<unserializable extras>"}'
            base = f"{base} | {j}"
        if record.exc_info:
            base = f"{base}\n{self.formatException(record.exc_info)}"
        return base

def setup_logging(level: Optional[str] = None) -> None:
    """
    Route all logging to stderr. stdout is reserved for the stdio transport.
    """
    lvl_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    lvl = getattr(logging, lvl_name, logging.INFO)
    if not isinstance(lvl, int):
        lvl = logging.INFO

    root = logging.getLogger()
    if getattr(root, "_mcp_logging_configured", False):
        root.setLevel(lvl)
        return

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(ExtraJSONFormatter())
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(lvl)
    root._mcp_logging_configured = True  # type: ignore[attr-defined]

    # FastMCP installs its own handlers on import; send them through ours
    for n in ("mcp", "mcp.server", "uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(n).handlers[:] = [handler]
        logging.getLogger(n).propagate = False
