from __future__ import annotations

import logging
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger("mcp.mermaid_png.settings")

DEFAULT_MERMAID_JS_URL = "https://cdn.jsdelivr.net/npm/mermaid@11/dist/mermaid.min.js"

OutputMode = Literal["inline", "file"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    # output mode: inline image blocks, or save to folder/name.png
    CONTENT_IMAGE_SUPPORTED: bool = Field(default=True)

    # logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_VERBOSE_INPUTS: bool = Field(default=False)

    # where the Mermaid bundle is injected from; a local file wins over the URL
    MERMAID_JS_PATH: Optional[str] = Field(default=None)
    MERMAID_JS_URL: str = Field(default=DEFAULT_MERMAID_JS_URL)

    # headless browser
    BROWSER_EXECUTABLE_PATH: Optional[str] = Field(default=None)
    BROWSER_ARGS: str = Field(default="")
    VIEWPORT_WIDTH: int = Field(default=1280, gt=0)
    VIEWPORT_HEIGHT: int = Field(default=800, gt=0)
    DEVICE_SCALE_FACTOR: float = Field(default=1.0, gt=0)
    TEMP_DIR: Optional[str] = Field(default=None)

    # transport
    MCP_TRANSPORT: Literal["stdio", "streamable-http", "sse"] = Field(default="stdio")
    MCP_HOST: str = Field(default="0.0.0.0")
    MCP_PORT: int = Field(default=8001)
    MCP_MOUNT_PATH: str = Field(default="/mcp")
    MCP_SSE_PATH: str = Field(default="/sse")

    @field_validator("LOG_LEVEL")
    @classmethod
    def _canonical_level(cls, v: str) -> str:
        # WARN -> WARNING, FATAL -> CRITICAL; uvicorn only knows the canonical names
        lvl = logging.getLevelName((v or "").strip().upper())
        if not isinstance(lvl, int) or lvl == logging.NOTSET:
            raise ValueError(f"unknown log level: {v!r}")
        return logging.getLevelName(lvl)

    @property
    def output_mode(self) -> OutputMode:
        return "inline" if self.CONTENT_IMAGE_SUPPORTED else "file"

    @property
    def save_to_disk(self) -> bool:
        return self.output_mode == "file"

    @property
    def browser_args(self) -> List[str]:
        return [a.strip() for a in self.BROWSER_ARGS.split(",") if a.strip()]

    def log_summary(self) -> None:
        log.info("settings.loaded", extra={
            "output_mode": self.output_mode,
            "log_level": self.LOG_LEVEL,
            "mermaid_source": self.MERMAID_JS_PATH or self.MERMAID_JS_URL,
            "browser_executable": self.BROWSER_EXECUTABLE_PATH or "<bundled>",
            "browser_args": self.browser_args,
            "transport": self.MCP_TRANSPORT,
        })
