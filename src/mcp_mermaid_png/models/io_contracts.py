from __future__ import annotations

import base64
from typing import Any, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..engine.sanity import is_safe_css_color, sanitize_mermaid
from ..errors import InvalidArgumentsError, MermaidPngError
from ..utils.paths import check_output_folder, check_output_name

Theme = Literal["default", "forest", "dark", "neutral"]

FailureKind = Literal["invalid_arguments", "render", "sandbox", "output", "internal"]


class GenerateRequest(BaseModel):
    """
    Arguments of the ``generate`` tool:
      - code: Mermaid source (a surrounding ``` fence is stripped)
      - theme: Mermaid theme name
      - backgroundColor: CSS color painted behind the diagram
      - name / folder: output file stem and directory (file mode only)
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    code: str = Field(min_length=1)
    theme: Optional[Theme] = None
    background_color: Optional[str] = Field(default=None, alias="backgroundColor")
    name: Optional[str] = None
    folder: Optional[str] = None

    @field_validator("code")
    @classmethod
    def _clean_code(cls, v: str) -> str:
        s = sanitize_mermaid(v)
        if not s:
            raise ValueError("code must contain a Mermaid diagram")
        return s

    @field_validator("background_color")
    @classmethod
    def _check_color(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if not is_safe_css_color(v):
            raise ValueError(f"not a CSS color: {v!r}")
        return v


def _describe(err: ValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(x) for x in e.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {e.get('msg')}")
    return "; ".join(parts)


def validate_generate_args(payload: Any, *, require_output: bool) -> GenerateRequest:
    """
    Check an untyped tool payload before any rendering resource is touched.

    Raises InvalidArgumentsError on any problem, including (in file mode) a
    missing name/folder, an unsafe name or an unusable folder.
    """
    if payload is None:
        raise InvalidArgumentsError("No arguments provided")
    if not isinstance(payload, Mapping):
        raise InvalidArgumentsError("arguments must be an object")

    try:
        req = GenerateRequest.model_validate(dict(payload))
    except ValidationError as e:
        raise InvalidArgumentsError(
            _describe(e),
            data={"errors": e.errors(include_url=False, include_context=False)},
        ) from e

    if require_output:
        missing = [f for f in ("name", "folder") if not (getattr(req, f) or "").strip()]
        if missing:
            raise InvalidArgumentsError(
                f"{' and '.join(missing)} required when saving images to disk",
                data={"missing": missing},
            )
        try:
            check_output_name(req.name or "")
            check_output_folder(req.folder or "")
        except MermaidPngError as e:
            raise InvalidArgumentsError(e.message) from e

    return req


class RenderedImage(BaseModel):
    data: bytes
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    mime_type: str = "image/png"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class RenderFailure(BaseModel):
    kind: FailureKind
    message: str
    diagnostics: List[str] = Field(default_factory=list)

    @classmethod
    def from_error(cls, err: MermaidPngError, diagnostics: Optional[List[str]] = None) -> "RenderFailure":
        return cls(kind=err.kind, message=err.message, diagnostics=list(diagnostics or []))


RenderOutcome = Union[RenderedImage, RenderFailure]
