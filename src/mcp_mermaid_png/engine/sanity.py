from __future__ import annotations

import re
from typing import Iterable, List

def sanitize_mermaid(text: str) -> str:
    s = (text or "").strip()
    if s.startswith("```"):
        s = re.sub(r"^```[a-zA-Z0-9]*\s*", "", s)
        s = re.sub(r"\s*```$", "", s)
    return s.strip()

# Messages Mermaid produces when the diagram source itself is wrong
_SYNTAX_ERROR_RE = re.compile(
    r"(parse error|syntax error|lexical error|no diagram type detected|"
    r"unknowndiagramerror|expecting\s+'|unrecognized text)",
    flags=re.IGNORECASE,
)

def looks_like_syntax_error(message: str) -> bool:
    return bool(_SYNTAX_ERROR_RE.search(message or ""))

_CSS_COLOR_RE = re.compile(r"^[#A-Za-z0-9(),.%\s/-]{1,64}$")

def is_safe_css_color(value: str) -> bool:
    """
    Accepts hex, named, rgb()/hsl() style colors; rejects anything that could
    close the style block it is interpolated into.
    """
    return bool(_CSS_COLOR_RE.match(value or ""))

def tail_lines(lines: Iterable[str], n: int) -> List[str]:
    out = [ln.rstrip() for ln in lines if ln and ln.strip()]
    return out[-n:] if n > 0 else []
