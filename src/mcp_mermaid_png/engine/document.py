from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

log = logging.getLogger("mcp.mermaid_png.engine.document")

CONTAINER_ID = "container"
SVG_SELECTOR = f"#{CONTAINER_ID} svg"
DEFAULT_BACKGROUND = "white"

_SHELL = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Mermaid Renderer</title>
  <style>
    html, body {{
      background: {background};
      margin: 0;
      padding: 0;
    }}
    #{container} {{
      background: {background};
      padding: 0;
      margin: 0;
    }}
  </style>
</head>
<body>
  <div id="{container}"></div>
</body>
</html>
"""

def build_html_shell(background: Optional[str] = None) -> str:
    # background is checked by is_safe_css_color before it gets here
    return _SHELL.format(background=background or DEFAULT_BACKGROUND, container=CONTAINER_ID)

@contextmanager
def html_document(background: Optional[str] = None, temp_dir: Optional[str] = None) -> Iterator[Path]:
    """
    Writes the shell to a temp .html file and removes it on exit,
    whatever happens inside the block.
    """
    fd, name = tempfile.mkstemp(prefix="mermaid-", suffix=".html", dir=temp_dir)
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(build_html_shell(background))
        log.debug("document.written", extra={"path": str(path)})
        yield path
    finally:
        path.unlink(missing_ok=True)
        log.debug("document.removed", extra={"path": str(path)})
