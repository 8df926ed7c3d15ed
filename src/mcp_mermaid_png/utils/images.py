from __future__ import annotations

import struct
from typing import Tuple

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

def png_dimensions(data: bytes) -> Tuple[int, int]:
    """Width and height from the IHDR chunk, which PNG requires to come first."""
    if len(data) < 24 or not data.startswith(PNG_SIGNATURE) or data[12:16] != b"IHDR":
        raise ValueError("not a PNG image")
    width, height = struct.unpack(">II", data[16:24])
    return width, height
