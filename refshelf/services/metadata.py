# refshelf/services/metadata.py
# Pillow-backed probing + PNG normalization for image payloads.
from __future__ import annotations

import io
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

# Optional HEIC/HEIF decoding (install the "heif" extra)
try:
    import pillow_heif  # type: ignore
    pillow_heif.register_heif_opener()
except ImportError:
    pass

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

ImageSource = Union[bytes, Path]


class ImageDecodeError(ValueError):
    """Payload could not be decoded as an image."""


def is_png(head: bytes) -> bool:
    return head[:8] == PNG_SIGNATURE


def file_is_png(p: Path) -> bool:
    with p.open("rb") as f:
        return is_png(f.read(8))


def _open(source: ImageSource) -> Image.Image:
    try:
        if isinstance(source, (bytes, bytearray)):
            return Image.open(io.BytesIO(source))
        return Image.open(source)
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"not a decodable image: {e}") from e


def probe_image(source: ImageSource) -> dict:
    """Return {format, width, height} for an image given as bytes or a path."""
    with _open(source) as im:
        w, h = im.size
        return {"format": im.format, "width": int(w), "height": int(h)}


def reencode_png(source: ImageSource) -> bytes:
    """Decode any Pillow-readable image and return it as PNG bytes (first frame only)."""
    with _open(source) as im:
        try:
            im.load()
        except OSError as e:
            raise ImageDecodeError(f"truncated or corrupt image: {e}") from e
        if im.mode not in ("1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"):
            im = im.convert("RGBA")
        buf = io.BytesIO()
        im.save(buf, format="PNG")
        return buf.getvalue()
