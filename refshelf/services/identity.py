# refshelf/services/identity.py
# Id <-> kind <-> filename rules for stored items.
# - The id prefix decides the media extension: 'vid_' -> .mp4, anything else -> .png
# - Link cards are recognized by their metadata 'type', never by id shape
# - Every on-disk name is computed from the id alone (no per-item extension field)

from __future__ import annotations

import random
import time
from typing import Literal, Optional

MediaKind = Literal["image", "video"]

VIDEO_PREFIX = "vid_"
IMAGE_PREFIX = "img_"

_EXT_BY_KIND = {
    "image": ".png",
    "video": ".mp4",
}

METADATA_EXT = ".json"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class InvalidIdError(ValueError):
    """Raised when an id (or asset filename) could address a path outside its directory."""


def derive_kind(item_id: str) -> MediaKind:
    """Kind of the media file an id points at (prefix-based)."""
    return "video" if item_id.startswith(VIDEO_PREFIX) else "image"


def extension_for(kind: str) -> str:
    """'.mp4' for video, '.png' for everything else."""
    return _EXT_BY_KIND.get(kind, _EXT_BY_KIND["image"])


def media_filename(item_id: str) -> str:
    return f"{item_id}{extension_for(derive_kind(item_id))}"


def metadata_filename(item_id: str) -> str:
    return f"{item_id}{METADATA_EXT}"


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_BASE36[r])
    return "".join(reversed(out))


def new_id(kind: str = "image", *, now_ms: Optional[int] = None) -> str:
    """
    Mint '<img|vid>_<unixMillis>_<base36>' ids.
    Collisions are avoided by timestamp + random suffix, not by locking.
    """
    prefix = VIDEO_PREFIX if kind == "video" else IMAGE_PREFIX
    ms = int(time.time() * 1000) if now_ms is None else int(now_ms)
    suffix = _base36(random.getrandbits(40)).rjust(8, "0")
    return f"{prefix}{ms}_{suffix}"


def validate_id(item_id: str) -> str:
    """
    Reject ids that are empty or could escape their directory.
    Returns the id unchanged so callers can use it inline.
    """
    if not isinstance(item_id, str) or not item_id.strip():
        raise InvalidIdError("id must be a non-empty string")
    if "/" in item_id or "\\" in item_id or "\x00" in item_id:
        raise InvalidIdError(f"id contains a path separator: {item_id!r}")
    if item_id in (".", "..") or item_id.startswith("."):
        raise InvalidIdError(f"id may not start with a dot: {item_id!r}")
    return item_id
