# refshelf/utils/paths.py
# Local-resource references: local-file:// URLs, file:// URLs and bare paths.
from __future__ import annotations

import urllib.parse
from pathlib import Path
from typing import Optional

LOCAL_SCHEME = "local-file://"
_REMOTE_PREFIXES = ("http://", "https://", "data:", "blob:")


def safe_rel_under(base: Path, target: Path) -> Optional[Path]:
    """
    Return target's path relative to base if target is inside base, else None.
    Prevents path traversal.
    """
    try:
        return target.resolve().relative_to(base.resolve())
    except (OSError, ValueError):
        return None


def local_file_url(path: Path) -> str:
    """Local-resource URL the desktop shell resolves without any network protocol."""
    return f"{LOCAL_SCHEME}{Path(path).as_posix()}"


def path_from_local_ref(ref: str) -> Path:
    """Strip local-file:// or file:// from a reference and return it as a Path."""
    if ref.startswith(LOCAL_SCHEME):
        return Path(ref[len(LOCAL_SCHEME):])
    if ref.startswith("file://"):
        return Path(urllib.parse.unquote(urllib.parse.urlparse(ref).path))
    return Path(ref)


def is_remote_ref(ref: str) -> bool:
    return ref.lower().startswith(_REMOTE_PREFIXES)
