# refshelf/services/storage.py
# Storage root resolution + the StorageContext value passed to every store component.
# - Active and trash areas share one layout: images/ + metadata/
# - The context is built once (resolve_storage) and handed around; there is no module-level root

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from refshelf.services.identity import media_filename, metadata_filename, validate_id

logger = logging.getLogger(__name__)

APP_DIR_NAME = "UIReferenceApp"
TRASH_DIRNAME = ".trash"
JOURNAL_DIRNAME = ".journal"

_README = (
    "This folder contains your UI Reference app images and data.\n"
    "Files are stored as PNG images (MP4 for videos) with accompanying JSON metadata.\n"
    "Deleted items sit in .trash/ until the app next starts or quits.\n\n"
    "Storage location: {root}\n"
)


@dataclass(frozen=True)
class Area:
    """One side of the store (active or trash): <base>/images + <base>/metadata."""

    base: Path

    @property
    def images(self) -> Path:
        return self.base / "images"

    @property
    def metadata(self) -> Path:
        return self.base / "metadata"

    def media_path(self, item_id: str) -> Path:
        return self.images / media_filename(validate_id(item_id))

    def metadata_path(self, item_id: str) -> Path:
        return self.metadata / metadata_filename(validate_id(item_id))

    def asset_path(self, filename: str) -> Path:
        return self.images / validate_id(filename)


@dataclass(frozen=True)
class StorageContext:
    root: Path

    @property
    def active(self) -> Area:
        return Area(self.root)

    @property
    def trash(self) -> Area:
        return Area(self.root / TRASH_DIRNAME)

    @property
    def journal_dir(self) -> Path:
        return self.root / JOURNAL_DIRNAME

    def directories(self) -> list[Path]:
        return [
            self.active.images, self.active.metadata,
            self.trash.images, self.trash.metadata,
            self.journal_dir,
        ]


def default_storage_root(platform: Optional[str] = None, *, home: Optional[Path] = None,
                         env: Optional[Mapping[str, str]] = None) -> Path:
    """
    Platform default:
      - macOS:   ~/Documents/UIReferenceApp (visible to the user)
      - Windows: %APPDATA%/UIReferenceApp/images
      - other:   $XDG_CONFIG_HOME (or ~/.config)/UIReferenceApp/images
    """
    platform = platform or sys.platform
    home = home or Path.home()
    env = os.environ if env is None else env

    if platform == "darwin":
        return home / "Documents" / APP_DIR_NAME
    if platform.startswith("win"):
        appdata = env.get("APPDATA")
        base = Path(appdata) if appdata else (home / "AppData" / "Roaming")
        return base / APP_DIR_NAME / "images"
    xdg = env.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else (home / ".config")
    return base / APP_DIR_NAME / "images"


def resolve_storage(root: Optional[Path] = None, *, platform: Optional[str] = None) -> StorageContext:
    """Pick the root (explicit or platform default) and create the directory skeleton."""
    platform = platform or sys.platform
    base = Path(root).expanduser() if root else default_storage_root(platform)
    ctx = StorageContext(base.resolve())

    for d in ctx.directories():
        d.mkdir(parents=True, exist_ok=True)

    if platform == "darwin":
        readme = ctx.root / "README.txt"
        if not readme.exists():
            readme.write_text(_README.format(root=ctx.root), encoding="utf-8")

    logger.info(f"Storage root: {ctx.root}")
    return ctx
