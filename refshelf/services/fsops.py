# refshelf/services/fsops.py
# Small async file primitives shared by the writer, updater, trash and journal.
# - Writes go to a unique temp file in the target directory, then os.replace()
#   so a reader never sees half a sidecar
# - Moves prefer rename; across devices they fall back to copy + unlink
from __future__ import annotations

import asyncio
import errno
import json
import shutil
import uuid
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os


def _tmp_sibling(path: Path) -> Path:
    return path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.tmp")


async def write_bytes_atomic(path: Path, data: bytes) -> None:
    tmp = _tmp_sibling(path)
    try:
        async with aiofiles.open(tmp, "wb") as f:
            await f.write(data)
        await aiofiles.os.replace(tmp, path)
    except BaseException:
        if await aiofiles.os.path.exists(tmp):
            await aiofiles.os.remove(tmp)
        raise


async def write_json_atomic(path: Path, doc: Any) -> None:
    text = json.dumps(doc, indent=2, ensure_ascii=False)
    await write_bytes_atomic(path, text.encode("utf-8"))


async def read_json(path: Path) -> Any:
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        return json.loads(await f.read())


async def copy_file(src: Path, dst: Path) -> None:
    """Verbatim copy (through a temp sibling so dst appears complete or not at all)."""
    tmp = _tmp_sibling(dst)
    try:
        await asyncio.to_thread(shutil.copyfile, src, tmp)
        await aiofiles.os.replace(tmp, dst)
    except BaseException:
        if await aiofiles.os.path.exists(tmp):
            await aiofiles.os.remove(tmp)
        raise


async def exists(path: Path) -> bool:
    return await aiofiles.os.path.isfile(path)


async def move_file(src: Path, dst: Path) -> bool:
    """
    Move src over dst (overwriting). Returns False when src does not exist.
    Raises OSError on any other failure.
    """
    if not await aiofiles.os.path.isfile(src):
        return False
    try:
        await aiofiles.os.replace(src, dst)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        await asyncio.to_thread(shutil.copy2, src, dst)
        await aiofiles.os.remove(src)
    return True


def _clear_dir(d: Path) -> int:
    removed = 0
    if not d.is_dir():
        return 0
    for child in d.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()
        removed += 1
    return removed


async def clear_dir(d: Path) -> int:
    """Remove everything inside d (recursively), keep d itself. Returns entries removed."""
    return await asyncio.to_thread(_clear_dir, d)


async def list_json_stems(d: Path) -> list[str]:
    """Stems of *.json entries in d, skipping temp files. Missing dir -> []."""
    try:
        names = await aiofiles.os.listdir(d)
    except FileNotFoundError:
        return []
    return [n[:-5] for n in names if n.endswith(".json") and not n.startswith(".")]

