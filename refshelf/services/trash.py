# refshelf/services/trash.py
# Soft delete: active -> trashed -> {active (restore) | purged (empty_trash)}.
# - delete: media, then local link-preview assets, then the sidecar (last)
# - restore: the trash sidecar is read first (asset names), then assets, media, sidecar
# - Every move is independent: the first failure aborts the operation but nothing is
#   rolled back; the orphan rule keeps half-moved items out of both listings and,
#   once at least one file has moved, the journal marker lets the next startup finish
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Set

from refshelf.core.log_setup import item_logger
from refshelf.schemas.media import MediaRecord, OperationResult, ResultCode
from refshelf.services import fsops
from refshelf.services.identity import InvalidIdError, media_filename, validate_id
from refshelf.services.journal import Move, MoveJournal
from refshelf.services.reader import list_area, local_asset_names
from refshelf.services.storage import Area, StorageContext

logger = logging.getLogger(__name__)


async def _asset_names_from(sidecar: Path, item_id: str) -> List[str]:
    """Local asset filenames referenced by a sidecar; [] if it is missing or not JSON."""
    try:
        doc = await fsops.read_json(sidecar)
    except FileNotFoundError:
        return []
    except (OSError, ValueError) as e:
        item_logger(item_id, __name__).warning(f"Cannot read {sidecar} for assets: {e}")
        return []
    if not isinstance(doc, dict):
        return []
    own_media = media_filename(item_id)
    names = []
    for name in local_asset_names(doc).values():
        if name != own_media and name not in names:
            names.append(name)
    return names


class TrashManager:
    def __init__(self, ctx: StorageContext, journal: Optional[MoveJournal] = None) -> None:
        self.ctx = ctx
        self.journal = journal or MoveJournal(ctx.journal_dir)

    async def _assets_in_use(self, item_id: str) -> Set[str]:
        """Asset filenames referenced by active sidecars other than item_id's."""
        sidecars = []
        for stem in await fsops.list_json_stems(self.ctx.active.metadata):
            try:
                if stem != item_id:
                    sidecars.append((self.ctx.active.metadata_path(stem), stem))
            except InvalidIdError:
                continue
        in_use: Set[str] = set()
        for names in await asyncio.gather(*(_asset_names_from(p, s) for p, s in sidecars)):
            in_use.update(names)
        return in_use

    async def _plan(self, item_id: str, src: Area, dst: Area, *, assets_first: bool) -> List[Move]:
        """Moves whose source exists right now, in execution order."""
        names = await _asset_names_from(src.metadata_path(item_id), item_id)
        if names and not assets_first:
            # shared assets stay put while another active card still shows them
            shared = await self._assets_in_use(item_id)
            if shared & set(names):
                item_logger(item_id, __name__).info(f"Keeping shared assets: {sorted(shared & set(names))}")
            names = [n for n in names if n not in shared]
        media = (src.media_path(item_id), dst.media_path(item_id))
        assets = []
        for n in names:
            if assets_first and await fsops.exists(dst.asset_path(n)):
                continue  # restore: the active copy was kept for another card
            assets.append((src.asset_path(n), dst.asset_path(n)))
        sidecar = (src.metadata_path(item_id), dst.metadata_path(item_id))

        ordered = [*assets, media, sidecar] if assets_first else [media, *assets, sidecar]
        return [(s, d) for s, d in ordered if await fsops.exists(s)]

    async def _run(self, item_id: str, op: str, moves: List[Move]) -> OperationResult:
        log = item_logger(item_id, __name__)
        try:
            await self.journal.begin(item_id, op, moves)
        except OSError as e:
            log.error(f"Cannot write journal marker: {e}")
            return OperationResult.fail(ResultCode.IO_ERROR, str(e))

        moved: List[str] = []
        for src, dst in moves:
            try:
                if await fsops.move_file(src, dst):
                    moved.append(str(dst))
                    log.debug(f"{op}: {src} -> {dst}")
            except OSError as e:
                log.error(f"Error during {op} ({src} -> {dst}): {e}")
                if not moved:
                    # nothing changed on disk; the item stays where it was
                    await self.journal.complete(item_id)
                # otherwise the marker stays and startup recovery finishes the job
                return OperationResult.fail(ResultCode.IO_ERROR, str(e), moved=moved)

        await self.journal.complete(item_id)
        if not moved:
            # everything vanished between planning and moving
            code = ResultCode.NOTHING_TO_DELETE if op == "delete" else ResultCode.NOT_FOUND
            return OperationResult.fail(code, f"nothing to {op}")
        return OperationResult.ok(moved=moved)

    async def delete(self, item_id: str) -> OperationResult:
        """Move an item (media, local assets, sidecar) into the trash."""
        try:
            validate_id(item_id)
        except InvalidIdError as e:
            return OperationResult.fail(ResultCode.INVALID, str(e))

        moves = await self._plan(item_id, self.ctx.active, self.ctx.trash, assets_first=False)
        if not moves:
            item_logger(item_id, __name__).info("Nothing to delete")
            return OperationResult.fail(ResultCode.NOTHING_TO_DELETE, "nothing to delete")

        result = await self._run(item_id, "delete", moves)
        if result.success:
            item_logger(item_id, __name__).info(f"Moved to trash ({len(result.moved)} file(s))")
        return result

    async def restore(self, item_id: str) -> OperationResult:
        """Move a trashed item back to its active-side locations."""
        try:
            validate_id(item_id)
        except InvalidIdError as e:
            return OperationResult.fail(ResultCode.INVALID, str(e))

        moves = await self._plan(item_id, self.ctx.trash, self.ctx.active, assets_first=True)
        if not moves:
            return OperationResult.fail(ResultCode.NOT_FOUND, "nothing to restore")

        result = await self._run(item_id, "restore", moves)
        if result.success:
            item_logger(item_id, __name__).info(f"Restored from trash ({len(result.moved)} file(s))")
        return result

    async def empty_trash(self) -> OperationResult:
        """Purge both trash subdirectories. The directories themselves stay."""
        removed = 0
        try:
            for d in (self.ctx.trash.images, self.ctx.trash.metadata):
                removed += await fsops.clear_dir(d)
                d.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Error emptying trash: {e}")
            return OperationResult.fail(ResultCode.IO_ERROR, str(e))
        logger.info(f"Trash emptied ({removed} entr{'y' if removed == 1 else 'ies'})")
        return OperationResult.ok(path=str(self.ctx.trash.base))

    async def list_trash(self) -> List[MediaRecord]:
        return await list_area(self.ctx.trash)
