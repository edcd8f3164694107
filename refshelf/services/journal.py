# refshelf/services/journal.py
# Write-ahead markers for trash moves.
# A marker <journal>/<id>.json lists the planned (src, dst) moves of one delete/restore.
# It is written before the first move and removed after the last one; a marker still
# present at startup means the process died mid-operation. recover() rolls it forward
# if at least one move completed, and drops it otherwise.
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Sequence, Tuple

import aiofiles.os

from refshelf.core.log_setup import item_logger
from refshelf.services import fsops
from refshelf.services.identity import metadata_filename

logger = logging.getLogger(__name__)

Move = Tuple[Path, Path]


class MoveJournal:
    def __init__(self, journal_dir: Path) -> None:
        self.journal_dir = journal_dir

    def marker_path(self, item_id: str) -> Path:
        return self.journal_dir / metadata_filename(item_id)

    async def begin(self, item_id: str, op: str, moves: Sequence[Move]) -> Path:
        marker = self.marker_path(item_id)
        payload = {
            "id": item_id,
            "op": op,
            "started_at": datetime.now(timezone.utc).isoformat(),
            "moves": [[str(src), str(dst)] for src, dst in moves],
        }
        await fsops.write_json_atomic(marker, payload)
        return marker

    async def complete(self, item_id: str) -> None:
        marker = self.marker_path(item_id)
        try:
            await aiofiles.os.remove(marker)
        except FileNotFoundError:
            pass

    async def pending(self) -> List[str]:
        """Ids with an unfinished marker."""
        return await fsops.list_json_stems(self.journal_dir)

    async def recover(self) -> int:
        """
        Finish every pending marker that had started: move each pair whose source still
        exists and whose destination does not. Markers with no completed move are dropped.
        Returns the number of markers replayed.
        """
        replayed = 0
        for item_id in await self.pending():
            log = item_logger(item_id, __name__)
            marker = self.marker_path(item_id)
            try:
                doc = await fsops.read_json(marker)
                moves = [(Path(src), Path(dst)) for src, dst in doc["moves"]]
            except (OSError, ValueError, KeyError, TypeError) as e:
                log.error(f"Dropping unreadable journal marker {marker}: {e}")
                await self.complete(item_id)
                continue

            started = False
            for src, dst in moves:
                if not await fsops.exists(src) and await fsops.exists(dst):
                    started = True
                    break
            if not started:
                # died before the first move: the item never left its side
                log.info(f"Dropping journal marker with no completed move ({doc.get('op', 'move')})")
                await self.complete(item_id)
                continue

            for src, dst in moves:
                if await fsops.exists(dst) or not await fsops.exists(src):
                    continue
                try:
                    await fsops.move_file(src, dst)
                    log.info(f"Recovered {doc.get('op', 'move')}: {src} -> {dst}")
                except OSError as e:
                    log.error(f"Recovery move failed {src} -> {dst}: {e}")
            await self.complete(item_id)
            replayed += 1

        if replayed:
            logger.warning(f"Replayed {replayed} interrupted trash operation(s)")
        return replayed
