# refshelf/services/store.py
# One object per storage root wiring the store components together, plus the
# lifecycle hooks the app runs at startup/shutdown (journal recovery, trash purge).
from __future__ import annotations

import logging

from refshelf.services.journal import MoveJournal
from refshelf.services.reader import ContentReader
from refshelf.services.storage import StorageContext
from refshelf.services.trash import TrashManager
from refshelf.services.updater import MetadataUpdater
from refshelf.services.writer import ContentWriter

logger = logging.getLogger(__name__)


class ContentStore:
    def __init__(self, ctx: StorageContext) -> None:
        self.ctx = ctx
        self.journal = MoveJournal(ctx.journal_dir)
        self.writer = ContentWriter(ctx)
        self.reader = ContentReader(ctx)
        self.updater = MetadataUpdater(ctx)
        self.trash = TrashManager(ctx, self.journal)

    async def startup(self, *, recover: bool = True, empty_trash: bool = True) -> None:
        """Blocking precondition for serving: finish interrupted moves, then purge the trash."""
        if recover:
            await self.journal.recover()
        if empty_trash:
            result = await self.trash.empty_trash()
            if not result.success:
                logger.error(f"Startup trash purge failed: {result.error}")

    async def shutdown(self, *, empty_trash: bool = True) -> None:
        if empty_trash:
            result = await self.trash.empty_trash()
            if not result.success:
                logger.error(f"Shutdown trash purge failed: {result.error}")
