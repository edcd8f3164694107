# refshelf/api/routes/trash.py

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from refshelf.api.deps import get_store
from refshelf.schemas.media import MediaRecord, OperationResult
from refshelf.services.store import ContentStore
from refshelf.utils.http import raise_for_result, with_media_url

# Router mounted under /api in main.py (→ /api/trash)
api_router = APIRouter(prefix="/trash", tags=["trash"])


@api_router.get("", response_model=list[MediaRecord])
async def api_list_trash(request: Request, store: ContentStore = Depends(get_store)) -> list[MediaRecord]:
    """Items currently in the trash (same join + orphan rules as the active listing)."""
    records = await store.trash.list_trash()
    return [with_media_url(request, store.ctx.root, r) for r in records]


@api_router.delete("", response_model=OperationResult)
async def api_empty_trash(store: ContentStore = Depends(get_store)) -> OperationResult:
    return raise_for_result(await store.trash.empty_trash())
