# refshelf/api/routes/items.py
# Item routes only. Keep routes thin; all file work happens in the store services.

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from refshelf.api.deps import checked_id, get_store
from refshelf.schemas.media import (
    MediaRecord,
    OperationResult,
    SaveAssetRequest,
    SaveItemRequest,
    StorageInfo,
    UpdateMetadataRequest,
)
from refshelf.services.store import ContentStore
from refshelf.utils.http import raise_for_result, with_media_url

# Router mounted under /api in main.py (→ /api/items/..., /api/storage, /api/assets)
api_router = APIRouter(tags=["items"])


@api_router.get("/storage", response_model=StorageInfo)
def api_storage(store: ContentStore = Depends(get_store)) -> StorageInfo:
    """Where the store keeps its files."""
    ctx = store.ctx
    return StorageInfo(root=str(ctx.root), trash=str(ctx.trash.base), journal=str(ctx.journal_dir))


@api_router.get("/items", response_model=list[MediaRecord])
async def api_list_items(request: Request, store: ContentStore = Depends(get_store)) -> list[MediaRecord]:
    records = await store.reader.list_items()
    return [with_media_url(request, store.ctx.root, r) for r in records]


@api_router.get("/items/{item_id}", response_model=MediaRecord)
async def api_get_item(request: Request, item_id: str = Depends(checked_id),
                       store: ContentStore = Depends(get_store)) -> MediaRecord:
    rec = await store.reader.get_item(item_id)
    if rec is None:
        raise HTTPException(status_code=404, detail="item not found")
    return with_media_url(request, store.ctx.root, rec)


@api_router.post("/items", response_model=OperationResult, status_code=201)
async def api_save_item(body: SaveItemRequest, store: ContentStore = Depends(get_store)) -> OperationResult:
    """
    Save one item. `payload` is a data: URL, a file path (file:// / local-file:// / absolute),
    or null for link cards.
    """
    result = await store.writer.save(body.id, body.payload, body.metadata)
    return raise_for_result(result)


@api_router.put("/items/{item_id}/metadata", response_model=OperationResult)
async def api_update_metadata(body: UpdateMetadataRequest, item_id: str = Depends(checked_id),
                              store: ContentStore = Depends(get_store)) -> OperationResult:
    return raise_for_result(await store.updater.update(item_id, body.metadata))


@api_router.delete("/items/{item_id}", response_model=OperationResult)
async def api_delete_item(item_id: str = Depends(checked_id),
                          store: ContentStore = Depends(get_store)) -> OperationResult:
    return raise_for_result(await store.trash.delete(item_id))


@api_router.post("/items/{item_id}/restore", response_model=OperationResult)
async def api_restore_item(item_id: str = Depends(checked_id),
                           store: ContentStore = Depends(get_store)) -> OperationResult:
    return raise_for_result(await store.trash.restore(item_id))


@api_router.post("/assets", response_model=OperationResult, status_code=201)
async def api_save_asset(body: SaveAssetRequest, store: ContentStore = Depends(get_store)) -> OperationResult:
    """Store a downloaded link-preview image next to the media files."""
    return raise_for_result(await store.writer.save_asset(body.filename, body.payload))

