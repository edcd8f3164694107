# refshelf/api/routes/files.py
# Local-resource access: readability checks + serving media files to the shell.

from __future__ import annotations

import os

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from refshelf.api.deps import get_store
from refshelf.schemas.media import FileAccess
from refshelf.services.store import ContentStore
from refshelf.utils.paths import path_from_local_ref, safe_rel_under

# Router mounted under /api in main.py (→ /api/files/...)
api_router = APIRouter(prefix="/files", tags=["files"])
# Public router mounted without prefix (→ /local-file/*)
public_router = APIRouter(tags=["files-public"])


@api_router.get("/access", response_model=FileAccess)
def api_file_access(path: str) -> FileAccess:
    """Can the backend read this file? Accepts local-file://, file:// or a bare absolute path."""
    p = path_from_local_ref(path).expanduser()
    if not p.is_absolute():
        return FileAccess(path=str(p), accessible=False, error="path must be absolute")
    if not p.is_file():
        return FileAccess(path=str(p), accessible=False, error="file not found")
    if not os.access(p, os.R_OK):
        return FileAccess(path=str(p), accessible=False, error="permission denied")
    return FileAccess(path=str(p), accessible=True)


@public_router.get("/local-file/{rel_path:path}")
def serve_local_file(rel_path: str, store: ContentStore = Depends(get_store)):
    """Serve a media or asset file from images/ (active or trash side), nothing else."""
    ctx = store.ctx
    target = (ctx.root.resolve() / rel_path).resolve()

    # Security: only the images/ directories; no journal, logs or traversal outside the root
    if all(safe_rel_under(d, target) is None for d in (ctx.active.images, ctx.trash.images)):
        raise HTTPException(status_code=403, detail="forbidden path")
    if not target.exists() or not target.is_file():
        raise HTTPException(status_code=404, detail="file not found")
    return FileResponse(target)
