# refshelf/utils/http.py
from __future__ import annotations

import urllib.parse
from pathlib import Path

from fastapi import HTTPException, Request

from refshelf.schemas.media import MediaRecord, OperationResult, ResultCode
from refshelf.utils.paths import safe_rel_under

_STATUS_BY_CODE = {
    ResultCode.INVALID: 400,
    ResultCode.NOTHING_TO_DELETE: 404,
    ResultCode.NOT_FOUND: 404,
    ResultCode.IO_ERROR: 500,
}


def abs_url(request: Request, path: str) -> str:
    """Return absolute URL (scheme://host/path) for a given path."""
    base = str(request.base_url).rstrip("/")
    return f"{base}{path}"


def with_media_url(request: Request, root: Path, rec: MediaRecord) -> MediaRecord:
    """Attach an http URL for the media file (served by the public /local-file route)."""
    if not rec.media_path:
        return rec
    rel = safe_rel_under(root, Path(rec.media_path))
    if rel is None:
        return rec
    rec.media_url = abs_url(request, "/local-file/" + urllib.parse.quote(rel.as_posix()))
    return rec


def raise_for_result(result: OperationResult) -> OperationResult:
    """Map a failed store result onto an HTTPException; pass successes through."""
    if result.success:
        return result
    status = _STATUS_BY_CODE.get(result.code, 500)
    raise HTTPException(status_code=status, detail={"code": result.code.value, "error": result.error})
