# refshelf/services/reader.py
# Join sidecars with media files into listing records.
# - Sidecars are read concurrently (asyncio.gather, no cap; single-user corpus)
# - Link cards are returned as-is; image/video records need their media file
# - Orphans and unreadable sidecars are dropped with a log line, never raised
from __future__ import annotations

import asyncio
import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from refshelf.core.log_setup import item_logger
from refshelf.schemas.media import ASSET_FIELDS, LinkMetadata, MediaRecord, parse_metadata
from refshelf.services import fsops
from refshelf.services.identity import InvalidIdError, derive_kind, validate_id
from refshelf.services.storage import Area, StorageContext
from refshelf.utils.paths import is_remote_ref, local_file_url, path_from_local_ref

logger = logging.getLogger(__name__)


def local_asset_names(doc: dict) -> dict:
    """{field: filename} for link-preview fields that reference a local file instead of a URL."""
    out = {}
    for field in ASSET_FIELDS:
        ref = doc.get(field)
        if not isinstance(ref, str) or not ref or is_remote_ref(ref):
            continue
        name = path_from_local_ref(ref).name
        try:
            out[field] = validate_id(name)
        except InvalidIdError:
            continue
    return out


async def load_record(area: Area, item_id: str) -> Optional[MediaRecord]:
    """One joined record from `area`, or None if it is an orphan or its sidecar is unusable."""
    log = item_logger(item_id, __name__)
    try:
        metadata_path = area.metadata_path(item_id)
    except InvalidIdError as e:
        log.warning(f"Skipping sidecar with unusable name: {e}")
        return None
    try:
        doc = await fsops.read_json(metadata_path)
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        log.error(f"Error reading sidecar {metadata_path}: {e}")
        return None

    if isinstance(doc, dict) and "type" not in doc:
        # sidecars from before "type" was mandatory
        doc = {**doc, "type": derive_kind(item_id)}
    try:
        meta = parse_metadata(doc)
    except (ValidationError, ValueError) as e:
        log.error(f"Skipping malformed sidecar {metadata_path}: {e}")
        return None

    if isinstance(meta, LinkMetadata):
        asset_urls = {}
        for field, name in local_asset_names(doc).items():
            p = area.images / name
            if await fsops.exists(p):
                asset_urls[field] = local_file_url(p)
        return MediaRecord(
            id=item_id,
            type="link",
            metadata_path=str(metadata_path),
            asset_urls=asset_urls,
            metadata=meta,
        )

    kind = derive_kind(item_id)
    if meta.type != kind:
        log.debug(f"Sidecar says '{meta.type}', id says '{kind}'; using '{kind}'")
    media_path = area.media_path(item_id)
    if not await fsops.exists(media_path):
        log.warning(f"Media file not found: {media_path}")
        return None

    return MediaRecord(
        id=item_id,
        type=kind,
        url=local_file_url(media_path),
        media_path=str(media_path),
        metadata_path=str(metadata_path),
        metadata=meta,
    )


async def list_area(area: Area) -> List[MediaRecord]:
    """All self-consistent records in `area`. Order is unspecified."""
    stems = await fsops.list_json_stems(area.metadata)
    results = await asyncio.gather(*(load_record(area, s) for s in stems))
    records = [r for r in results if r is not None]
    logger.debug(f"Listed {len(records)}/{len(stems)} records under {area.base}")
    return records


class ContentReader:
    def __init__(self, ctx: StorageContext) -> None:
        self.ctx = ctx

    async def list_items(self) -> List[MediaRecord]:
        return await list_area(self.ctx.active)

    async def get_item(self, item_id: str) -> Optional[MediaRecord]:
        return await load_record(self.ctx.active, item_id)
