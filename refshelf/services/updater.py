# refshelf/services/updater.py
from __future__ import annotations

from typing import Iterable, Optional, Union

from pydantic import ValidationError

from refshelf.core.log_setup import item_logger
from refshelf.schemas.media import (
    ImageMetadata,
    LinkMetadata,
    OperationResult,
    PatternTag,
    ResultCode,
    VideoMetadata,
    dump_metadata,
    parse_metadata,
)
from refshelf.services import fsops
from refshelf.services.identity import InvalidIdError, validate_id
from refshelf.services.storage import StorageContext

AnyMetadata = Union[ImageMetadata, VideoMetadata, LinkMetadata]


def with_analysis(meta: AnyMetadata, patterns: Optional[Iterable[Union[PatternTag, dict]]] = None,
                  error: Optional[str] = None) -> AnyMetadata:
    """
    Replacement sidecar for a finished analysis: patterns (or an error) recorded,
    isAnalyzing cleared. imageContext comes from the first pattern carrying one.
    """
    update: dict = {"is_analyzing": False}
    if patterns is not None:
        tags = [p if isinstance(p, PatternTag) else PatternTag.model_validate(p) for p in patterns]
        update["patterns"] = tags
        update["error"] = None
        context = next((t.context for t in tags if t.context), None)
        if context:
            update["image_context"] = context
    if error is not None:
        update["error"] = error
    return meta.model_copy(update=update)


class MetadataUpdater:
    """Overwrites sidecars wholesale. Media bytes are never touched."""

    def __init__(self, ctx: StorageContext) -> None:
        self.ctx = ctx

    async def update(self, item_id: str, metadata: Union[dict, AnyMetadata]) -> OperationResult:
        # No check for a matching media file: an unknown id gets a sidecar anyway
        # (a ghost record that listings drop unless it is a link card).
        log = item_logger(item_id, __name__)
        try:
            validate_id(item_id)
            meta = metadata if not isinstance(metadata, dict) else parse_metadata(metadata)
        except (InvalidIdError, ValidationError, ValueError) as e:
            log.warning(f"Rejected metadata update: {e}")
            return OperationResult.fail(ResultCode.INVALID, str(e))

        metadata_path = self.ctx.active.metadata_path(item_id)
        try:
            await fsops.write_json_atomic(metadata_path, dump_metadata(meta))
        except OSError as e:
            log.error(f"Error updating metadata: {e}")
            return OperationResult.fail(ResultCode.IO_ERROR, str(e))

        log.info(f"Updated metadata at: {metadata_path}")
        return OperationResult.ok(path=str(metadata_path))
