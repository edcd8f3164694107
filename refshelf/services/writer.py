# refshelf/services/writer.py
# Create items: media bytes first, sidecar second.
# - Payload sniffing: "data:" -> inline blob; file:// / local-file:// / bare path -> copy from disk
# - Images always land as PNG: PNG input is kept byte-for-byte, anything else is re-encoded
# - A failed media write leaves no sidecar; a failed sidecar write leaves an orphan media
#   file (never listed) and is reported as a failure. Media bytes are not rolled back.
from __future__ import annotations

import asyncio
import base64
import binascii
import urllib.parse
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import ValidationError

from refshelf.core.log_setup import item_logger
from refshelf.schemas.media import (
    LinkMetadata,
    OperationResult,
    ResultCode,
    dump_metadata,
    parse_metadata,
)
from refshelf.services import fsops
from refshelf.services.identity import InvalidIdError, derive_kind, validate_id
from refshelf.services.metadata import (
    ImageDecodeError,
    file_is_png,
    is_png,
    probe_image,
    reencode_png,
)
from refshelf.services.storage import StorageContext
from refshelf.utils.paths import path_from_local_ref

Payload = Union[str, bytes, Path, None]
PayloadKind = Literal["none", "inline", "path"]


class PayloadError(ValueError):
    """Payload is present but unusable (bad data URL, missing source file, ...)."""


def classify_payload(payload: Payload) -> PayloadKind:
    if payload is None:
        return "none"
    if isinstance(payload, (bytes, bytearray)):
        return "inline"
    if isinstance(payload, Path):
        return "path"
    if payload.startswith("data:"):
        return "inline"
    return "path"


def decode_data_url(data_url: str) -> bytes:
    """
    'data:<mime>[;base64],<data>' -> bytes.
    Non-base64 data URLs are percent-decoded.
    """
    header, sep, body = data_url.partition(",")
    if not sep or not header.startswith("data:"):
        raise PayloadError("malformed data URL")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as e:
            raise PayloadError(f"invalid base64 payload: {e}") from e
    return urllib.parse.unquote_to_bytes(body)


def source_path(payload: Union[str, Path]) -> Path:
    p = payload if isinstance(payload, Path) else path_from_local_ref(payload)
    p = p.expanduser()
    if not p.is_absolute():
        raise PayloadError(f"source path must be absolute: {p}")
    return p


class ContentWriter:
    def __init__(self, ctx: StorageContext) -> None:
        self.ctx = ctx

    async def _write_media(self, dest: Path, payload: Payload, kind: str) -> None:
        mode = classify_payload(payload)
        if mode == "inline":
            data = bytes(payload) if isinstance(payload, (bytes, bytearray)) else decode_data_url(payload)
            if kind == "image" and not is_png(data):
                data = await asyncio.to_thread(reencode_png, data)
            await fsops.write_bytes_atomic(dest, data)
            return

        src = source_path(payload)
        if not await fsops.exists(src):
            raise PayloadError(f"source file not found: {src}")
        if kind == "image" and not await asyncio.to_thread(file_is_png, src):
            data = await asyncio.to_thread(reencode_png, src)
            await fsops.write_bytes_atomic(dest, data)
            return
        await fsops.copy_file(src, dest)

    async def save(self, item_id: str, payload: Payload, metadata: dict) -> OperationResult:
        """
        Persist one item. Link cards (metadata type "link") are sidecar-only with filePath null;
        everything else needs a payload and gets images/<id><ext>.
        Returns OperationResult(path=<media path>) on success (path is None for link cards).
        """
        log = item_logger(item_id, __name__)
        try:
            validate_id(item_id)
            meta = parse_metadata(metadata)
        except (InvalidIdError, ValidationError, ValueError) as e:
            log.warning(f"Rejected save: {e}")
            return OperationResult.fail(ResultCode.INVALID, str(e))

        metadata_path = self.ctx.active.metadata_path(item_id)

        if isinstance(meta, LinkMetadata):
            if payload is not None:
                log.debug("Ignoring payload for link card")
            meta = meta.model_copy(update={"file_path": None})
            try:
                await fsops.write_json_atomic(metadata_path, dump_metadata(meta))
            except OSError as e:
                log.error(f"Error saving link card: {e}")
                return OperationResult.fail(ResultCode.IO_ERROR, str(e))
            log.info(f"Saved link card: {metadata_path}")
            return OperationResult.ok(path=None)

        kind = derive_kind(item_id)
        if meta.type != kind:
            msg = f"metadata type '{meta.type}' does not match id kind '{kind}'"
            log.warning(f"Rejected save: {msg}")
            return OperationResult.fail(ResultCode.INVALID, msg)
        if payload is None:
            return OperationResult.fail(ResultCode.INVALID, f"{kind} items need a payload")

        media_path = self.ctx.active.media_path(item_id)
        try:
            await self._write_media(media_path, payload, kind)
        except (PayloadError, ImageDecodeError) as e:
            log.warning(f"Rejected payload: {e}")
            return OperationResult.fail(ResultCode.INVALID, str(e))
        except OSError as e:
            log.error(f"Error writing media: {e}")
            return OperationResult.fail(ResultCode.IO_ERROR, str(e))

        update: dict = {"file_path": str(media_path)}
        if kind == "image" and (meta.width is None or meta.height is None):
            try:
                probed = await asyncio.to_thread(probe_image, media_path)
                update.update(width=probed["width"], height=probed["height"])
            except ImageDecodeError as e:
                log.debug(f"Could not read dimensions: {e}")
        meta = meta.model_copy(update=update)
        try:
            await fsops.write_json_atomic(metadata_path, dump_metadata(meta))
        except OSError as e:
            # media stays on disk as an orphan; listings skip it
            log.error(f"Media saved but sidecar write failed: {e}")
            return OperationResult.fail(ResultCode.IO_ERROR, str(e))

        log.info(f"Saved {kind} to: {media_path}")
        return OperationResult.ok(path=str(media_path))

    async def save_asset(self, filename: str, payload: Payload) -> OperationResult:
        """Store a downloaded link-preview asset (og:image, favicon) as images/<filename>, verbatim."""
        log = item_logger(filename, __name__)
        try:
            dest = self.ctx.active.asset_path(filename)
        except InvalidIdError as e:
            return OperationResult.fail(ResultCode.INVALID, str(e))
        if payload is None:
            return OperationResult.fail(ResultCode.INVALID, "asset payload is required")

        try:
            if classify_payload(payload) == "inline":
                data = bytes(payload) if isinstance(payload, (bytes, bytearray)) else decode_data_url(payload)
                await fsops.write_bytes_atomic(dest, data)
            else:
                src = source_path(payload)
                if not await fsops.exists(src):
                    raise PayloadError(f"source file not found: {src}")
                await fsops.copy_file(src, dest)
        except PayloadError as e:
            return OperationResult.fail(ResultCode.INVALID, str(e))
        except OSError as e:
            log.error(f"Error saving asset: {e}")
            return OperationResult.fail(ResultCode.IO_ERROR, str(e))

        log.info(f"Saved asset: {dest}")
        return OperationResult.ok(path=str(dest))
