# refshelf/schemas/media.py
# Sidecar documents, listing records and operation results.
# Sidecars are a tagged union on "type" (image | video | link); unknown keys are kept
# as extras so documents written by newer clients survive a read/write cycle.
from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, TypeAdapter
from pydantic.alias_generators import to_camel

# Legacy sidecars call link cards "url".
_TYPE_ALIASES = {"url": "link"}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PatternTag(_CamelModel):
    """One finding from the analysis service."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str
    confidence: float = Field(ge=0.0, le=1.0)
    context: Optional[str] = None


class _Sidecar(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: Optional[str] = None
    # stored as given: epoch millis from the shell or an ISO string, never re-formatted
    created_at: Optional[Union[StrictInt, StrictFloat, StrictStr]] = None
    width: Optional[int] = None
    height: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    patterns: Optional[List[PatternTag]] = None
    is_analyzing: Optional[bool] = None
    error: Optional[str] = None
    image_context: Optional[str] = None
    file_path: Optional[str] = None

    @property
    def extras(self) -> Dict[str, Any]:
        """Keys this version does not model, as read from disk."""
        return dict(self.model_extra or {})


class ImageMetadata(_Sidecar):
    type: Literal["image"] = "image"


class VideoMetadata(_Sidecar):
    type: Literal["video"] = "video"
    duration: Optional[float] = None


class LinkMetadata(_Sidecar):
    type: Literal["link"] = "link"
    source_url: Optional[str] = None
    og_image_url: Optional[str] = None
    favicon_url: Optional[str] = None
    thumbnail_url: Optional[str] = None


Metadata = Annotated[Union[ImageMetadata, VideoMetadata, LinkMetadata], Field(discriminator="type")]
_METADATA = TypeAdapter(Metadata)

# Link fields that may name a locally downloaded asset instead of a remote URL.
ASSET_FIELDS = ("ogImageUrl", "faviconUrl", "thumbnailUrl")


def parse_metadata(doc: Any) -> Union[ImageMetadata, VideoMetadata, LinkMetadata]:
    """Validate a raw sidecar dict. Raises pydantic.ValidationError / ValueError."""
    if not isinstance(doc, dict):
        raise ValueError(f"metadata must be a JSON object, got {type(doc).__name__}")
    if doc.get("type") in _TYPE_ALIASES:
        doc = {**doc, "type": _TYPE_ALIASES[doc["type"]]}
    return _METADATA.validate_python(doc)


def dump_metadata(meta: _Sidecar) -> Dict[str, Any]:
    """Sidecar dict as written to disk: camelCase, only keys that were given, "type" always present."""
    data = meta.model_dump(mode="json", by_alias=True, exclude_unset=True)
    data["type"] = meta.type
    return data


# -------------------- Listing records --------------------

class MediaRecord(_CamelModel):
    id: str
    type: Literal["image", "video", "link"]
    url: Optional[str] = None              # local-resource URL of the media file
    media_path: Optional[str] = None       # absent for link cards
    metadata_path: str
    asset_urls: Dict[str, str] = Field(default_factory=dict)  # local link-preview assets
    media_url: Optional[str] = None        # http URL, filled in by the API layer
    metadata: Metadata


# -------------------- Results --------------------

class ResultCode(str, Enum):
    OK = "ok"
    IO_ERROR = "io_error"
    INVALID = "invalid"
    NOTHING_TO_DELETE = "nothing_to_delete"
    NOT_FOUND = "not_found"


class OperationResult(_CamelModel):
    success: bool
    code: ResultCode = ResultCode.OK
    path: Optional[str] = None
    error: Optional[str] = None
    moved: List[str] = Field(default_factory=list)

    @classmethod
    def ok(cls, path: Optional[str] = None, moved: Optional[List[str]] = None) -> "OperationResult":
        return cls(success=True, path=path, moved=moved or [])

    @classmethod
    def fail(cls, code: ResultCode, error: str, moved: Optional[List[str]] = None) -> "OperationResult":
        return cls(success=False, code=code, error=error, moved=moved or [])


# -------------------- API payloads --------------------

class SaveItemRequest(_CamelModel):
    id: str
    payload: Optional[str] = None          # data: URL, file path, or null for link cards
    metadata: Dict[str, Any]


class UpdateMetadataRequest(_CamelModel):
    metadata: Dict[str, Any]


class SaveAssetRequest(_CamelModel):
    filename: str
    payload: str


class StorageInfo(_CamelModel):
    root: str
    trash: str
    journal: str


class FileAccess(_CamelModel):
    path: str
    accessible: bool
    error: Optional[str] = None
