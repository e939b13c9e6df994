from __future__ import annotations

import base64
import binascii
from enum import StrEnum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GenerationMode(StrEnum):
    COMPOSITE = "composite"
    TEXT_TO_IMAGE = "text"


class AspectRatio(StrEnum):
    SQUARE = "1:1"
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    STANDARD = "4:3"
    TALL = "3:4"


class OutputFormat(StrEnum):
    JPEG = "jpeg"
    PNG = "png"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    @property
    def extension(self) -> str:
        return "jpg" if self is OutputFormat.JPEG else "png"

    @property
    def pillow_format(self) -> str:
        return self.value.upper()


class GenerationErrorKind(StrEnum):
    INVALID_CREDENTIALS = "invalid_credentials"
    CONTENT_POLICY_BLOCKED = "content_policy_blocked"
    NETWORK_FAILURE = "network_failure"
    MALFORMED_REQUEST = "malformed_request"
    NO_IMAGE_RETURNED = "no_image_returned"
    UNKNOWN = "unknown"


class PipelineState(StrEnum):
    IDLE = "idle"
    VALIDATING = "validating"
    REQUESTING = "requesting"
    WATERMARKING = "watermarking"
    READY = "ready"
    FAILED = "failed"


class ImagePayload(BaseModel):
    """Raw base64 image bytes plus their MIME type, as sent to the model."""

    model_config = ConfigDict(frozen=True)

    data: str
    mime_type: str

    @field_validator("data")
    @classmethod
    def _no_data_uri_prefix(cls, v: str) -> str:
        if v.startswith("data:"):
            raise ValueError("payload data must be raw base64, not a data URI")
        return v

    @field_validator("mime_type")
    @classmethod
    def _image_mime(cls, v: str) -> str:
        if not v.startswith("image/"):
            raise ValueError(f"not an image MIME type: {v!r}")
        return v

    def to_bytes(self) -> bytes:
        try:
            return base64.b64decode(self.data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("payload data is not valid base64") from exc


class StylePreset(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    prompt_suffix: str


class LocalFile(BaseModel):
    """An uploaded image held in memory, with the MIME type its uploader declared."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    content: bytes
    mime_type: str
    name: str = "upload"


class StockUrl(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["url"] = "url"
    url: str


# Exactly one model source per request: an upload or a stock model URL, never both.
ModelSource = Annotated[Union[LocalFile, StockUrl], Field(discriminator="kind")]


class RequestContext(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    mode: GenerationMode
    model_source: Optional[ModelSource] = None
    product_image: Optional[LocalFile] = None
    prompt: str = ""
    style: StylePreset
    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    output_format: OutputFormat = OutputFormat.PNG
    jpeg_quality: float = Field(default=0.92, ge=0.0, le=1.0)
