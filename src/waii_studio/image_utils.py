from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
from pathlib import Path
from typing import Tuple, Union

import requests

from .constants import DOWNLOAD_STEM
from .errors import DecodeError, FetchError, NetworkError
from .types import ImagePayload, LocalFile, OutputFormat


logger = logging.getLogger(__name__)

FileSource = Union[LocalFile, str, Path]


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def encode_file(file: FileSource) -> ImagePayload:
    """Read a local image (upload or path) into a payload with its declared MIME type."""
    if isinstance(file, LocalFile):
        raw, mime_type = file.content, file.mime_type
    else:
        path = Path(file)
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise DecodeError(f"cannot read {path.name}: {exc}") from exc
        mime_type = mimetypes.guess_type(path.name)[0] or ""
    if not raw:
        raise DecodeError("file is empty")
    if not mime_type.startswith("image/"):
        raise DecodeError(f"unsupported file type {mime_type or 'unknown'!r}")
    return ImagePayload(data=_b64(raw), mime_type=mime_type)


def encode_remote(url: str, timeout: float = 20) -> ImagePayload:
    """Fetch an image over HTTP in a single attempt, keeping the reported MIME type."""
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise NetworkError(url, str(exc)) from exc
    if not resp.ok:
        raise FetchError(url, resp.status_code)

    mime_type = resp.headers.get("Content-Type", "").split(";")[0].strip().lower()
    if not mime_type.startswith("image/"):
        raise DecodeError(f"{url} did not return an image (Content-Type {mime_type or 'missing'!r})")
    try:
        data = _b64(resp.content)
    except (TypeError, binascii.Error) as exc:
        raise DecodeError(f"cannot encode bytes from {url}: {exc}") from exc
    if not data:
        raise DecodeError(f"{url} returned an empty body")
    logger.debug("fetched %s (%s, %d bytes)", url, mime_type, len(resp.content))
    return ImagePayload(data=data, mime_type=mime_type)


def to_data_uri(payload: ImagePayload) -> str:
    return f"data:{payload.mime_type};base64,{payload.data}"


def parse_data_uri(uri: str) -> ImagePayload:
    if not uri.startswith("data:") or ";base64," not in uri:
        raise DecodeError("not a base64 data URI")
    header, data = uri[len("data:"):].split(";base64,", 1)
    try:
        return ImagePayload(data=data, mime_type=header)
    except ValueError as exc:
        raise DecodeError(str(exc)) from exc


def decode_payload(image: Union[ImagePayload, str]) -> Tuple[bytes, str]:
    """Return the raw bytes and MIME type of a payload or data URI."""
    payload = parse_data_uri(image) if isinstance(image, str) else image
    try:
        return payload.to_bytes(), payload.mime_type
    except ValueError as exc:
        raise DecodeError(str(exc)) from exc


def download_filename(fmt: OutputFormat) -> str:
    return f"{DOWNLOAD_STEM}.{fmt.extension}"
