from __future__ import annotations

from typing import Optional

from .types import GenerationErrorKind


class WaiiError(Exception):
    """Base class for every failure the generation pipeline can surface."""


class ValidationError(WaiiError):
    """A required input is missing or unusable; raised before any network call."""


class FetchError(WaiiError):
    def __init__(self, url: str, status_code: int):
        super().__init__(f"HTTP error fetching {url}: status {status_code}")
        self.url = url
        self.status_code = status_code


class NetworkError(WaiiError):
    """The transport itself failed (DNS, refused connection, timeout)."""

    def __init__(self, url: str, reason: str = ""):
        super().__init__(f"Could not reach {url}: {reason}" if reason else f"Could not reach {url}")
        self.url = url


class DecodeError(WaiiError):
    pass


class RasterizeError(WaiiError):
    pass


class GenerationError(WaiiError):
    def __init__(self, kind: GenerationErrorKind, raw_message: str = ""):
        super().__init__(raw_message or kind.value)
        self.kind = kind
        self.raw_message = raw_message


_GENERATION_MESSAGES = {
    GenerationErrorKind.INVALID_CREDENTIALS: "The API key is missing or invalid. Check your GOOGLE_API_KEY configuration.",
    GenerationErrorKind.CONTENT_POLICY_BLOCKED: "The request was blocked by the safety filters. Try rephrasing your prompt or using different images.",
    GenerationErrorKind.NETWORK_FAILURE: "Could not reach the image generation service. Check your connection and try again.",
    GenerationErrorKind.MALFORMED_REQUEST: "The request was rejected as malformed. Try a different image or a simpler prompt.",
    GenerationErrorKind.NO_IMAGE_RETURNED: "No image was generated in the response. Try adjusting your prompt.",
    GenerationErrorKind.UNKNOWN: "Failed to generate image. Please try again.",
}


def user_message(exc: Optional[BaseException]) -> str:
    """Turn any pipeline failure into the single string shown to the user."""
    if isinstance(exc, GenerationError):
        return _GENERATION_MESSAGES[exc.kind]
    if isinstance(exc, NetworkError):
        return (
            "Could not load the selected model image: the host is unreachable or refused "
            "the request. Try another model or upload the photo instead."
        )
    if isinstance(exc, FetchError):
        return f"Could not load the selected model image (HTTP {exc.status_code})."
    if isinstance(exc, DecodeError):
        return f"Could not read the image: {exc}"
    if isinstance(exc, RasterizeError):
        return "The generated image could not be processed for download."
    if isinstance(exc, ValidationError):
        return str(exc)
    return "An unknown error occurred."
