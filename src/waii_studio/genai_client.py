from __future__ import annotations

import base64
import binascii
import logging
import time
from typing import Any, List, Optional

from google import genai
from google.genai import types

from .config import Settings, load_settings
from .errors import GenerationError
from .types import AspectRatio, GenerationErrorKind, ImagePayload


logger = logging.getLogger(__name__)

# Checked in order against the lower-cased provider message; first match wins.
# The provider exposes no structured error codes, so this is best-effort.
_ERROR_KEYWORDS = (
    (GenerationErrorKind.INVALID_CREDENTIALS, ("api key", "permission denied", "api_key")),
    (GenerationErrorKind.CONTENT_POLICY_BLOCKED, ("safety", "blocked")),
    (GenerationErrorKind.NETWORK_FAILURE, ("network", "fetch failed")),
    (GenerationErrorKind.MALFORMED_REQUEST, ("malformed",)),
)


def classify_error(exc: BaseException | str) -> GenerationError:
    message = str(exc)
    lowered = message.lower()
    for kind, keywords in _ERROR_KEYWORDS:
        if any(k in lowered for k in keywords):
            return GenerationError(kind, message)
    return GenerationError(GenerationErrorKind.UNKNOWN, message)


def build_composite_instruction(prompt: str, has_product: bool) -> str:
    if has_product:
        return (
            "Image 1 is the model/background. Image 2 is the product. "
            "Please realistically composite the product from Image 2 into Image 1 "
            f'based on the following instructions: "{prompt}". '
            "Ensure lighting, shadows, and perspective are seamlessly blended."
        )
    return (
        "This image is the background. Edit it based on the following instructions: "
        f'"{prompt}". Keep the result photorealistic.'
    )


def has_api_key(settings: Optional[Settings] = None) -> bool:
    settings = settings or load_settings()
    return bool(settings.api_key)


def _coerce_bytes(blob: Any) -> Optional[bytes]:
    if isinstance(blob, (bytes, bytearray)):
        return bytes(blob)
    if isinstance(blob, str):
        try:
            return base64.b64decode(blob)
        except (ValueError, binascii.Error):
            return None
    return None


def _extract_first_image_from_parts(parts) -> ImagePayload:
    for part in parts or []:
        inline = getattr(part, "inline_data", None)
        if inline is None:
            continue
        raw = _coerce_bytes(getattr(inline, "data", None))
        if raw:
            mime_type = getattr(inline, "mime_type", None) or "image/png"
            return ImagePayload(data=base64.b64encode(raw).decode("ascii"), mime_type=mime_type)
    raise GenerationError(GenerationErrorKind.NO_IMAGE_RETURNED, "No image was generated in the response.")


def _response_parts(resp) -> List[Any]:
    candidates = getattr(resp, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def _to_part(payload: ImagePayload):
    return types.Part.from_bytes(data=payload.to_bytes(), mime_type=payload.mime_type)


class GenerationClient:
    """Uniform front for the composite and text-to-image remote models.

    Each call makes exactly one outbound request with no retries; every
    provider failure is re-raised as a classified ``GenerationError``.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Any = None):
        self.settings = settings or load_settings()
        self._client = client

    def _get_client(self):
        if self._client is not None:
            return self._client
        if not self.settings.api_key:
            raise GenerationError(GenerationErrorKind.INVALID_CREDENTIALS, "API key not configured")
        self._client = genai.Client(api_key=self.settings.api_key)
        return self._client

    def composite(
        self,
        model_image: ImagePayload,
        product_image: Optional[ImagePayload],
        instruction: str,
    ) -> ImagePayload:
        client = self._get_client()
        contents: List[Any] = [_to_part(model_image)]
        if product_image is not None:
            contents.append(_to_part(product_image))
        contents.append(build_composite_instruction(instruction, product_image is not None))

        config = types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"])
        start = time.perf_counter()
        try:
            resp = client.models.generate_content(
                model=self.settings.composite_model,
                contents=contents,
                config=config,
            )
        except Exception as exc:
            err = classify_error(exc)
            logger.warning("composite failed (%s): %s", err.kind, err.raw_message)
            raise err from exc
        logger.info(
            "composite returned in %.0f ms (product=%s)",
            (time.perf_counter() - start) * 1000.0,
            product_image is not None,
        )
        return _extract_first_image_from_parts(_response_parts(resp))

    def text_to_image(self, prompt: str, aspect_ratio: AspectRatio) -> ImagePayload:
        client = self._get_client()
        config = types.GenerateImagesConfig(
            number_of_images=1,
            output_mime_type="image/jpeg",
            aspect_ratio=str(aspect_ratio),
        )
        start = time.perf_counter()
        try:
            resp = client.models.generate_images(
                model=self.settings.text_model,
                prompt=prompt,
                config=config,
            )
        except Exception as exc:
            err = classify_error(exc)
            logger.warning("text-to-image failed (%s): %s", err.kind, err.raw_message)
            raise err from exc
        logger.info("text-to-image returned in %.0f ms", (time.perf_counter() - start) * 1000.0)

        for generated in getattr(resp, "generated_images", None) or []:
            image = getattr(generated, "image", None)
            raw = _coerce_bytes(getattr(image, "image_bytes", None))
            if raw:
                mime_type = getattr(image, "mime_type", None) or "image/jpeg"
                return ImagePayload(data=base64.b64encode(raw).decode("ascii"), mime_type=mime_type)
        raise GenerationError(GenerationErrorKind.NO_IMAGE_RETURNED, "No image was generated in the response.")
