from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from .config import Settings, load_settings
from .constants import ACCEPTED_UPLOAD_TYPES
from .errors import ValidationError, user_message
from .genai_client import GenerationClient
from .image_utils import encode_file, encode_remote
from .types import (
    GenerationMode,
    ImagePayload,
    LocalFile,
    PipelineState,
    RequestContext,
    StockUrl,
    StylePreset,
)
from .watermark import PillowCodec, WatermarkPostProcessor


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineOutcome:
    token: int
    state: PipelineState
    artifact: Optional[str] = None
    error_message: Optional[str] = None
    error: Optional[BaseException] = None
    stale: bool = False


def build_full_prompt(prompt: str, style: StylePreset) -> str:
    return f"{prompt}. {style.prompt_suffix}."


def _check_upload(upload: LocalFile, slot: str) -> None:
    if upload.mime_type not in ACCEPTED_UPLOAD_TYPES:
        raise ValidationError(f"Unsupported format for {slot} photo. Please use JPG, PNG, or WebP.")


def validate_request(ctx: RequestContext) -> None:
    """Reject a request before any network call when a required input is missing."""
    if ctx.mode is GenerationMode.COMPOSITE:
        if ctx.model_source is None:
            raise ValidationError("Please upload or select a model image.")
        if isinstance(ctx.model_source, LocalFile):
            _check_upload(ctx.model_source, "model")
        if ctx.product_image is not None:
            _check_upload(ctx.product_image, "product")
    elif not ctx.prompt.strip():
        raise ValidationError("Please enter a prompt to generate an image.")


class GenerationOrchestrator:
    """Runs validate -> encode -> generate -> watermark for one request at a time.

    Every submission takes a fresh token. Only the run holding the latest
    token may commit its artifact or failure, so a slow earlier request can
    never overwrite the result of a newer one.
    """

    def __init__(
        self,
        client: Optional[GenerationClient] = None,
        watermarker: Optional[WatermarkPostProcessor] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or load_settings()
        self.client = client or GenerationClient(self.settings)
        self.watermarker = watermarker or WatermarkPostProcessor(PillowCodec(self.settings.watermark_font))
        self._lock = threading.Lock()
        self._token = 0
        self._state = PipelineState.IDLE
        self._artifact: Optional[str] = None
        self._error_message: Optional[str] = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def artifact(self) -> Optional[str]:
        return self._artifact

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def is_loading(self) -> bool:
        return self._state in (PipelineState.VALIDATING, PipelineState.REQUESTING, PipelineState.WATERMARKING)

    def _begin(self) -> int:
        with self._lock:
            self._token += 1
            self._state = PipelineState.VALIDATING
            self._artifact = None
            self._error_message = None
            return self._token

    def _advance(self, token: int, state: PipelineState) -> None:
        with self._lock:
            if token == self._token:
                self._state = state

    def _commit(self, token: int, state: PipelineState, artifact: Optional[str] = None, error: Optional[BaseException] = None) -> PipelineOutcome:
        message = user_message(error) if error is not None else None
        with self._lock:
            if token != self._token:
                logger.debug("discarding stale result for request %d (latest is %d)", token, self._token)
                return PipelineOutcome(token, state, artifact, message, error, stale=True)
            self._state = state
            self._artifact = artifact
            self._error_message = message
        return PipelineOutcome(token, state, artifact, message, error)

    async def _encode_model(self, ctx: RequestContext) -> ImagePayload:
        source = ctx.model_source
        if isinstance(source, StockUrl):
            return await asyncio.to_thread(encode_remote, source.url, self.settings.fetch_timeout)
        return await asyncio.to_thread(encode_file, source)

    async def _generate(self, token: int, ctx: RequestContext) -> ImagePayload:
        full_prompt = build_full_prompt(ctx.prompt, ctx.style)
        self._advance(token, PipelineState.REQUESTING)
        if ctx.mode is GenerationMode.TEXT_TO_IMAGE:
            return await asyncio.to_thread(self.client.text_to_image, full_prompt, ctx.aspect_ratio)

        if ctx.product_image is not None:
            model_payload, product_payload = await asyncio.gather(
                self._encode_model(ctx),
                asyncio.to_thread(encode_file, ctx.product_image),
            )
        else:
            model_payload, product_payload = await self._encode_model(ctx), None
        return await asyncio.to_thread(self.client.composite, model_payload, product_payload, full_prompt)

    async def submit(self, ctx: RequestContext) -> PipelineOutcome:
        """Run one request to completion; never raises."""
        token = self._begin()
        logger.info("request %d submitted (mode=%s, style=%s)", token, ctx.mode, ctx.style.id)
        try:
            validate_request(ctx)
            generated = await self._generate(token, ctx)
            self._advance(token, PipelineState.WATERMARKING)
            artifact = await asyncio.to_thread(
                self.watermarker.apply, generated, ctx.output_format, ctx.jpeg_quality
            )
        except Exception as exc:
            logger.warning("request %d failed: %s: %s", token, type(exc).__name__, exc)
            return self._commit(token, PipelineState.FAILED, error=exc)
        logger.info("request %d ready (%s)", token, ctx.output_format)
        return self._commit(token, PipelineState.READY, artifact=artifact)

    def submit_sync(self, ctx: RequestContext) -> PipelineOutcome:
        return asyncio.run(self.submit(ctx))
