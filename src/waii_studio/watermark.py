from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Tuple, Union

from PIL import Image, ImageDraw, ImageFilter, ImageFont, UnidentifiedImageError

from .constants import WATERMARK_TEXT
from .errors import DecodeError, RasterizeError
from .image_utils import decode_payload
from .types import ImagePayload, OutputFormat


logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 0.92
MIN_FONT_SIZE = 16

RGBA = Tuple[int, int, int, int]


def watermark_font_size(image_width: int) -> int:
    return max(MIN_FONT_SIZE, image_width // 60)


@dataclass(frozen=True)
class TextOverlay:
    """Where and how the mark is drawn; anchored at its bottom-right corner."""

    text: str
    font_size: int
    padding: float
    fill: RGBA = (255, 255, 255, 178)
    shadow_fill: RGBA = (0, 0, 0, 128)
    shadow_offset: int = 2
    shadow_blur: float = 4.0

    @classmethod
    def for_width(cls, text: str, image_width: int) -> "TextOverlay":
        size = watermark_font_size(image_width)
        offset = max(2, round(size * 0.1))
        return cls(
            text=text,
            font_size=size,
            padding=1.2 * size,
            shadow_offset=offset,
            shadow_blur=float(offset * 2),
        )


class ImageCodec(Protocol):
    """Decode bytes into a pixel surface and encode a surface with a text overlay."""

    def decode(self, raw: bytes) -> Any: ...

    def size(self, surface: Any) -> Tuple[int, int]: ...

    def render(self, surface: Any, overlay: TextOverlay, fmt: OutputFormat, quality: float) -> bytes: ...


def _pillow_quality(quality: float) -> int:
    return min(100, max(1, int(round(quality * 100))))


class PillowCodec:
    def __init__(self, font_path: Optional[str] = None):
        self.font_path = font_path

    def _font(self, size: int):
        if self.font_path:
            return ImageFont.truetype(self.font_path, size)
        return ImageFont.load_default(size=size)

    def decode(self, raw: bytes) -> Image.Image:
        try:
            img = Image.open(io.BytesIO(raw))
            img.load()
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
            raise RasterizeError(f"cannot decode image: {exc}") from exc
        return img.convert("RGBA")

    def size(self, surface: Image.Image) -> Tuple[int, int]:
        return surface.size

    def _layer(self, size: Tuple[int, int], overlay: TextOverlay, xy: Tuple[float, float], fill: RGBA) -> Image.Image:
        layer = Image.new("RGBA", size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        draw.text(xy, overlay.text, font=self._font(overlay.font_size), fill=fill, anchor="rd")
        return layer

    def render(self, surface: Image.Image, overlay: TextOverlay, fmt: OutputFormat, quality: float) -> bytes:
        w, h = surface.size
        x, y = w - overlay.padding, h - overlay.padding

        shadow = self._layer(surface.size, overlay, (x + overlay.shadow_offset, y + overlay.shadow_offset), overlay.shadow_fill)
        if overlay.shadow_blur > 0:
            shadow = shadow.filter(ImageFilter.GaussianBlur(radius=overlay.shadow_blur))
        out = Image.alpha_composite(surface.convert("RGBA"), shadow)
        out = Image.alpha_composite(out, self._layer(surface.size, overlay, (x, y), overlay.fill))

        buf = io.BytesIO()
        if fmt is OutputFormat.JPEG:
            out.convert("RGB").save(buf, format="JPEG", quality=_pillow_quality(quality))
        else:
            out.save(buf, format="PNG")
        return buf.getvalue()


class WatermarkPostProcessor:
    """Stamps the brand mark onto every generated image before it is shown.

    The codec is injected so the drawing contract (font size, padding and
    bottom-right placement) stays independent of the imaging library.
    """

    def __init__(self, codec: Optional[ImageCodec] = None, text: str = WATERMARK_TEXT):
        self.codec = codec or PillowCodec()
        self.text = text

    def apply(
        self,
        image: Union[ImagePayload, str],
        fmt: OutputFormat = OutputFormat.PNG,
        quality: Optional[float] = None,
    ) -> str:
        try:
            raw, _ = decode_payload(image)
        except DecodeError as exc:
            raise RasterizeError(str(exc)) from exc
        surface = self.codec.decode(raw)
        width, height = self.codec.size(surface)
        overlay = TextOverlay.for_width(self.text, width)
        q = DEFAULT_JPEG_QUALITY if quality is None else quality
        encoded = self.codec.render(surface, overlay, fmt, q)
        logger.debug("watermarked %dx%d image as %s (font=%d)", width, height, fmt, overlay.font_size)
        return f"data:{fmt.mime_type};base64,{base64.b64encode(encoded).decode('ascii')}"


def apply_watermark(
    image: Union[ImagePayload, str],
    fmt: OutputFormat = OutputFormat.PNG,
    quality: Optional[float] = None,
) -> str:
    return WatermarkPostProcessor().apply(image, fmt, quality)
