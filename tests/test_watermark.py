from __future__ import annotations

import io

import pytest
from PIL import Image

from waii_studio.errors import RasterizeError
from waii_studio.image_utils import decode_payload, to_data_uri
from waii_studio.types import ImagePayload, OutputFormat
from waii_studio.watermark import (
    TextOverlay,
    WatermarkPostProcessor,
    apply_watermark,
    watermark_font_size,
)


def _open(uri: str) -> Image.Image:
    raw, _ = decode_payload(uri)
    return Image.open(io.BytesIO(raw)).convert("RGB")


@pytest.mark.parametrize("width, size", [(1200, 20), (600, 16), (100, 16), (3000, 50)])
def test_font_size_scales_with_width(width: int, size: int) -> None:
    assert watermark_font_size(width) == size


def test_overlay_padding_is_proportional() -> None:
    overlay = TextOverlay.for_width("WAII", 1200)
    assert overlay.font_size == 20
    assert overlay.padding == pytest.approx(24.0)


def test_mark_lands_in_bottom_right_quadrant(make_payload) -> None:
    base = (40, 40, 40)
    out = _open(apply_watermark(make_payload((1200, 800), base), OutputFormat.PNG))

    assert out.size == (1200, 800)
    top_left = out.crop((0, 0, 600, 400))
    assert top_left.getcolors() == [(600 * 400, base)]
    bottom_right = out.crop((600, 400, 1200, 800))
    assert any(color != base for _, color in bottom_right.getcolors(maxcolors=600 * 400))
    # light text over a dark background
    assert max(sum(c) for _, c in bottom_right.getcolors(maxcolors=600 * 400)) > sum(base) + 150


def test_output_is_deterministic(make_payload) -> None:
    payload = make_payload((640, 480), (10, 120, 200))
    first = apply_watermark(payload, OutputFormat.JPEG, 0.8)
    second = apply_watermark(payload, OutputFormat.JPEG, 0.8)
    assert first == second


def test_format_and_quality(make_payload) -> None:
    payload = make_payload((640, 480), (10, 120, 200))

    png = apply_watermark(payload, OutputFormat.PNG)
    jpeg_hi = apply_watermark(payload, OutputFormat.JPEG, 0.95)
    jpeg_lo = apply_watermark(payload, OutputFormat.JPEG, 0.1)

    assert png.startswith("data:image/png;base64,")
    assert jpeg_hi.startswith("data:image/jpeg;base64,")
    assert len(jpeg_lo) < len(jpeg_hi)


def test_accepts_data_uri(make_payload) -> None:
    uri = to_data_uri(make_payload())
    assert apply_watermark(uri).startswith("data:image/png;base64,")


def test_undecodable_source_raises() -> None:
    garbage = ImagePayload(data="bm90IGFuIGltYWdl", mime_type="image/png")
    with pytest.raises(RasterizeError):
        apply_watermark(garbage)
    with pytest.raises(RasterizeError):
        apply_watermark("not a data uri")


class _RecordingCodec:
    def __init__(self):
        self.overlays = []

    def decode(self, raw: bytes):
        return raw

    def size(self, surface):
        return (1200, 900)

    def render(self, surface, overlay, fmt, quality):
        self.overlays.append((overlay, fmt, quality))
        return b"encoded"


def test_post_processor_drives_injected_codec(make_payload) -> None:
    codec = _RecordingCodec()
    uri = WatermarkPostProcessor(codec=codec).apply(make_payload(), OutputFormat.JPEG)

    overlay, fmt, quality = codec.overlays[0]
    assert overlay.text == "WAII"
    assert overlay.font_size == 20
    assert fmt is OutputFormat.JPEG
    assert quality == pytest.approx(0.92)
    assert uri == "data:image/jpeg;base64,ZW5jb2RlZA=="
