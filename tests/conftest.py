from __future__ import annotations

import base64
import io
from pathlib import Path
from types import SimpleNamespace
import sys

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from waii_studio.config import Settings
from waii_studio.constants import get_style_preset
from waii_studio.types import ImagePayload


def _png_bytes(size=(64, 48), color=(40, 40, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def png_bytes():
    return _png_bytes


@pytest.fixture()
def make_payload():
    def _make(size=(64, 48), color=(40, 40, 40)) -> ImagePayload:
        data = base64.b64encode(_png_bytes(size, color)).decode("ascii")
        return ImagePayload(data=data, mime_type="image/png")

    return _make


@pytest.fixture()
def settings() -> Settings:
    return Settings(api_key="test-key")


@pytest.fixture()
def studio():
    return get_style_preset("studio")


class FakeModels:
    """Stands in for ``genai.Client().models`` and records every call."""

    def __init__(self, content_response=None, images_response=None, error: Exception | None = None):
        self.content_response = content_response
        self.images_response = images_response
        self.error = error
        self.calls: list[tuple[str, dict]] = []

    def generate_content(self, **kwargs):
        self.calls.append(("generate_content", kwargs))
        if self.error is not None:
            raise self.error
        return self.content_response

    def generate_images(self, **kwargs):
        self.calls.append(("generate_images", kwargs))
        if self.error is not None:
            raise self.error
        return self.images_response


@pytest.fixture()
def fake_genai():
    def _make(**kwargs) -> SimpleNamespace:
        return SimpleNamespace(models=FakeModels(**kwargs))

    return _make


def content_response(*parts) -> SimpleNamespace:
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


def image_part(raw: bytes, mime_type: str = "image/png") -> SimpleNamespace:
    return SimpleNamespace(inline_data=SimpleNamespace(data=raw, mime_type=mime_type), text=None)


def text_part(text: str) -> SimpleNamespace:
    return SimpleNamespace(inline_data=None, text=text)


@pytest.fixture()
def responses() -> SimpleNamespace:
    return SimpleNamespace(content=content_response, image_part=image_part, text_part=text_part)
