from __future__ import annotations

from types import SimpleNamespace

import pytest

from waii_studio.config import Settings
from waii_studio.errors import GenerationError
from waii_studio.genai_client import (
    GenerationClient,
    build_composite_instruction,
    classify_error,
    has_api_key,
)
from waii_studio.types import AspectRatio, GenerationErrorKind


@pytest.mark.parametrize(
    "message, kind",
    [
        ("API key not valid. Please pass a valid API key.", GenerationErrorKind.INVALID_CREDENTIALS),
        ("403 PERMISSION_DENIED: Permission denied on resource", GenerationErrorKind.INVALID_CREDENTIALS),
        ("Candidate was blocked due to SAFETY", GenerationErrorKind.CONTENT_POLICY_BLOCKED),
        ("TypeError: fetch failed", GenerationErrorKind.NETWORK_FAILURE),
        ("Request contains a malformed image", GenerationErrorKind.MALFORMED_REQUEST),
        ("500 INTERNAL: something broke", GenerationErrorKind.UNKNOWN),
    ],
)
def test_classify_error(message: str, kind: GenerationErrorKind) -> None:
    err = classify_error(RuntimeError(message))
    assert err.kind is kind
    assert err.raw_message == message


def test_classify_error_first_match_wins() -> None:
    # credentials keywords are checked before safety keywords
    assert classify_error("api_key blocked").kind is GenerationErrorKind.INVALID_CREDENTIALS
    assert classify_error("network request blocked").kind is GenerationErrorKind.CONTENT_POLICY_BLOCKED


def test_instruction_without_product_edits_background() -> None:
    text = build_composite_instruction("add a hat", has_product=False)
    assert "background" in text
    assert "Image 2" not in text
    assert "photorealistic" in text
    assert '"add a hat"' in text


def test_instruction_with_product_names_both_roles() -> None:
    text = build_composite_instruction("add a hat", has_product=True)
    assert "Image 1 is the model/background" in text
    assert "Image 2 is the product" in text
    assert "lighting, shadows, and perspective" in text


def test_composite_sends_images_then_instruction(settings, fake_genai, responses, make_payload, png_bytes) -> None:
    generated = png_bytes((8, 8))
    fake = fake_genai(content_response=responses.content(responses.text_part("here"), responses.image_part(generated)))
    client = GenerationClient(settings, client=fake)
    model, product = make_payload(), make_payload(color=(200, 0, 0))

    result = client.composite(model, product, "put it on")

    assert result.to_bytes() == generated
    assert result.mime_type == "image/png"
    name, kwargs = fake.models.calls[0]
    assert name == "generate_content"
    assert kwargs["model"] == settings.composite_model
    contents = kwargs["contents"]
    assert len(contents) == 3
    assert contents[0].inline_data.data == model.to_bytes()
    assert contents[1].inline_data.data == product.to_bytes()
    assert "Image 2 is the product" in contents[2]


def test_composite_without_product_sends_one_image(settings, fake_genai, responses, make_payload, png_bytes) -> None:
    fake = fake_genai(content_response=responses.content(responses.image_part(png_bytes())))
    client = GenerationClient(settings, client=fake)

    client.composite(make_payload(), None, "add a hat")

    contents = fake.models.calls[0][1]["contents"]
    assert len(contents) == 2
    assert "Image 2" not in contents[1]


def test_composite_without_image_part_fails(settings, fake_genai, responses, make_payload) -> None:
    fake = fake_genai(content_response=responses.content(responses.text_part("sorry")))
    client = GenerationClient(settings, client=fake)

    with pytest.raises(GenerationError) as info:
        client.composite(make_payload(), None, "add a hat")
    assert info.value.kind is GenerationErrorKind.NO_IMAGE_RETURNED


def test_composite_with_no_candidates_fails(settings, fake_genai, make_payload) -> None:
    fake = fake_genai(content_response=SimpleNamespace(candidates=[]))
    client = GenerationClient(settings, client=fake)

    with pytest.raises(GenerationError) as info:
        client.composite(make_payload(), None, "x")
    assert info.value.kind is GenerationErrorKind.NO_IMAGE_RETURNED


def test_sdk_errors_are_classified(settings, fake_genai, make_payload) -> None:
    fake = fake_genai(error=RuntimeError("400 INVALID_ARGUMENT. API key not valid."))
    client = GenerationClient(settings, client=fake)

    with pytest.raises(GenerationError) as info:
        client.composite(make_payload(), None, "x")
    assert info.value.kind is GenerationErrorKind.INVALID_CREDENTIALS
    assert len(fake.models.calls) == 1


def test_text_to_image_requests_one_jpeg(settings, fake_genai, png_bytes) -> None:
    raw = png_bytes()
    images = SimpleNamespace(generated_images=[SimpleNamespace(image=SimpleNamespace(image_bytes=raw, mime_type="image/jpeg"))])
    fake = fake_genai(images_response=images)
    client = GenerationClient(settings, client=fake)

    result = client.text_to_image("a robot", AspectRatio.LANDSCAPE)

    assert result.to_bytes() == raw
    name, kwargs = fake.models.calls[0]
    assert name == "generate_images"
    assert kwargs["model"] == settings.text_model
    assert kwargs["prompt"] == "a robot"
    config = kwargs["config"]
    assert config.number_of_images == 1
    assert config.output_mime_type == "image/jpeg"
    assert config.aspect_ratio == "16:9"


def test_text_to_image_empty_response(settings, fake_genai) -> None:
    fake = fake_genai(images_response=SimpleNamespace(generated_images=[]))
    client = GenerationClient(settings, client=fake)

    with pytest.raises(GenerationError) as info:
        client.text_to_image("a robot", AspectRatio.SQUARE)
    assert info.value.kind is GenerationErrorKind.NO_IMAGE_RETURNED


def test_missing_key_fails_before_any_call(make_payload) -> None:
    client = GenerationClient(Settings(api_key=None))

    with pytest.raises(GenerationError) as info:
        client.composite(make_payload(), None, "x")
    assert info.value.kind is GenerationErrorKind.INVALID_CREDENTIALS
    assert not has_api_key(Settings(api_key=None))
    assert has_api_key(Settings(api_key="k"))
