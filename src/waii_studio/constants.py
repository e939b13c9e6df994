from __future__ import annotations

from typing import List

from .types import AspectRatio, StylePreset


WATERMARK_TEXT = "WAII"
DOWNLOAD_STEM = "waii-generated-image"

ACCEPTED_UPLOAD_TYPES = ("image/jpeg", "image/png", "image/webp")

STYLE_PRESETS: List[StylePreset] = [
    StylePreset(
        id="studio",
        name="Professional Studio",
        prompt_suffix="in a professional, clean, well-lit studio environment with a minimalist background",
    ),
    StylePreset(
        id="outdoor",
        name="Outdoor Lifestyle",
        prompt_suffix="in a vibrant outdoor lifestyle setting with natural lighting, like a sunny park or a chic urban street",
    ),
    StylePreset(
        id="social",
        name="Social Media",
        prompt_suffix="with a trendy, eye-catching aesthetic suitable for social media like Instagram, using vibrant colors and a dynamic composition",
    ),
    StylePreset(
        id="ecommerce",
        name="E-commerce",
        prompt_suffix="against a plain, solid white background, with perfect lighting to highlight product details, in the style of an Amazon or Shopify product listing",
    ),
]

ASPECT_RATIOS: List[AspectRatio] = list(AspectRatio)

STOCK_MODELS: List[str] = [
    "https://picsum.photos/id/1005/600/800",  # man with beard
    "https://picsum.photos/id/1011/600/800",  # woman in field
    "https://picsum.photos/id/1027/600/800",  # woman with coffee
]


def get_style_preset(style_id: str) -> StylePreset:
    for preset in STYLE_PRESETS:
        if preset.id == style_id:
            return preset
    raise KeyError(f"Unknown style preset: {style_id}")
