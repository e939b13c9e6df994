import sys
from pathlib import Path

import streamlit as st


# Ensure src is importable when running `streamlit run Home.py`
ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from waii_studio.config import configure_logging, load_settings
from waii_studio.constants import ASPECT_RATIOS, STOCK_MODELS, STYLE_PRESETS
from waii_studio.genai_client import has_api_key
from waii_studio.image_utils import decode_payload, download_filename
from waii_studio.orchestrator import GenerationOrchestrator
from waii_studio.preview import PreviewSlot
from waii_studio.types import (
    GenerationMode,
    LocalFile,
    OutputFormat,
    PipelineState,
    RequestContext,
    StockUrl,
)


settings = load_settings()
configure_logging(settings.log_level)

st.set_page_config(page_title="WAII — Photorealistic AI Image Generator", layout="wide")
st.title("WAII")
st.caption("Photorealistic AI Image Generator")

if not has_api_key(settings):
    st.warning(
        "GOOGLE_API_KEY not found. Set it in the environment or a .env file; generations will fail until then.",
        icon="⚠️",
    )

if "orchestrator" not in st.session_state:
    st.session_state.orchestrator = GenerationOrchestrator(settings=settings)
if "previews" not in st.session_state:
    st.session_state.previews = PreviewSlot()
orchestrator: GenerationOrchestrator = st.session_state.orchestrator
previews: PreviewSlot = st.session_state.previews


def _as_local_file(upload) -> LocalFile:
    return LocalFile(content=upload.getvalue(), mime_type=upload.type or "", name=upload.name)


mode_label = st.sidebar.radio("Mode", ["Image Composite", "Text to Image"], horizontal=True)
mode = GenerationMode.COMPOSITE if mode_label == "Image Composite" else GenerationMode.TEXT_TO_IMAGE

model_source = None
product_image = None
col_left, col_right = st.columns([1, 1])

with col_left:
    st.subheader("Inputs")
    if mode is GenerationMode.COMPOSITE:
        source_kind = st.radio("1. Model photo", ["Upload", "Select a stock model"], horizontal=True)
        if source_kind == "Upload":
            upload = st.file_uploader("Model photo", type=["jpg", "jpeg", "png", "webp"], key="model_upload")
            model_source = _as_local_file(upload) if upload is not None else None
        else:
            url = st.selectbox("Stock model", STOCK_MODELS)
            model_source = StockUrl(url=url)

        if model_source is not None:
            previews.acquire("model", model_source)
        else:
            previews.release("model")

        product_upload = st.file_uploader(
            "2. Product photo (optional)", type=["jpg", "jpeg", "png", "webp"], key="product_upload"
        )
        if product_upload is not None:
            product_image = _as_local_file(product_upload)
            previews.acquire("product", product_image)
        else:
            previews.release("product")

        c1, c2 = st.columns(2)
        with c1:
            if previews.url("model"):
                st.image(previews.url("model"), caption="Model", use_container_width=True)
        with c2:
            if previews.url("product"):
                st.image(previews.url("product"), caption="Product", use_container_width=True)
    else:
        previews.close()

    prompt = st.text_area(
        "Smart prompt" if mode is GenerationMode.COMPOSITE else "Prompt",
        placeholder=(
            "e.g. 'place the watch on the wrist'"
            if mode is GenerationMode.COMPOSITE
            else "e.g. 'A high-resolution photo of a robot holding a red skateboard'"
        ),
    )
    style = st.radio("Style preset", STYLE_PRESETS, format_func=lambda p: p.name, horizontal=True)
    aspect_ratio = ASPECT_RATIOS[0]
    if mode is GenerationMode.TEXT_TO_IMAGE:
        aspect_ratio = st.radio("Aspect ratio", ASPECT_RATIOS, format_func=str, horizontal=True)

    output_format = st.sidebar.radio("Download format", list(OutputFormat), format_func=lambda f: f.name)
    jpeg_quality = settings.jpeg_quality
    if output_format is OutputFormat.JPEG:
        jpeg_quality = st.sidebar.slider("JPEG quality", 0.1, 1.0, settings.jpeg_quality, 0.01)

    generate = st.button("Generate Image", type="primary", disabled=orchestrator.is_loading)

with col_right:
    st.subheader("Result")
    if generate:
        ctx = RequestContext(
            mode=mode,
            model_source=model_source,
            product_image=product_image,
            prompt=prompt,
            style=style,
            aspect_ratio=aspect_ratio,
            output_format=output_format,
            jpeg_quality=jpeg_quality,
        )
        with st.spinner("Generating..."):
            orchestrator.submit_sync(ctx)

    if orchestrator.state is PipelineState.FAILED and orchestrator.error_message:
        st.error(orchestrator.error_message)
    elif orchestrator.artifact:
        st.image(orchestrator.artifact, caption="AI Result", use_container_width=True)
        raw, mime_type = decode_payload(orchestrator.artifact)
        fmt = OutputFormat.JPEG if mime_type == OutputFormat.JPEG.mime_type else OutputFormat.PNG
        st.download_button(
            "Download Image",
            data=raw,
            file_name=download_filename(fmt),
            mime=mime_type,
        )
    else:
        st.info("Your generated image will appear here. Fill in the details and click Generate.")
