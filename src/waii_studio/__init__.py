from .genai_client import GenerationClient, classify_error
from .image_utils import encode_file, encode_remote
from .orchestrator import GenerationOrchestrator, PipelineOutcome
from .types import (
    AspectRatio,
    GenerationMode,
    ImagePayload,
    LocalFile,
    OutputFormat,
    RequestContext,
    StockUrl,
    StylePreset,
)
from .watermark import WatermarkPostProcessor, apply_watermark

__all__ = [
    "GenerationClient",
    "classify_error",
    "encode_file",
    "encode_remote",
    "GenerationOrchestrator",
    "PipelineOutcome",
    "AspectRatio",
    "GenerationMode",
    "ImagePayload",
    "LocalFile",
    "OutputFormat",
    "RequestContext",
    "StockUrl",
    "StylePreset",
    "WatermarkPostProcessor",
    "apply_watermark",
]
