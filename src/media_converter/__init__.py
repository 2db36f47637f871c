"""Batch image and PDF conversion pipeline."""

from .config import AppConfig, load_config
from .core import BatchOrchestrator
from .errors import ConversionError
from .models import (
    Artifact,
    BatchRun,
    ContentKind,
    ConversionMode,
    ConversionOptions,
    ConversionResult,
    ImageFormat,
    InputUnit,
    RunState,
)

__all__ = [
    "AppConfig",
    "Artifact",
    "BatchOrchestrator",
    "BatchRun",
    "ContentKind",
    "ConversionError",
    "ConversionMode",
    "ConversionOptions",
    "ConversionResult",
    "ImageFormat",
    "InputUnit",
    "RunState",
    "load_config",
]
