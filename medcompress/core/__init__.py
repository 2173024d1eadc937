"""Pixel sources and windowing."""

from medcompress.core.source import ImageRecord, RawPixelSource, DicomExtractor
from medcompress.core.windowing import (
    WindowParameters,
    apply_window,
    window_8bit,
    window_16bit,
)

__all__ = [
    "ImageRecord",
    "RawPixelSource",
    "DicomExtractor",
    "WindowParameters",
    "apply_window",
    "window_8bit",
    "window_16bit",
]
