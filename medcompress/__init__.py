"""
medcompress: Codec Benchmarking for CT Pixel Data
=================================================

Benchmarks lossy and near-lossless compression of windowed CT images
across a sweep of target compression ratios.

This package provides:
    - **Pixel Sources**: Raw pixel buffers and metadata extracted from DICOM
    - **Windowing**: HU rescale and display windowing to 8 or 16 bits
    - **Codec Adapters**: JPEG (Pillow), JPEG 2000 (OpenJPEG), HTJ2K (OpenJPH)
    - **Sweep**: Every codec at every target ratio for every image
    - **Statistics**: Mean time, size and achieved ratio per ratio and codec

Example:
    >>> from medcompress import BenchmarkConfig, CompressionBenchmark
    >>> config = BenchmarkConfig(raw_dir="raw", output_dir="compressed")
    >>> output = CompressionBenchmark(config).run()
    >>> print(output.summary.format_table())

Copyright (c) 2025 Todd. MIT License.
"""

from __future__ import annotations

__version__ = "1.0.0"
__author__ = "Todd"
__license__ = "MIT"
__copyright__ = "Copyright (c) 2025 Todd"

# Core components
from medcompress.core.source import ImageRecord, RawPixelSource, DicomExtractor
from medcompress.core.windowing import WindowParameters, apply_window
from medcompress.config import BenchmarkConfig, load_config

# Codecs
from medcompress.codecs import QualityJpegCodec, RatioJ2KCodec, RatioHTJ2KCodec

# Metrics
from medcompress.metrics.sweep import CompressionSweep, ResultRecord, ResultAccumulator
from medcompress.metrics.statistics import StatisticsAggregator, StatisticsSummary
from medcompress.metrics.benchmark import CompressionBenchmark

__all__ = [
    # Core
    "ImageRecord",
    "RawPixelSource",
    "DicomExtractor",
    "WindowParameters",
    "apply_window",
    "BenchmarkConfig",
    "load_config",
    # Codecs
    "QualityJpegCodec",
    "RatioJ2KCodec",
    "RatioHTJ2KCodec",
    # Metrics
    "CompressionSweep",
    "ResultRecord",
    "ResultAccumulator",
    "StatisticsAggregator",
    "StatisticsSummary",
    "CompressionBenchmark",
]
