"""Compression sweep, summary statistics and benchmark runner."""

from medcompress.metrics.sweep import (
    CompressionSweep,
    ResultRecord,
    ResultAccumulator,
    RESULTS_FILENAME,
)
from medcompress.metrics.statistics import (
    StatisticsAggregator,
    StatisticsSummary,
    CodecStatistics,
    STATISTICS_FILENAME,
)
from medcompress.metrics.benchmark import CompressionBenchmark, BenchmarkOutput, run_benchmark

__all__ = [
    "CompressionSweep",
    "ResultRecord",
    "ResultAccumulator",
    "RESULTS_FILENAME",
    "StatisticsAggregator",
    "StatisticsSummary",
    "CodecStatistics",
    "STATISTICS_FILENAME",
    "CompressionBenchmark",
    "BenchmarkOutput",
    "run_benchmark",
]
