"""
Compression benchmark runner.

Wires a configured pixel source and the three codecs into a sweep,
then persists the results, statistics and console summary once the
sweep has finished.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence
from pathlib import Path

from medcompress.codecs import CodecAdapter, default_codecs
from medcompress.config import BenchmarkConfig
from medcompress.core.source import RawPixelSource
from medcompress.metrics.statistics import (
    STATISTICS_FILENAME,
    StatisticsAggregator,
    StatisticsSummary,
)
from medcompress.metrics.sweep import RESULTS_FILENAME, CompressionSweep, ResultAccumulator
from medcompress.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class BenchmarkOutput:
    """Everything a run produced."""
    results: ResultAccumulator
    summary: StatisticsSummary
    results_path: Path
    statistics_path: Path


class CompressionBenchmark:
    """
    End-to-end benchmark: sweep, aggregate, persist.
    
    Args:
        config: Benchmark configuration
        codecs: Codec adapters (default: JPEG, JP2 and JPH from the config)
        source: Pixel source (default: raw directory from the config)
    """
    
    def __init__(
        self,
        config: BenchmarkConfig,
        codecs: Optional[Sequence[CodecAdapter]] = None,
        source: Optional[RawPixelSource] = None,
    ):
        self.config = config
        
        if codecs is None:
            codecs = default_codecs(
                opj_compress=config.opj_compress,
                ojph_compress=config.ojph_compress,
                timeout=config.encoder_timeout,
            )
        self.codecs: List[CodecAdapter] = list(codecs)
        self.source = source or RawPixelSource(config.raw_dir)
    
    def build_sweep(self, output_dir: Path) -> CompressionSweep:
        return CompressionSweep(
            source=self.source,
            codecs=self.codecs,
            target_ratios=self.config.target_ratios,
            output_dir=output_dir,
            window=self.config.window,
            max_workers=self.config.max_workers,
        )
    
    def summarize(self, results: ResultAccumulator) -> StatisticsSummary:
        aggregator = StatisticsAggregator(
            target_ratios=self.config.target_ratios,
            codec_names=[c.name for c in self.codecs],
            quality_codecs=[c.name for c in self.codecs if c.output_bits == 8],
        )
        summary = aggregator.aggregate(results)
        summary.labels.update({c.name: c.label for c in self.codecs})
        return summary
    
    def run(
        self,
        output_dir: Optional[Path] = None,
        images: Optional[Sequence[str]] = None,
        progress: bool = True,
    ) -> BenchmarkOutput:
        """
        Run the benchmark and write its artifacts.
        
        Args:
            output_dir: Output directory (default: from the config)
            images: Subset of image names (default: all)
            progress: Show a progress bar
        
        Returns:
            BenchmarkOutput with the in-memory results and file paths
        """
        output_dir = Path(output_dir or self.config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        
        logger.info("Starting compression process...")
        results = self.build_sweep(output_dir).run(images=images, progress=progress)
        
        results_path = output_dir / RESULTS_FILENAME
        results.save(results_path)
        logger.info(f"Results saved to {results_path}")
        
        logger.info("Generating statistics...")
        summary = self.summarize(results)
        
        statistics_path = output_dir / STATISTICS_FILENAME
        summary.save(statistics_path)
        summary.to_dataframe().to_csv(statistics_path.with_suffix(".csv"), index=False)
        
        logger.info("Compression Statistics Summary:\n" + summary.format_table())
        logger.info(f"Statistics generated and saved to {statistics_path.name}")
        
        if self.config.save_figures:
            from medcompress.visualization import save_summary_figures
            save_summary_figures(summary, output_dir / "figures")
            logger.info(f"Figures saved to {output_dir / 'figures'}")
        
        return BenchmarkOutput(
            results=results,
            summary=summary,
            results_path=results_path,
            statistics_path=statistics_path,
        )


def run_benchmark(config: BenchmarkConfig, output_dir: Optional[Path] = None) -> BenchmarkOutput:
    """Run the benchmark with the default codecs."""
    return CompressionBenchmark(config).run(output_dir)
