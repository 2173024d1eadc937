"""
medcompress Command Line Interface.

Provides CLI commands for extracting pixel data, running the benchmark
and recomputing statistics from saved results.
"""

import argparse
import sys
from pathlib import Path
from datetime import datetime


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="medcompress",
        description="Benchmark JPEG, JPEG 2000 and HTJ2K compression on CT pixel data",
    )
    
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    
    # Extract command
    extract_parser = subparsers.add_parser("extract", help="Extract raw pixel data from DICOM files")
    extract_parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Configuration file path (default: packaged default.yaml)",
    )
    extract_parser.add_argument("--dicom-dir", type=Path, default=None, help="DICOM input directory")
    extract_parser.add_argument("--raw-dir", type=Path, default=None, help="Raw output directory")
    
    # Run benchmark command
    run_parser = subparsers.add_parser("run", help="Run the compression benchmark")
    run_parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Configuration file path (default: packaged default.yaml)",
    )
    run_parser.add_argument("--raw-dir", type=Path, default=None, help="Raw pixel data directory")
    run_parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=None,
        help="Output directory",
    )
    run_parser.add_argument(
        "--ratios",
        type=float,
        nargs="+",
        default=None,
        help="Target compression ratios",
    )
    run_parser.add_argument("--workers", type=int, default=None, help="Parallel codec units")
    run_parser.add_argument(
        "--timestamped",
        action="store_true",
        help="Write into a run_<timestamp> subdirectory of the output directory",
    )
    run_parser.add_argument("--figures", action="store_true", help="Save summary plots")
    
    # Statistics command
    stats_parser = subparsers.add_parser("stats", help="Recompute statistics from saved results")
    stats_parser.add_argument(
        "--results", "-r",
        type=Path,
        required=True,
        help="Path to compressionResults.json",
    )
    stats_parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Statistics output file (default: next to the results)",
    )
    stats_parser.add_argument(
        "--ratios",
        type=float,
        nargs="+",
        default=None,
        help="Target ratios that always get a bucket",
    )
    
    # Version command
    subparsers.add_parser("version", help="Show version")
    
    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    
    if args.command is None:
        parser.print_help()
        return 0
    
    if args.command == "version":
        from medcompress import __version__
        print(f"medcompress version {__version__}")
        return 0
    
    if args.command == "extract":
        return extract_pixels(args)
    elif args.command == "run":
        return run_benchmark(args)
    elif args.command == "stats":
        return compute_statistics(args)
    return 0


def _load_config(args):
    import yaml
    from medcompress.config import load_config
    
    try:
        return load_config(args.config)
    except (OSError, yaml.YAMLError, ValueError, TypeError, AttributeError) as e:
        print(f"Cannot load configuration {args.config}: {e}", file=sys.stderr)
        return None


def extract_pixels(args) -> int:
    """Extract raw pixel buffers and metadata sidecars."""
    from medcompress.core.source import DicomExtractor
    from medcompress.utils import setup_logger
    
    logger = setup_logger("medcompress")
    config = _load_config(args)
    if config is None:
        return 1
    dicom_dir = args.dicom_dir or config.dicom_dir
    raw_dir = args.raw_dir or config.raw_dir
    
    try:
        records = DicomExtractor(dicom_dir, raw_dir).extract_all()
    except OSError as e:
        logger.error(f"Extraction failed: {e}")
        return 1
    
    logger.info(f"Loaded {len(records)} DICOM files")
    return 0


def run_benchmark(args) -> int:
    """Run the full benchmark."""
    from medcompress.metrics.benchmark import CompressionBenchmark
    from medcompress.utils import setup_logger
    
    config = _load_config(args)
    if config is None:
        return 1
    if args.raw_dir is not None:
        config.raw_dir = args.raw_dir
    if args.output_dir is not None:
        config.output_dir = args.output_dir
    if args.ratios:
        config.target_ratios = list(args.ratios)
    if args.workers is not None:
        config.max_workers = args.workers
    if args.figures:
        config.save_figures = True
    
    output_dir = config.output_dir
    if args.timestamped:
        output_dir = output_dir / f"run_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"Cannot create output directory {output_dir}: {e}", file=sys.stderr)
        return 1
    
    logger = setup_logger("medcompress", log_file=output_dir / "benchmark.log")
    logger.info(f"Raw data: {config.raw_dir}")
    logger.info(f"Output: {output_dir}")
    config.save(output_dir / "config.yaml")
    
    try:
        CompressionBenchmark(config).run(output_dir)
    except (OSError, ValueError) as e:
        logger.error(f"Benchmark failed: {e}")
        return 1
    
    logger.info("Benchmark complete!")
    return 0


def compute_statistics(args) -> int:
    """Rebuild the statistics file and console table from saved results."""
    from medcompress.metrics import ResultAccumulator, StatisticsAggregator, STATISTICS_FILENAME
    from medcompress.utils import setup_logger
    
    logger = setup_logger("medcompress")
    try:
        results = ResultAccumulator.load(args.results)
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Cannot load results from {args.results}: {e}")
        return 1
    
    summary = StatisticsAggregator(target_ratios=args.ratios).aggregate(results)
    output = args.output or args.results.parent / STATISTICS_FILENAME
    summary.save(output)
    
    print("Compression Statistics Summary:")
    print(summary.format_table())
    print(f"\nStatistics generated and saved to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
