#!/usr/bin/env python3
"""
medcompress Benchmark Runner

Runs the compression sweep with a YAML configuration.

Usage:
    python scripts/run_benchmark.py --config medcompress/configs/default.yaml
    python scripts/run_benchmark.py --raw-dir raw --output-dir compressed --ratios 5 10 20
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from medcompress.cli import main


if __name__ == "__main__":
    sys.exit(main(["run"] + sys.argv[1:]))
