"""I/O utilities for saving and loading results."""

from typing import Any
from pathlib import Path
import json

import numpy as np


def _convert(obj):
    """Convert numpy scalars and paths for JSON serialization."""
    if isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, Path):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def save_results(results: Any, path: Path):
    """Save results (a list or dict) to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    
    with open(path, "w") as f:
        json.dump(results, f, indent=2, default=_convert)


def load_results(path: Path) -> Any:
    """Load results from a JSON file."""
    with open(Path(path)) as f:
        return json.load(f)
