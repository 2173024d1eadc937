"""
Benchmark configuration.

Configuration is read from YAML and mapped onto `BenchmarkConfig`;
any key that is absent keeps the default documented here.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pathlib import Path

import yaml

from medcompress.core.windowing import WindowParameters

DEFAULT_CONFIG_PATH = Path(__file__).parent / "configs" / "default.yaml"
DEFAULT_TARGET_RATIOS = [5, 10, 15, 20, 30, 50]


@dataclass
class BenchmarkConfig:
    """
    Settings for one benchmark run.
    
    Attributes:
        dicom_dir: Directory of source DICOM files (extraction only)
        raw_dir: Directory of `<name>.bin` / `<name>.json` pairs
        output_dir: Directory for artifacts, results and statistics
        target_ratios: Ordered compression ratio sweep
        max_workers: Thread pool size for codec units; 1 runs sequentially
        window: Rescale and window parameters
        opj_compress: OpenJPEG encoder executable
        ojph_compress: OpenJPH encoder executable
        encoder_timeout: Seconds allowed per external encoder call
        save_figures: Whether to render summary plots
    """
    dicom_dir: Path = Path("dicomImages")
    raw_dir: Path = Path("raw")
    output_dir: Path = Path("compressed")
    target_ratios: List[float] = field(default_factory=lambda: list(DEFAULT_TARGET_RATIOS))
    max_workers: int = 1
    window: WindowParameters = field(default_factory=WindowParameters)
    opj_compress: str = "opj_compress"
    ojph_compress: str = "ojph_compress"
    encoder_timeout: Optional[float] = 300.0
    save_figures: bool = False
    
    def __post_init__(self):
        self.dicom_dir = Path(self.dicom_dir)
        self.raw_dir = Path(self.raw_dir)
        self.output_dir = Path(self.output_dir)
        if not self.target_ratios:
            raise ValueError("At least one target ratio is required")
        if any(r <= 0 for r in self.target_ratios):
            raise ValueError(f"Target ratios must be positive: {self.target_ratios}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
    
    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "BenchmarkConfig":
        """Build from the nested YAML structure."""
        config = config or {}
        data = config.get("data", {})
        sweep = config.get("sweep", {})
        encoders = config.get("encoders", {})
        visualization = config.get("visualization", {})
        defaults = cls()
        
        return cls(
            dicom_dir=Path(data.get("dicom_dir", defaults.dicom_dir)),
            raw_dir=Path(data.get("raw_dir", defaults.raw_dir)),
            output_dir=Path(data.get("output_dir", defaults.output_dir)),
            target_ratios=list(sweep.get("target_ratios", defaults.target_ratios)),
            max_workers=int(sweep.get("max_workers", defaults.max_workers)),
            window=WindowParameters.from_dict(config.get("window", {})),
            opj_compress=encoders.get("opj_compress", defaults.opj_compress),
            ojph_compress=encoders.get("ojph_compress", defaults.ojph_compress),
            encoder_timeout=encoders.get("timeout", defaults.encoder_timeout),
            save_figures=bool(visualization.get("save_figures", defaults.save_figures)),
        )
    
    def to_dict(self) -> Dict[str, Any]:
        """Nested structure matching the YAML layout."""
        return {
            "data": {
                "dicom_dir": str(self.dicom_dir),
                "raw_dir": str(self.raw_dir),
                "output_dir": str(self.output_dir),
            },
            "sweep": {
                "target_ratios": list(self.target_ratios),
                "max_workers": self.max_workers,
            },
            "window": self.window.to_dict(),
            "encoders": {
                "opj_compress": self.opj_compress,
                "ojph_compress": self.ojph_compress,
                "timeout": self.encoder_timeout,
            },
            "visualization": {"save_figures": self.save_figures},
        }
    
    def save(self, path: Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)


def load_config(config_path: Optional[Path] = None) -> BenchmarkConfig:
    """Load configuration from a YAML file (the packaged default if None)."""
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    with open(path) as f:
        return BenchmarkConfig.from_dict(yaml.safe_load(f))
