"""
Summary statistics over a compression sweep.

Results are grouped by target ratio and codec; each bucket reports the
mean time, size and achieved ratio (plus quality for quality-driven
codecs) over its successful encodes only.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence
from pathlib import Path

import numpy as np
import pandas as pd

from medcompress.codecs.base import format_ratio
from medcompress.metrics.sweep import ResultRecord
from medcompress.utils.io import save_results, load_results

STATISTICS_FILENAME = "compression_statistics.json"

DEFAULT_CODECS = ("jpeg", "jp2", "jph")
DEFAULT_LABELS = {"jpeg": "JPEG", "jp2": "JP2", "jph": "JPH"}
QUALITY_CODECS = ("jpeg",)

TABLE_HEADER = "Format | Target Ratio | Actual Ratio | Avg Time (ms) | Avg Size (bytes)"
TABLE_RULE = "------ | ------------ | ------------ | ------------- | ---------------"


def average(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


@dataclass(frozen=True)
class CodecStatistics:
    """
    Averages for one (target ratio, codec) bucket.
    
    `count` is the number of successful encodes; it is not persisted.
    """
    avg_time: float = 0.0
    avg_size: float = 0.0
    avg_ratio: float = 0.0
    avg_quality: Optional[float] = None
    count: int = 0
    
    @property
    def empty(self) -> bool:
        return self.count == 0
    
    def to_dict(self) -> Dict[str, float]:
        data = {
            "avgTime": self.avg_time,
            "avgSize": self.avg_size,
            "avgRatio": self.avg_ratio,
        }
        if self.avg_quality is not None:
            data["avgQuality"] = self.avg_quality
        return data
    
    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "CodecStatistics":
        return cls(
            avg_time=data.get("avgTime", 0.0),
            avg_size=data.get("avgSize", 0.0),
            avg_ratio=data.get("avgRatio", 0.0),
            avg_quality=data.get("avgQuality"),
        )


class StatisticsSummary:
    """
    Per-ratio, per-codec averages.
    
    Args:
        buckets: Ordered mapping target ratio -> codec name -> CodecStatistics
        labels: Display names for codecs
    """
    
    def __init__(
        self,
        buckets: Dict[float, Dict[str, CodecStatistics]],
        labels: Optional[Dict[str, str]] = None,
    ):
        self.buckets = buckets
        self.labels = dict(DEFAULT_LABELS)
        if labels:
            self.labels.update(labels)
    
    def __getitem__(self, ratio: float) -> Dict[str, CodecStatistics]:
        return self.buckets[ratio]
    
    @property
    def target_ratios(self) -> List[float]:
        return list(self.buckets.keys())
    
    def to_dict(self) -> Dict[str, Dict[str, Dict[str, float]]]:
        return {
            format_ratio(ratio): {name: stats.to_dict() for name, stats in codecs.items()}
            for ratio, codecs in self.buckets.items()
        }
    
    def save(self, path: Path):
        save_results(self.to_dict(), path)
    
    @classmethod
    def from_dict(cls, data: Dict) -> "StatisticsSummary":
        return cls({
            float(ratio): {name: CodecStatistics.from_dict(s) for name, s in codecs.items()}
            for ratio, codecs in data.items()
        })
    
    @classmethod
    def load(cls, path: Path) -> "StatisticsSummary":
        return cls.from_dict(load_results(path))
    
    def to_dataframe(self) -> pd.DataFrame:
        """One row per (target ratio, codec)."""
        rows = []
        for ratio, codecs in self.buckets.items():
            for name, stats in codecs.items():
                rows.append({
                    "target_ratio": ratio,
                    "codec": self.labels.get(name, name),
                    "avg_time_ms": stats.avg_time,
                    "avg_size_bytes": stats.avg_size,
                    "avg_ratio": stats.avg_ratio,
                    "avg_quality": stats.avg_quality,
                    "num_success": stats.count,
                })
        return pd.DataFrame(
            rows,
            columns=[
                "target_ratio", "codec", "avg_time_ms", "avg_size_bytes",
                "avg_ratio", "avg_quality", "num_success",
            ],
        )
    
    def format_table(self) -> str:
        """Console table; buckets with a zero average time are omitted."""
        lines = [TABLE_HEADER, TABLE_RULE]
        for ratio, codecs in self.buckets.items():
            for name, stats in codecs.items():
                if not stats.avg_time:
                    continue
                label = self.labels.get(name, name.upper())
                lines.append(
                    f"{label:<6} | {format_ratio(ratio)}:1 | {stats.avg_ratio:.2f}:1 | "
                    f"{stats.avg_time:.2f} | {stats.avg_size:.0f}"
                )
        return "\n".join(lines)


class StatisticsAggregator:
    """
    Groups ResultRecords by target ratio and codec and averages them.
    
    Args:
        target_ratios: Ratios that always get a bucket, in order
        codec_names: Codecs that always get a bucket, in order
        quality_codecs: Codecs whose results carry a quality factor
    """
    
    def __init__(
        self,
        target_ratios: Optional[Sequence[float]] = None,
        codec_names: Sequence[str] = DEFAULT_CODECS,
        quality_codecs: Sequence[str] = QUALITY_CODECS,
    ):
        self.target_ratios = list(target_ratios or [])
        self.codec_names = list(codec_names)
        self.quality_codecs = set(quality_codecs)
    
    def aggregate(self, records: Iterable[ResultRecord]) -> StatisticsSummary:
        """
        Compute the summary over all records.
        
        Error sub-results are excluded. Buckets without a successful
        encode report zeros.
        """
        records = list(records)
        
        ratios = list(self.target_ratios)
        for record in records:
            if record.target_compression_ratio not in ratios:
                ratios.append(record.target_compression_ratio)
        
        codec_names = list(self.codec_names)
        for record in records:
            for name in record.codec_results:
                if name not in codec_names:
                    codec_names.append(name)
        
        samples = {
            ratio: {name: {"times": [], "sizes": [], "ratios": [], "qualities": []} for name in codec_names}
            for ratio in ratios
        }
        
        for record in records:
            bucket = samples[record.target_compression_ratio]
            for name, result in record.codec_results.items():
                if not result.ok:
                    continue
                bucket[name]["times"].append(result.compression_time)
                bucket[name]["sizes"].append(result.compressed_size)
                bucket[name]["ratios"].append(result.compression_ratio)
                if result.quality is not None:
                    bucket[name]["qualities"].append(result.quality)
        
        buckets = {}
        for ratio in ratios:
            buckets[ratio] = {}
            for name in codec_names:
                values = samples[ratio][name]
                buckets[ratio][name] = CodecStatistics(
                    avg_time=average(values["times"]),
                    avg_size=average(values["sizes"]),
                    avg_ratio=average(values["ratios"]),
                    avg_quality=average(values["qualities"]) if name in self.quality_codecs else None,
                    count=len(values["times"]),
                )
        
        return StatisticsSummary(buckets)
