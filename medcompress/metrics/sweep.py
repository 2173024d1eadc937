"""
Compression sweep over images, target ratios and codecs.

Each image is windowed once per bit width its codecs need; every
(target ratio, codec) pair is then encoded exactly once and the
outcomes are collected into one `ResultRecord` per (image, ratio).
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple
from pathlib import Path
import threading

import numpy as np
from tqdm import tqdm

from medcompress.codecs.base import CodecAdapter, CodecResult
from medcompress.core.source import ImageRecord, RawPixelSource
from medcompress.core.windowing import WindowParameters, apply_window
from medcompress.exceptions import MetadataMissing, ParseError, TransformError
from medcompress.utils.io import save_results, load_results
from medcompress.utils.logging import get_logger

logger = get_logger(__name__)

RESULTS_FILENAME = "compressionResults.json"


@dataclass(frozen=True)
class ResultRecord:
    """
    Results for one image at one target ratio.
    
    Attributes:
        filename: Image name
        width: Image width
        height: Image height
        bit_depth: Bits allocated per raw sample
        target_compression_ratio: Requested ratio
        original_size: Raw pixel data size in bytes
        codec_results: CodecResult per codec name, in codec order
    """
    filename: str
    width: int
    height: int
    bit_depth: int
    target_compression_ratio: float
    original_size: int
    codec_results: Dict[str, CodecResult] = field(default_factory=dict)
    
    def __getitem__(self, codec_name: str) -> CodecResult:
        return self.codec_results[codec_name]
    
    @property
    def jpeg(self) -> Optional[CodecResult]:
        return self.codec_results.get("jpeg")
    
    @property
    def jp2(self) -> Optional[CodecResult]:
        return self.codec_results.get("jp2")
    
    @property
    def jph(self) -> Optional[CodecResult]:
        return self.codec_results.get("jph")
    
    def to_dict(self) -> Dict:
        data = {
            "filename": self.filename,
            "width": self.width,
            "height": self.height,
            "bitDepth": self.bit_depth,
            "targetCompressionRatio": self.target_compression_ratio,
            "originalSize": self.original_size,
        }
        for name, result in self.codec_results.items():
            data[name] = result.to_dict()
        return data
    
    @classmethod
    def from_dict(cls, data: Dict, codec_names: Sequence[str] = ("jpeg", "jp2", "jph")) -> "ResultRecord":
        return cls(
            filename=data["filename"],
            width=data["width"],
            height=data["height"],
            bit_depth=data["bitDepth"],
            target_compression_ratio=data["targetCompressionRatio"],
            original_size=data["originalSize"],
            codec_results={
                name: CodecResult.from_dict(data[name])
                for name in codec_names if name in data
            },
        )


class ResultAccumulator:
    """
    Append-only collection of ResultRecords for one run.
    
    Appends are serialized with a lock so codec units may report from
    worker threads.
    """
    
    def __init__(self, records: Optional[List[ResultRecord]] = None):
        self._records: List[ResultRecord] = list(records or [])
        self._lock = threading.Lock()
    
    def append(self, record: ResultRecord):
        with self._lock:
            self._records.append(record)
    
    def extend(self, records: Sequence[ResultRecord]):
        with self._lock:
            self._records.extend(records)
    
    @property
    def records(self) -> List[ResultRecord]:
        with self._lock:
            return list(self._records)
    
    def __len__(self) -> int:
        return len(self._records)
    
    def __iter__(self) -> Iterator[ResultRecord]:
        return iter(self.records)
    
    def to_list(self) -> List[Dict]:
        return [r.to_dict() for r in self.records]
    
    def save(self, path: Path):
        """Write all records as a JSON array."""
        save_results(self.to_list(), path)
    
    @classmethod
    def load(cls, path: Path) -> "ResultAccumulator":
        return cls([ResultRecord.from_dict(d) for d in load_results(path)])


class CompressionSweep:
    """
    Runs every codec at every target ratio for every image.
    
    Args:
        source: Provider of raw pixels and metadata
        codecs: Codec adapters, in result order
        target_ratios: Ordered ratio sweep
        output_dir: Directory for artifacts and temporary containers
        window: Rescale and window parameters
        max_workers: Thread pool size for (ratio, codec) units; 1 is sequential
    """
    
    def __init__(
        self,
        source: RawPixelSource,
        codecs: Sequence[CodecAdapter],
        target_ratios: Sequence[float],
        output_dir: Path,
        window: WindowParameters = WindowParameters(),
        max_workers: int = 1,
    ):
        if not codecs:
            raise ValueError("At least one codec is required")
        names = [c.name for c in codecs]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate codec names: {names}")
        
        self.source = source
        self.codecs = list(codecs)
        self.target_ratios = list(target_ratios)
        self.output_dir = Path(output_dir)
        self.window = window
        self.max_workers = max(1, int(max_workers))
    
    def window_pixels(self, samples: np.ndarray) -> Dict[int, np.ndarray]:
        """Windowed buffers keyed by output bit width, one per width in use."""
        widths = sorted({c.output_bits for c in self.codecs})
        return {bits: apply_window(samples, self.window, output_bits=bits) for bits in widths}
    
    def process_image(self, name: str) -> List[ResultRecord]:
        """
        Run the full ratio sweep for one image.
        
        Returns an empty list if the image is skipped (missing metadata,
        unreadable pixels or a degenerate window).
        """
        try:
            record, samples, original_size = self.source.load(name)
        except MetadataMissing as e:
            logger.error(f"{e}; skipping")
            return []
        except ParseError as e:
            logger.error(f"Cannot read {name}: {e}; skipping")
            return []
        
        logger.debug(f"Raw pixel data range for {name}: {samples.min()} to {samples.max()}")
        
        try:
            windowed = self.window_pixels(samples)
        except TransformError as e:
            logger.error(f"Cannot window {name}: {e}; skipping")
            return []
        
        units = [(ratio, codec) for ratio in self.target_ratios for codec in self.codecs]
        outcomes = self._run_units(record, windowed, original_size, units)
        
        records = []
        for ratio in self.target_ratios:
            records.append(ResultRecord(
                filename=record.name,
                width=record.width,
                height=record.height,
                bit_depth=record.bits_allocated,
                target_compression_ratio=ratio,
                original_size=original_size,
                codec_results={c.name: outcomes[(ratio, c.name)] for c in self.codecs},
            ))
        return records
    
    def _run_unit(
        self,
        record: ImageRecord,
        windowed: Dict[int, np.ndarray],
        original_size: int,
        ratio: float,
        codec: CodecAdapter,
    ) -> CodecResult:
        return codec.encode(record, windowed[codec.output_bits], original_size, ratio, self.output_dir)
    
    def _run_units(
        self,
        record: ImageRecord,
        windowed: Dict[int, np.ndarray],
        original_size: int,
        units: List[Tuple[float, CodecAdapter]],
    ) -> Dict[Tuple[float, str], CodecResult]:
        outcomes = {}
        
        if self.max_workers == 1:
            current_ratio = None
            for ratio, codec in units:
                if ratio != current_ratio:
                    logger.info(f"Compressing {record.name} with target compression ratio {ratio}:1")
                    current_ratio = ratio
                outcomes[(ratio, codec.name)] = self._run_unit(record, windowed, original_size, ratio, codec)
            return outcomes
        
        for ratio in self.target_ratios:
            logger.info(f"Compressing {record.name} with target compression ratio {ratio}:1")
        
        # Units sharing an artifact (e.g. two ratios mapping to one JPEG quality)
        # must not write it concurrently, so each group runs in one task.
        groups: Dict[Path, List[Tuple[float, CodecAdapter]]] = {}
        for ratio, codec in units:
            groups.setdefault(codec.output_path(record, ratio, self.output_dir), []).append((ratio, codec))
        
        def run_group(group):
            return [
                ((ratio, codec.name), self._run_unit(record, windowed, original_size, ratio, codec))
                for ratio, codec in group
            ]
        
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            for group_outcomes in pool.map(run_group, groups.values()):
                outcomes.update(group_outcomes)
        
        return outcomes
    
    def run(
        self,
        images: Optional[Sequence[str]] = None,
        accumulator: Optional[ResultAccumulator] = None,
        progress: bool = True,
    ) -> ResultAccumulator:
        """
        Run the sweep.
        
        Args:
            images: Image names to process (default: all in the source)
            accumulator: Existing accumulator to append to
            progress: Show a tqdm progress bar
        
        Returns:
            Accumulator holding one record per processed (image, ratio)
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        if images is None:
            images = self.source.list_images()
        if accumulator is None:
            accumulator = ResultAccumulator()
        
        logger.info(f"Found {len(images)} images to process")
        
        for name in tqdm(images, desc="Compressing images", disable=not progress):
            accumulator.extend(self.process_image(name))
        
        return accumulator
