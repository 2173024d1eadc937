"""Quality-driven baseline JPEG via Pillow."""

from typing import Any, Dict
from pathlib import Path

import numpy as np
from PIL import Image

from medcompress.codecs.base import CodecAdapter
from medcompress.core.source import ImageRecord

# (minimum target ratio, quality), checked top-down
RATIO_QUALITY_STEPS = [
    (50, 10),
    (30, 25),
    (20, 40),
    (10, 60),
    (5, 80),
]
FALLBACK_QUALITY = 90


def ratio_to_jpeg_quality(ratio: float) -> int:
    """
    Map a target compression ratio to a JPEG quality factor.
    
    JPEG has no rate control, so this empirical step function stands in.
    Larger ratios give lower quality.
    """
    for threshold, quality in RATIO_QUALITY_STEPS:
        if ratio >= threshold:
            return quality
    return FALLBACK_QUALITY


class QualityJpegCodec(CodecAdapter):
    """Grayscale JPEG encoder driven by a quality factor."""
    
    name = "jpeg"
    label = "JPEG"
    extension = "jpg"
    output_bits = 8
    
    def quality_for(self, target_ratio: float) -> int:
        return ratio_to_jpeg_quality(target_ratio)
    
    def output_path(self, record: ImageRecord, target_ratio: float, output_dir: Path) -> Path:
        return Path(output_dir) / f"{record.name}_q{self.quality_for(target_ratio)}.{self.extension}"
    
    def target_fields(self, target_ratio: float) -> Dict[str, Any]:
        return {"quality": self.quality_for(target_ratio)}
    
    def describe_target(self, target_ratio: float) -> str:
        return f"quality {self.quality_for(target_ratio)}"
    
    def _encode(
        self,
        record: ImageRecord,
        pixels: np.ndarray,
        target_ratio: float,
        output_dir: Path,
    ) -> Path:
        quality = self.quality_for(target_ratio)
        if not 1 <= quality <= 100:
            raise ValueError(f"JPEG quality out of range: {quality}")
        if pixels.dtype != np.uint8:
            raise ValueError(f"JPEG input must be 8-bit, got {pixels.dtype}")
        if pixels.size != record.num_samples:
            raise ValueError(f"Expected {record.num_samples} samples, got {pixels.size}")
        
        path = self.output_path(record, target_ratio, output_dir)
        image = Image.frombytes("L", (record.width, record.height), pixels.tobytes())
        image.save(path, format="JPEG", quality=quality)
        return path
