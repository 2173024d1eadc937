"""Ratio-driven High-Throughput JPEG 2000 through the OpenJPH encoder."""

from typing import Any, Dict, List, Optional
from pathlib import Path
import uuid

import numpy as np

from medcompress.codecs.base import (
    CodecAdapter,
    DEFAULT_TIMEOUT,
    EncoderRunner,
    format_ratio,
    remove_temporary,
    run_encoder,
)
from medcompress.codecs.containers import encode_raw, write_container
from medcompress.core.source import ImageRecord


def quantization_step(target_ratio: float) -> float:
    """HTJ2K has no ratio control; the quantization step is 1/ratio."""
    if target_ratio <= 0:
        raise ValueError(f"Target ratio must be positive, got {target_ratio}")
    return 1.0 / target_ratio


class RatioHTJ2KCodec(CodecAdapter):
    """
    HTJ2K encoder parameterized by a quantization step.
    
    Args:
        executable: Path or name of `ojph_compress`
        timeout: Seconds allowed per encode
        runner: Function invoking the encoder (see `run_encoder`)
    """
    
    name = "jph"
    label = "JPH"
    extension = "jph"
    output_bits = 16
    
    def __init__(
        self,
        executable: str = "ojph_compress",
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        runner: EncoderRunner = run_encoder,
    ):
        self.executable = executable
        self.timeout = timeout
        self.runner = runner
    
    def output_path(self, record: ImageRecord, target_ratio: float, output_dir: Path) -> Path:
        return Path(output_dir) / f"{record.name}_ratio{format_ratio(target_ratio)}.{self.extension}"
    
    def temporary_path(self, record: ImageRecord, target_ratio: float, output_dir: Path) -> Path:
        unique = uuid.uuid4().hex[:8]
        return Path(output_dir) / f"{record.name}_ratio{format_ratio(target_ratio)}_{unique}_temp.raw"
    
    def build_command(
        self,
        input_path: Path,
        output_path: Path,
        record: ImageRecord,
        bit_depth: int,
        target_ratio: float,
    ) -> List[str]:
        return [
            self.executable,
            "-i", str(input_path),
            "-o", str(output_path),
            "-dims", f"{{{record.width},{record.height}}}",
            "-num_comps", "1",
            "-bit_depth", str(bit_depth),
            "-signed", "false",
            "-downsamp", "{1,1}",
            "-qstep", repr(quantization_step(target_ratio)),
        ]
    
    def target_fields(self, target_ratio: float) -> Dict[str, Any]:
        return {"target_ratio": target_ratio}
    
    def describe_target(self, target_ratio: float) -> str:
        return f"ratio {format_ratio(target_ratio)}"
    
    def _encode(
        self,
        record: ImageRecord,
        pixels: np.ndarray,
        target_ratio: float,
        output_dir: Path,
    ) -> Path:
        output_path = self.output_path(record, target_ratio, output_dir)
        temp_path = self.temporary_path(record, target_ratio, output_dir)
        output_path.unlink(missing_ok=True)
        
        bit_depth = pixels.dtype.itemsize * 8
        command = self.build_command(temp_path, output_path, record, bit_depth, target_ratio)
        try:
            write_container(temp_path, encode_raw(pixels, record.width, record.height))
            self.runner(command, output_path, self.timeout)
        finally:
            remove_temporary(temp_path)
        
        return output_path
