"""Ratio-driven JPEG 2000 through the OpenJPEG command line encoder."""

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
from medcompress.codecs.containers import encode_pgx, write_container
from medcompress.core.source import ImageRecord

TILE_SIZE = (1024, 1024)
CODE_BLOCK_SIZE = (32, 32)
PROGRESSION_ORDER = "RLCP"


class RatioJ2KCodec(CodecAdapter):
    """
    JPEG 2000 encoder with rate control on the compression ratio.
    
    Samples are handed over in a big-endian PGX container written next
    to the artifact and removed afterwards.
    
    Args:
        executable: Path or name of `opj_compress`
        timeout: Seconds allowed per encode
        runner: Function invoking the encoder (see `run_encoder`)
    """
    
    name = "jp2"
    label = "JP2"
    extension = "jp2"
    output_bits = 16
    
    def __init__(
        self,
        executable: str = "opj_compress",
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
        return Path(output_dir) / f"{record.name}_ratio{format_ratio(target_ratio)}_{unique}_temp.pgx"
    
    def build_command(self, input_path: Path, output_path: Path, target_ratio: float) -> List[str]:
        return [
            self.executable,
            "-i", str(input_path),
            "-o", str(output_path),
            "-p", PROGRESSION_ORDER,
            "-t", f"{TILE_SIZE[0]},{TILE_SIZE[1]}",
            "-b", f"{CODE_BLOCK_SIZE[0]},{CODE_BLOCK_SIZE[1]}",
            "-r", format_ratio(target_ratio),
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
        
        try:
            write_container(temp_path, encode_pgx(pixels, record.width, record.height))
            self.runner(self.build_command(temp_path, output_path, target_ratio), output_path, self.timeout)
        finally:
            remove_temporary(temp_path)
        
        return output_path
