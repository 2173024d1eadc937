"""
Codec adapter interface.

Every backend takes a windowed sample buffer and a target compression
ratio and returns a `CodecResult`. Failures never propagate out of
`CodecAdapter.encode`; they become error results so one codec cannot
abort the sweep.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence
from pathlib import Path
import subprocess
import time

import numpy as np

from medcompress.core.source import ImageRecord
from medcompress.exceptions import CleanupError, EncoderInvocationError
from medcompress.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 300.0


@dataclass(frozen=True)
class CodecResult:
    """
    Outcome of one encode.
    
    Exactly one of (`compressed_size` and friends) or `error` is set.
    
    Attributes:
        compression_time: Wall time in milliseconds
        compressed_size: Artifact size in bytes
        compression_ratio: original_size / compressed_size
        path: Artifact path
        quality: JPEG quality (quality-driven codecs only)
        target_ratio: Requested ratio (ratio-driven codecs only)
        error: Failure message
    """
    compression_time: Optional[float] = None
    compressed_size: Optional[int] = None
    compression_ratio: Optional[float] = None
    path: Optional[str] = None
    quality: Optional[int] = None
    target_ratio: Optional[float] = None
    error: Optional[str] = None
    
    def __post_init__(self):
        success_fields = (self.compression_time, self.compressed_size, self.compression_ratio, self.path)
        has_success = all(v is not None for v in success_fields)
        if self.error is not None and any(v is not None for v in success_fields):
            raise ValueError("CodecResult cannot carry both an error and measurements")
        if self.error is None and not has_success:
            raise ValueError("CodecResult needs either complete measurements or an error")
    
    @property
    def ok(self) -> bool:
        return self.error is None
    
    @classmethod
    def failure(cls, message: str) -> "CodecResult":
        return cls(error=message or "unknown error")
    
    def to_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            return {"error": self.error}
        
        data = {
            "compressionTime": self.compression_time,
            "compressedSize": self.compressed_size,
            "compressionRatio": self.compression_ratio,
        }
        if self.quality is not None:
            data["quality"] = self.quality
        if self.target_ratio is not None:
            data["targetRatio"] = self.target_ratio
        data["path"] = self.path
        return data
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CodecResult":
        if "error" in data:
            return cls.failure(data["error"])
        return cls(
            compression_time=data["compressionTime"],
            compressed_size=data["compressedSize"],
            compression_ratio=data["compressionRatio"],
            path=data["path"],
            quality=data.get("quality"),
            target_ratio=data.get("targetRatio"),
        )


def run_encoder(
    command: Sequence[str],
    output_path: Path,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
):
    """
    Run an external encoder and check that it produced its artifact.
    
    Args:
        command: Executable and arguments (no shell)
        output_path: File the encoder is expected to write
        timeout: Seconds before the process is killed
    
    Raises:
        EncoderInvocationError: On missing executable, non-zero exit,
            timeout, or a missing artifact
    """
    command = [str(c) for c in command]
    try:
        proc = subprocess.run(command, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as e:
        raise EncoderInvocationError(f"Encoder not found: {command[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise EncoderInvocationError(f"{command[0]} timed out after {timeout}s") from e
    
    if proc.returncode != 0:
        detail = (proc.stderr or proc.stdout or "").strip()
        raise EncoderInvocationError(
            f"Command failed with exit status {proc.returncode}: {' '.join(command)}"
            + (f"\n{detail}" if detail else "")
        )
    
    if not Path(output_path).exists():
        raise EncoderInvocationError(f"{command[0]} did not write {output_path}")


def remove_temporary(path: Path):
    """Delete a temporary container; failures are logged, never raised."""
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        err = CleanupError(f"Could not remove temporary file {path}: {e}")
        logger.warning(str(err))


def format_ratio(ratio: float) -> str:
    """Render a ratio for file names: 10 -> '10', 7.5 -> '7.5'."""
    ratio = float(ratio)
    return str(int(ratio)) if ratio.is_integer() else repr(ratio)


class CodecAdapter(ABC):
    """
    Abstract base class for codec backends.
    
    Subclasses implement `_encode`, which writes the artifact and returns
    its path, and `target_fields`, which names the compression target
    recorded in the result.
    
    Attributes:
        name: Result key ("jpeg", "jp2", "jph")
        label: Display name for the console table
        extension: Artifact file extension
        output_bits: Bit width of the windowed input this codec expects
    """
    name: str = ""
    label: str = ""
    extension: str = ""
    output_bits: int = 16
    
    @abstractmethod
    def _encode(
        self,
        record: ImageRecord,
        pixels: np.ndarray,
        target_ratio: float,
        output_dir: Path,
    ) -> Path:
        """Write the compressed artifact and return its path."""
        pass
    
    @abstractmethod
    def output_path(self, record: ImageRecord, target_ratio: float, output_dir: Path) -> Path:
        """Deterministic artifact path for one (image, target ratio)."""
        pass
    
    @abstractmethod
    def target_fields(self, target_ratio: float) -> Dict[str, Any]:
        """Compression target stored alongside the measurements."""
        pass
    
    @abstractmethod
    def describe_target(self, target_ratio: float) -> str:
        """Human-readable compression target for log messages."""
        pass
    
    def encode(
        self,
        record: ImageRecord,
        pixels: np.ndarray,
        original_size: int,
        target_ratio: float,
        output_dir: Path,
    ) -> CodecResult:
        """
        Compress one windowed buffer.
        
        Args:
            record: Image metadata
            pixels: Windowed samples with `output_bits` width
            original_size: Size of the raw pixel data in bytes
            target_ratio: Requested compression ratio
            output_dir: Directory for the artifact and temporaries
        
        Returns:
            CodecResult with measurements, or with `error` set
        """
        try:
            start = time.perf_counter()
            path = self._encode(record, pixels, target_ratio, Path(output_dir))
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            
            compressed_size = Path(path).stat().st_size
            if compressed_size == 0:
                raise EncoderInvocationError(f"{self.label} encoder wrote an empty file {path}")
            
            return CodecResult(
                compression_time=elapsed_ms,
                compressed_size=compressed_size,
                compression_ratio=original_size / compressed_size,
                path=str(path),
                **self.target_fields(target_ratio),
            )
        except Exception as e:
            logger.error(
                f"Error compressing {record.name} to {self.label} with "
                f"{self.describe_target(target_ratio)}: {e}"
            )
            return CodecResult.failure(str(e) or e.__class__.__name__)
    
    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


EncoderRunner = Callable[[List[str], Path, Optional[float]], None]
