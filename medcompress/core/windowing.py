"""
Diagnostic windowing of raw CT samples.

Stored samples are rescaled to Hounsfield units (HU) and the window
[center - width/2, center + width/2] is stretched over the full output
range of the target bit width. Values outside the window are clamped.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Tuple
import numpy as np

from medcompress.exceptions import TransformError


SUPPORTED_OUTPUT_BITS = (8, 16)


@dataclass(frozen=True)
class WindowParameters:
    """
    Rescale and window settings.
    
    Attributes:
        rescale_slope: Multiplier from stored value to HU
        rescale_intercept: Offset from stored value to HU
        window_center: Center of the display window in HU
        window_width: Width of the display window in HU
    """
    rescale_slope: float = 1.0
    rescale_intercept: float = -1024.0
    window_center: float = 40.0
    window_width: float = 350.0
    
    @property
    def hu_range(self) -> Tuple[float, float]:
        """(minHU, maxHU) covered by the window."""
        half = self.window_width / 2
        return self.window_center - half, self.window_center + half
    
    def to_dict(self) -> Dict[str, float]:
        return asdict(self)
    
    @classmethod
    def from_dict(cls, data: Dict) -> "WindowParameters":
        data = data or {}
        return cls(**{
            name: float(data[name])
            for name in ("rescale_slope", "rescale_intercept", "window_center", "window_width")
            if name in data
        })


def output_dtype(output_bits: int) -> np.dtype:
    """Sample dtype produced for a given output bit width."""
    if output_bits not in SUPPORTED_OUTPUT_BITS:
        raise TransformError(
            f"Unsupported output bit width {output_bits}; expected one of {SUPPORTED_OUTPUT_BITS}"
        )
    return np.dtype(np.uint8) if output_bits == 8 else np.dtype(np.uint16)


def apply_window(
    samples: np.ndarray,
    params: WindowParameters = WindowParameters(),
    output_bits: int = 16,
) -> np.ndarray:
    """
    Window raw samples into the full range of `output_bits`.
    
    Args:
        samples: Raw unsigned samples (any shape, uint8 or uint16)
        params: Rescale and window parameters
        output_bits: 8 for JPEG input, 16 for JPEG 2000 / HTJ2K input
    
    Returns:
        New array of the same shape with dtype uint8 or uint16
    
    Raises:
        TransformError: For a non-positive window width or unsupported bit width
    """
    dtype = output_dtype(output_bits)
    if params.window_width <= 0:
        raise TransformError(f"Window width must be positive, got {params.window_width}")
    
    max_output = (1 << output_bits) - 1
    min_hu, max_hu = params.hu_range
    
    hu = np.asarray(samples, dtype=np.float64) * params.rescale_slope + params.rescale_intercept
    scaled = (hu - min_hu) / (max_hu - min_hu) * max_output
    # Round half away from zero; scaled is non-negative inside the window
    rounded = np.floor(scaled + 0.5)
    
    out = np.where(hu <= min_hu, 0.0, np.where(hu >= max_hu, float(max_output), rounded))
    return np.clip(out, 0, max_output).astype(dtype)


def window_8bit(samples: np.ndarray, params: WindowParameters = WindowParameters()) -> np.ndarray:
    """8-bit variant (0-255), used ahead of quality-driven JPEG encoding."""
    return apply_window(samples, params, output_bits=8)


def window_16bit(samples: np.ndarray, params: WindowParameters = WindowParameters()) -> np.ndarray:
    """16-bit variant (0-65535), used ahead of ratio-driven encoders."""
    return apply_window(samples, params, output_bits=16)
