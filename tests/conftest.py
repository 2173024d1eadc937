"""Shared fixtures for medcompress tests."""

import json
import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))


def write_raw_image(raw_dir: Path, name: str, samples: np.ndarray, width: int, height: int,
                    bits_allocated: int = 16, metadata: bool = True):
    """Write a `.bin` buffer and (optionally) its `.json` sidecar."""
    raw_dir.mkdir(parents=True, exist_ok=True)
    dtype = "<u2" if bits_allocated > 8 else "u1"
    (raw_dir / f"{name}.bin").write_bytes(np.asarray(samples).astype(dtype).tobytes())
    if metadata:
        with open(raw_dir / f"{name}.json", "w") as f:
            json.dump({
                "width": width,
                "height": height,
                "bitsAllocated": bits_allocated,
                "bitsStored": bits_allocated,
                "photometricInterpretation": "MONOCHROME2",
            }, f)


class FakeEncoder:
    """
    Stands in for `run_encoder`: records each call and writes a fixed-size artifact.
    
    The input container is captured before the codec deletes it.
    """
    
    def __init__(self, output_size: int = 64, fail: bool = False):
        self.output_size = output_size
        self.fail = fail
        self.calls = []
        self.inputs = []
    
    def __call__(self, command, output_path, timeout=None):
        from medcompress.exceptions import EncoderInvocationError
        
        self.calls.append(list(command))
        input_path = Path(command[command.index("-i") + 1])
        self.inputs.append(input_path.read_bytes())
        if self.fail:
            raise EncoderInvocationError(f"Command failed with exit status 1: {' '.join(command)}")
        Path(output_path).write_bytes(b"\x00" * self.output_size)


@pytest.fixture
def raw_dir(tmp_path):
    return tmp_path / "raw"


@pytest.fixture
def output_dir(tmp_path):
    path = tmp_path / "compressed"
    path.mkdir()
    return path


@pytest.fixture
def black_image(raw_dir):
    """4x4, 16-bit, all-zero samples."""
    write_raw_image(raw_dir, "black", np.zeros(16, dtype=np.uint16), 4, 4)
    return "black"


@pytest.fixture
def gradient_image(raw_dir):
    """64x64, 16-bit ramp spanning the default soft-tissue window."""
    samples = np.linspace(800, 1300, 64 * 64).astype(np.uint16)
    write_raw_image(raw_dir, "gradient", samples, 64, 64)
    return "gradient"


@pytest.fixture
def package_logs(caplog):
    """caplog wired to the package logger, which does not propagate once configured."""
    import logging
    
    logger = logging.getLogger("medcompress")
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.WARNING, logger="medcompress")
    yield caplog
    logger.removeHandler(caplog.handler)
