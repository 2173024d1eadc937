"""
Pixel sources for the compression benchmark.

Raw pixel data lives as `<name>.bin` next to a `<name>.json` metadata
sidecar. `DicomExtractor` produces these pairs from DICOM files; the
benchmark itself only reads them through `RawPixelSource`.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple
from pathlib import Path
import json

import numpy as np

from medcompress.exceptions import MetadataMissing, ParseError
from medcompress.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImageRecord:
    """
    Static acquisition metadata for one image.
    
    Attributes:
        name: Image identifier (file stem)
        width: Columns
        height: Rows
        bits_allocated: Storage bits per sample
        bits_stored: Significant bits per sample
        photometric_interpretation: Informational only
    """
    name: str
    width: int
    height: int
    bits_allocated: int
    bits_stored: int
    photometric_interpretation: str = ""
    
    @property
    def num_samples(self) -> int:
        return self.width * self.height
    
    @property
    def bytes_per_sample(self) -> int:
        return 2 if self.bits_allocated > 8 else 1
    
    @property
    def sample_dtype(self) -> np.dtype:
        return np.dtype("<u2") if self.bits_allocated > 8 else np.dtype(np.uint8)
    
    def to_metadata(self) -> Dict:
        """Metadata sidecar representation."""
        return {
            "width": self.width,
            "height": self.height,
            "bitsAllocated": self.bits_allocated,
            "bitsStored": self.bits_stored,
            "photometricInterpretation": self.photometric_interpretation,
        }
    
    @classmethod
    def from_metadata(cls, name: str, metadata: Dict) -> "ImageRecord":
        try:
            width = int(metadata["width"])
            height = int(metadata["height"])
            bits_allocated = int(metadata["bitsAllocated"])
            bits_stored = int(metadata.get("bitsStored", bits_allocated))
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(f"Invalid metadata for {name}: {e}") from e
        
        if width <= 0 or height <= 0:
            raise ParseError(f"Invalid dimensions for {name}: {width}x{height}")
        
        return cls(
            name=name,
            width=width,
            height=height,
            bits_allocated=bits_allocated,
            bits_stored=bits_stored,
            photometric_interpretation=str(metadata.get("photometricInterpretation") or ""),
        )


class RawPixelSource:
    """
    Reads raw pixel buffers and metadata from a directory.
    
    Args:
        raw_dir: Directory holding `<name>.bin` and `<name>.json` files
    """
    
    def __init__(self, raw_dir: Path):
        self.raw_dir = Path(raw_dir)
    
    def list_images(self) -> List[str]:
        """Names of all raw buffers in the directory, sorted."""
        if not self.raw_dir.is_dir():
            raise FileNotFoundError(f"Raw directory not found: {self.raw_dir}")
        return sorted(p.stem for p in self.raw_dir.glob("*.bin"))
    
    def pixel_path(self, name: str) -> Path:
        return self.raw_dir / f"{name}.bin"
    
    def metadata_path(self, name: str) -> Path:
        return self.raw_dir / f"{name}.json"
    
    def load_metadata(self, name: str) -> ImageRecord:
        """
        Read the metadata sidecar for an image.
        
        Raises:
            MetadataMissing: If the sidecar does not exist
            ParseError: If it is not valid JSON or lacks required fields
        """
        path = self.metadata_path(name)
        if not path.exists():
            raise MetadataMissing(f"Metadata file not found for {name}")
        
        try:
            with open(path, encoding="utf-8") as f:
                metadata = json.load(f)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid metadata JSON for {name}: {e}") from e
        
        return ImageRecord.from_metadata(name, metadata)
    
    def load_pixels(self, record: ImageRecord) -> Tuple[np.ndarray, int]:
        """
        Read the raw sample buffer for an image.
        
        A single trailing padding byte (odd-length pixel data) is tolerated.
        
        Returns:
            Tuple of (1-D sample array, original size in bytes)
        """
        path = self.pixel_path(record.name)
        if not path.exists():
            raise ParseError(f"Pixel data not found for {record.name}")
        
        data = path.read_bytes()
        expected = record.num_samples * record.bytes_per_sample
        if len(data) not in (expected, expected + 1):
            raise ParseError(
                f"Pixel data size mismatch for {record.name}: got {len(data)} bytes, "
                f"expected {expected} ({record.width}x{record.height}, "
                f"{record.bits_allocated} bits allocated)"
            )
        
        samples = np.frombuffer(data, dtype=record.sample_dtype, count=record.num_samples)
        return samples.copy(), len(data)
    
    def load(self, name: str) -> Tuple[ImageRecord, np.ndarray, int]:
        """Read metadata and pixels for an image."""
        record = self.load_metadata(name)
        samples, original_size = self.load_pixels(record)
        return record, samples, original_size


class DicomExtractor:
    """
    Extracts pixel data and metadata from DICOM files into a raw directory.
    
    Only native (uncompressed) transfer syntaxes are supported since the
    pixel bytes are copied verbatim.
    
    Args:
        dicom_dir: Directory containing `.dcm` files
        raw_dir: Destination for `.bin`/`.json` pairs
    """
    
    def __init__(self, dicom_dir: Path, raw_dir: Path):
        self.dicom_dir = Path(dicom_dir)
        self.raw_dir = Path(raw_dir)
    
    def extract_file(self, path: Path) -> ImageRecord:
        """Extract a single DICOM file. Raises ParseError on failure."""
        import pydicom
        from pydicom.errors import InvalidDicomError
        
        path = Path(path)
        try:
            ds = pydicom.dcmread(str(path))
        except (InvalidDicomError, OSError) as e:
            raise ParseError(f"Cannot read {path.name}: {e}") from e
        
        if "PixelData" not in ds:
            raise ParseError(f"No pixel data element in {path.name}")
        
        transfer_syntax = getattr(getattr(ds, "file_meta", None), "TransferSyntaxUID", None)
        if transfer_syntax is not None and transfer_syntax.is_compressed:
            raise ParseError(f"Compressed transfer syntax {transfer_syntax.name} in {path.name}")
        
        try:
            record = ImageRecord(
                name=path.stem,
                width=int(ds.Columns),
                height=int(ds.Rows),
                bits_allocated=int(ds.BitsAllocated),
                bits_stored=int(ds.BitsStored),
                photometric_interpretation=str(ds.get("PhotometricInterpretation", "")),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ParseError(f"Missing or invalid image attributes in {path.name}: {e}") from e
        
        if record.bits_allocated != 16 or record.bits_stored != 16:
            logger.warning(
                f"Unexpected bit depth in {path.name}: bitsAllocated={record.bits_allocated}, "
                f"bitsStored={record.bits_stored}"
            )
        
        self.raw_dir.mkdir(parents=True, exist_ok=True)
        (self.raw_dir / f"{record.name}.bin").write_bytes(bytes(ds.PixelData))
        with open(self.raw_dir / f"{record.name}.json", "w", encoding="utf-8") as f:
            json.dump(record.to_metadata(), f, indent=2)
        
        return record
    
    def extract_all(self) -> List[ImageRecord]:
        """Extract every `.dcm` file, logging and skipping failures."""
        if not self.dicom_dir.is_dir():
            raise FileNotFoundError(f"DICOM directory not found: {self.dicom_dir}")
        
        records = []
        for path in sorted(self.dicom_dir.glob("*.dcm")):
            try:
                records.append(self.extract_file(path))
            except ParseError as e:
                logger.error(f"Error processing file {path.name}: {e}")
        
        logger.info(f"Extracted {len(records)} DICOM files to {self.raw_dir}")
        return records
