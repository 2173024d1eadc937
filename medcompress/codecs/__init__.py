"""Codec adapters for the compression benchmark."""

from typing import List, Optional

from medcompress.codecs.base import CodecAdapter, CodecResult, run_encoder, DEFAULT_TIMEOUT
from medcompress.codecs.jpeg import QualityJpegCodec, ratio_to_jpeg_quality
from medcompress.codecs.jpeg2000 import RatioJ2KCodec
from medcompress.codecs.htj2k import RatioHTJ2KCodec, quantization_step


def default_codecs(
    opj_compress: str = "opj_compress",
    ojph_compress: str = "ojph_compress",
    timeout: Optional[float] = DEFAULT_TIMEOUT,
) -> List[CodecAdapter]:
    """The three benchmarked codecs in result order (jpeg, jp2, jph)."""
    return [
        QualityJpegCodec(),
        RatioJ2KCodec(executable=opj_compress, timeout=timeout),
        RatioHTJ2KCodec(executable=ojph_compress, timeout=timeout),
    ]


__all__ = [
    "CodecAdapter",
    "CodecResult",
    "run_encoder",
    "QualityJpegCodec",
    "RatioJ2KCodec",
    "RatioHTJ2KCodec",
    "ratio_to_jpeg_quality",
    "quantization_step",
    "default_codecs",
]
