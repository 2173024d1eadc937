"""Exception hierarchy for medcompress."""


class MedCompressError(Exception):
    """Base class for all benchmark errors."""


class MetadataMissing(MedCompressError):
    """The metadata sidecar for an image does not exist."""


class ParseError(MedCompressError):
    """Pixel data or metadata could not be interpreted."""


class TransformError(MedCompressError):
    """Windowing cannot be applied (degenerate window or dimensions)."""


class EncoderInvocationError(MedCompressError):
    """An encoder failed, timed out, or produced no artifact."""


class CleanupError(MedCompressError):
    """A temporary container file could not be removed."""
