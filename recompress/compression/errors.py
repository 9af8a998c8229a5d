"""Error taxonomy for the recompression pipeline.

Nothing here is retried. A failure at any point aborts the whole
operation and reaches the caller unchanged.
"""


class RecompressError(Exception):
    """Base class for every error raised by recompress."""


class CompressionError(RecompressError):
    """Failure inside the quality search or candidate selection."""


class EncodeError(CompressionError):
    """Encoder rejected its inputs or failed internally."""


class ComparisonError(CompressionError):
    """Similarity could not be computed for an encoded candidate."""


class BaselineError(CompressionError):
    """Similarity baseline could not be built from the source image."""


class DecodeError(RecompressError):
    """Source bytes could not be identified or decoded."""


class ConfigError(RecompressError):
    """Invalid configuration value."""
