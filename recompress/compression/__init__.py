"""Distortion-targeted compression with format-specific encoders."""

from .result import (
    ChromaSubsampling,
    ChromaSubsamplingPolicy,
    CompressionAttempt,
    CompressionResult,
    SearchOutcome,
    SearchStep,
)
from .errors import (
    BaselineError,
    ComparisonError,
    CompressionError,
    ConfigError,
    DecodeError,
    EncodeError,
    RecompressError,
)
from .encoders import EncoderOptions, get_encoder, get_available_formats
from .similarity import SimilarityCalculator
from .search import find_quality, select_best, expand_policy
from .engine import CompressionEngine, choose_outcome, compress_image
from .profile import DEFAULT_QUALITY, QUALITY_SSIM, target_for_quality

__all__ = [
    'ChromaSubsampling',
    'ChromaSubsamplingPolicy',
    'CompressionAttempt',
    'CompressionResult',
    'SearchOutcome',
    'SearchStep',
    'BaselineError',
    'ComparisonError',
    'CompressionError',
    'ConfigError',
    'DecodeError',
    'EncodeError',
    'RecompressError',
    'EncoderOptions',
    'get_encoder',
    'get_available_formats',
    'SimilarityCalculator',
    'find_quality',
    'select_best',
    'expand_policy',
    'CompressionEngine',
    'choose_outcome',
    'compress_image',
    'DEFAULT_QUALITY',
    'QUALITY_SSIM',
    'target_for_quality',
]
