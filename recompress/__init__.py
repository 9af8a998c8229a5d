"""Recompress images to a target structural similarity"""

from .formats import Format, decode, detect_format
from .config import RecompressConfig, load_config, save_config
from .processor import ImageProcessor, RecompressTask, ProcessOutcome, policy_for

__all__ = [
    'Format',
    'decode',
    'detect_format',
    'RecompressConfig',
    'load_config',
    'save_config',
    'ImageProcessor',
    'RecompressTask',
    'ProcessOutcome',
    'policy_for',
]
