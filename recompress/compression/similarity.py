"""Structural similarity between the source image and encoded candidates.

Scores are reported as DSSIM (1/SSIM - 1): 0.0 means identical and
larger values mean more visible difference.
"""

import math
from io import BytesIO

import numpy as np
from PIL import Image, UnidentifiedImageError
from skimage.metrics import structural_similarity

from .errors import BaselineError, ComparisonError

# Side length of scikit-image's default SSIM window
SSIM_WIN_SIZE = 7


def flatten_image(image: Image.Image) -> Image.Image:
    """Convert to RGB, compositing any alpha channel on white."""
    if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
        rgba = image.convert('RGBA')
        background = Image.new('RGB', rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[3])
        return background
    if image.mode != 'RGB':
        return image.convert('RGB')
    return image


def ssim_to_dssim(ssim: float) -> float:
    if ssim <= 0:
        return math.inf
    return max(0.0, 1.0 / ssim - 1.0)


class SimilarityCalculator:
    """Compares encoded candidates against a precomputed baseline.

    The baseline array is built once per source image and only read
    afterwards, so one calculator can serve several threads.
    """

    def __init__(self, image: Image.Image):
        """Build the baseline for ``image``.

        Raises:
            BaselineError: Image is empty or smaller than the SSIM window
        """
        width, height = image.size
        if width == 0 or height == 0:
            raise BaselineError(f"Cannot compare empty image ({width}x{height})")
        if width < SSIM_WIN_SIZE or height < SSIM_WIN_SIZE:
            raise BaselineError(
                f"Image {width}x{height} is smaller than the "
                f"{SSIM_WIN_SIZE}x{SSIM_WIN_SIZE} similarity window"
            )

        try:
            self._baseline = np.asarray(flatten_image(image), dtype=np.float64)
        except (OSError, ValueError) as e:
            raise BaselineError(f"Failed to prepare similarity baseline: {e}") from e
        self.size = (width, height)

    def compare(self, buffer: bytes) -> float:
        """DSSIM of an encoded buffer against the baseline.

        Raises:
            ComparisonError: Buffer cannot be decoded or has other dimensions
        """
        try:
            with Image.open(BytesIO(buffer)) as candidate:
                candidate.load()
                return self.compare_image(candidate)
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ComparisonError(f"Failed to decode candidate for comparison: {e}") from e

    def compare_image(self, candidate: Image.Image) -> float:
        """DSSIM of an already-decoded candidate against the baseline."""
        if candidate.size != self.size:
            raise ComparisonError(
                f"Candidate is {candidate.size[0]}x{candidate.size[1]}, "
                f"expected {self.size[0]}x{self.size[1]}"
            )

        candidate_array = np.asarray(flatten_image(candidate), dtype=np.float64)
        try:
            ssim = structural_similarity(
                self._baseline,
                candidate_array,
                data_range=255,
                channel_axis=-1,
            )
        except ValueError as e:
            raise ComparisonError(f"Failed to calculate SSIM: {e}") from e
        return ssim_to_dssim(float(ssim))
