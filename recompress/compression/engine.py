"""Compression engine: quality search plus the lossless size comparison."""

import logging
import time
from typing import Callable, Optional

from PIL import Image

from .encoders import BaseEncoder
from .result import (
    ChromaSubsamplingPolicy,
    CompressionResult,
    SearchOutcome,
    SearchStep,
)
from .search import Comparator, LossyEncodeFn, StepObserver, select_best
from .similarity import SimilarityCalculator

logger = logging.getLogger(__name__)

LosslessEncodeFn = Callable[[Image.Image], bytes]
ComparatorFactory = Callable[[Image.Image], Comparator]


def choose_outcome(
    image: Image.Image,
    lossy_encode: LossyEncodeFn,
    lossless_encode: Optional[LosslessEncodeFn],
    target: float,
    min_quality: int,
    max_quality: int,
    policy: ChromaSubsamplingPolicy,
    observer: Optional[StepObserver] = None,
    original_size: Optional[int] = None,
    workers: int = 1,
    comparator_factory: ComparatorFactory = SimilarityCalculator,
) -> SearchOutcome:
    """Pick the output candidate for ``image``.

    The similarity baseline is built before any encoding, so a BaselineError
    costs nothing. A lossless buffer wins only when it is strictly smaller
    than the best lossy one; its distortion is 0.0 by definition.

    Raises:
        BaselineError: Similarity baseline could not be built
        EncodeError: An encoder failed
        ComparisonError: A candidate could not be compared
    """
    comparator = comparator_factory(image)

    best = select_best(
        image, comparator, lossy_encode, target,
        min_quality, max_quality, policy,
        observer=observer, original_size=original_size, workers=workers,
    )

    if lossless_encode is None:
        return best

    buffer = lossless_encode(image)
    if observer is not None:
        observer(SearchStep(
            subsampling=None,
            quality=None,
            min_quality=min_quality,
            max_quality=max_quality,
            distortion=0.0,
            size_bytes=len(buffer),
            original_size=original_size,
            lossless=True,
        ))
    logger.info("lossless: size=%d (best lossy %d)", len(buffer), best.size_bytes)

    if len(buffer) < best.size_bytes:
        return SearchOutcome(
            distortion=0.0,
            buffer=buffer,
            lossless=True,
            iterations=best.iterations,
        )
    return best


def compress_image(
    image: Image.Image,
    lossy_encode: LossyEncodeFn,
    lossless_encode: Optional[LosslessEncodeFn],
    target: float,
    min_quality: int,
    max_quality: int,
    policy: ChromaSubsamplingPolicy,
    observer: Optional[StepObserver] = None,
    original_size: Optional[int] = None,
    workers: int = 1,
    comparator_factory: ComparatorFactory = SimilarityCalculator,
) -> bytes:
    """Compress ``image`` and return only the chosen buffer."""
    return choose_outcome(
        image, lossy_encode, lossless_encode, target,
        min_quality, max_quality, policy,
        observer=observer, original_size=original_size, workers=workers,
        comparator_factory=comparator_factory,
    ).buffer


class CompressionEngine:
    """Runs the distortion-targeted search with one format's encoder.

    Features:
    - One similarity baseline per run, shared by every probe
    - Optional lossless comparison for formats that have one
    - Optional thread fan-out across chroma modes
    """

    def __init__(self, encoder: BaseEncoder, workers: int = 1):
        """Initialize engine with specific encoder.

        Args:
            encoder: Format-specific encoder to use
            workers: Threads for per-mode searches (1 = sequential)
        """
        self.encoder = encoder
        self.workers = workers

    def compress_to_target(
        self,
        image: Image.Image,
        target: float,
        min_quality: int = 0,
        max_quality: int = 100,
        policy: Optional[ChromaSubsamplingPolicy] = None,
        observer: Optional[StepObserver] = None,
        original_size: Optional[int] = None,
    ) -> CompressionResult:
        """Compress image to the output closest to a target distortion.

        Args:
            image: PIL Image to compress
            target: Target DSSIM
            min_quality: Minimum quality to try
            max_quality: Maximum quality to try
            policy: Chroma policy; ignored (4:4:4 only) when the format
                has no chroma subsampling
            observer: Optional per-probe progress callback
            original_size: Source file size, for progress ratios

        Returns:
            CompressionResult describing the chosen buffer
        """
        start_time = time.time()

        if not self.encoder.supports_chroma_subsampling:
            policy = ChromaSubsamplingPolicy.disabled()
        elif policy is None:
            policy = ChromaSubsamplingPolicy.automatic()

        lossless = self.encoder.encode_lossless if self.encoder.supports_lossless else None

        outcome = choose_outcome(
            image,
            self.encoder.encode_lossy,
            lossless,
            target,
            min_quality,
            max_quality,
            policy,
            observer=observer,
            original_size=original_size,
            workers=self.workers,
        )

        encoding_time = int((time.time() - start_time) * 1000)

        return CompressionResult(
            encoded_bytes=outcome.buffer,
            final_size_bytes=outcome.size_bytes,
            distortion=outcome.distortion,
            target_distortion=target,
            format_used=self.encoder.format_name,
            dimensions=image.size,
            quality_used=outcome.quality,
            subsampling_used=outcome.subsampling,
            lossless=outcome.lossless,
            iterations=outcome.iterations,
            encoding_time_ms=encoding_time,
            message=self._build_message(outcome),
        )

    def _build_message(self, outcome: SearchOutcome) -> str:
        """Build human-readable result message."""
        size_mb = outcome.size_bytes / (1024 * 1024)
        if outcome.lossless:
            return f"Lossless {self.encoder.format_name} was smaller: {size_mb:.2f} MB"
        return (
            f"Compressed to {size_mb:.2f} MB at quality {outcome.quality} "
            f"({outcome.subsampling.label}, DSSIM {outcome.distortion:.6f})"
        )
