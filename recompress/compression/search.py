"""Binary search over encoder quality and chroma subsampling selection."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Protocol

from PIL import Image

from .result import (
    ChromaSubsampling,
    ChromaSubsamplingPolicy,
    CompressionAttempt,
    PolicyKind,
    SearchOutcome,
    SearchStep,
    is_closer,
)

logger = logging.getLogger(__name__)

LossyEncodeFn = Callable[[Image.Image, int, ChromaSubsampling], bytes]
StepObserver = Callable[[SearchStep], None]

# Highest fidelity first; earlier modes win ties.
AUTOMATIC_MODES = [
    ChromaSubsampling.S444,
    ChromaSubsampling.S422,
    ChromaSubsampling.S420,
]


class Comparator(Protocol):
    def compare(self, buffer: bytes) -> float:
        ...


def find_quality(
    image: Image.Image,
    comparator: Comparator,
    encode: LossyEncodeFn,
    target: float,
    min_quality: int,
    max_quality: int,
    subsampling: ChromaSubsampling,
    observer: Optional[StepObserver] = None,
    original_size: Optional[int] = None,
) -> SearchOutcome:
    """Binary search for the quality whose distortion is closest to target.

    At most ceil(log2(max - min + 2)) encode/compare calls are made, so a
    full 0-100 range needs 7. Late steps probe neighbouring qualities whose
    distortion is not necessarily monotonic, so the closest probe seen is
    returned rather than the last one.

    Args:
        image: Source image, never modified
        comparator: Object with ``compare(buffer) -> distortion``
        encode: ``encode(image, quality, subsampling) -> bytes``
        target: Distortion to aim for
        min_quality: Lowest quality to try (0-100)
        max_quality: Highest quality to try (0-100)
        subsampling: Chroma mode passed to every encode call
        observer: Optional callback receiving a SearchStep per probe
        original_size: Source file size, only used for SearchStep ratios

    Returns:
        The closest SearchOutcome found

    Raises:
        EncodeError: The encoder failed for some quality
        ComparisonError: A candidate buffer could not be compared
    """
    attempt = CompressionAttempt(min_quality, max_quality, target)

    while not attempt.terminated:
        low, high = attempt.min_quality, attempt.max_quality
        quality = attempt.next_quality()

        buffer = encode(image, quality, subsampling)
        distortion = comparator.compare(buffer)

        logger.debug(
            "%s q=%3d [%d, %d] dssim=%.6f size=%d",
            subsampling.label, quality, low, high, distortion, len(buffer),
        )
        if observer is not None:
            observer(SearchStep(
                subsampling=subsampling,
                quality=quality,
                min_quality=low,
                max_quality=high,
                distortion=distortion,
                size_bytes=len(buffer),
                original_size=original_size,
            ))

        attempt.record(SearchOutcome(
            distortion=distortion,
            buffer=buffer,
            quality=quality,
            subsampling=subsampling,
        ))
        attempt.step(quality, distortion)

    best = attempt.best
    return SearchOutcome(
        distortion=best.distortion,
        buffer=best.buffer,
        quality=best.quality,
        subsampling=best.subsampling,
        iterations=attempt.iterations,
    )


def expand_policy(policy: ChromaSubsamplingPolicy) -> List[ChromaSubsampling]:
    """Ordered list of chroma modes a policy asks to try."""
    if policy.kind is PolicyKind.AUTOMATIC:
        return list(AUTOMATIC_MODES)
    if policy.kind is PolicyKind.FIXED:
        return [policy.mode]
    return [ChromaSubsampling.S444]


def select_best(
    image: Image.Image,
    comparator: Comparator,
    encode: LossyEncodeFn,
    target: float,
    min_quality: int,
    max_quality: int,
    policy: ChromaSubsamplingPolicy,
    observer: Optional[StepObserver] = None,
    original_size: Optional[int] = None,
    workers: int = 1,
) -> SearchOutcome:
    """Run one quality search per chroma mode and keep the closest result.

    With ``workers > 1`` the per-mode searches run on a thread pool. The
    merge still walks the modes in policy order, so the outcome is the same
    as a sequential run.

    Returns:
        The closest SearchOutcome across all modes. ``iterations`` is the
        total over every search.

    Raises:
        EncodeError, ComparisonError: The first failing mode's error
    """
    modes = expand_policy(policy)

    def run(mode: ChromaSubsampling) -> SearchOutcome:
        logger.debug("chroma subsampling: %s", mode.label)
        return find_quality(
            image, comparator, encode, target,
            min_quality, max_quality, mode,
            observer=observer, original_size=original_size,
        )

    if workers > 1 and len(modes) > 1:
        with ThreadPoolExecutor(max_workers=min(workers, len(modes))) as pool:
            futures = [pool.submit(run, mode) for mode in modes]
            # Errors surface in mode order; the pool waits for every search.
            outcomes = [future.result() for future in futures]
    else:
        outcomes = [run(mode) for mode in modes]

    best: Optional[SearchOutcome] = None
    total_iterations = 0
    for outcome in outcomes:
        total_iterations += outcome.iterations
        logger.info(
            "%s best: q=%d dssim=%.6f size=%d",
            outcome.subsampling.label, outcome.quality,
            outcome.distortion, outcome.size_bytes,
        )
        if is_closer(outcome.distortion, best, target):
            best = outcome

    return SearchOutcome(
        distortion=best.distortion,
        buffer=best.buffer,
        quality=best.quality,
        subsampling=best.subsampling,
        iterations=total_iterations,
    )
