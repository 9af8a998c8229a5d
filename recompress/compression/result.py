"""Search state and result dataclasses shared by the compression core."""

import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple


class ChromaSubsampling(IntEnum):
    """Chroma subsampling mode.

    Values match Pillow's JPEG ``subsampling`` argument.
    """
    S444 = 0
    S422 = 1
    S420 = 2

    @property
    def label(self) -> str:
        return CHROMA_LABELS[self]

    @classmethod
    def parse(cls, value: str) -> "ChromaSubsampling":
        """Parse ``"444"``, ``"4:2:2"`` and similar spellings."""
        digits = value.replace(':', '').strip()
        for mode in cls:
            if mode.label.replace(':', '') == digits:
                return mode
        raise ValueError(f"Unknown chroma subsampling: {value!r}")


CHROMA_LABELS = {
    ChromaSubsampling.S444: "4:4:4",
    ChromaSubsampling.S422: "4:2:2",
    ChromaSubsampling.S420: "4:2:0",
}


class PolicyKind(Enum):
    AUTOMATIC = "auto"
    FIXED = "fixed"
    DISABLED = "disabled"


@dataclass(frozen=True)
class ChromaSubsamplingPolicy:
    """Which chroma subsampling modes a compression run may try.

    Attributes:
        kind: Automatic (all modes), Fixed (one mode) or Disabled (4:4:4 only)
        mode: The fixed mode, only set when kind is FIXED
    """
    kind: PolicyKind
    mode: Optional[ChromaSubsampling] = None

    def __post_init__(self):
        if self.kind is PolicyKind.FIXED and self.mode is None:
            raise ValueError("Fixed chroma subsampling policy requires a mode")
        if self.kind is not PolicyKind.FIXED and self.mode is not None:
            raise ValueError(f"{self.kind.value} policy does not take a mode")

    @classmethod
    def automatic(cls) -> "ChromaSubsamplingPolicy":
        return cls(PolicyKind.AUTOMATIC)

    @classmethod
    def fixed(cls, mode: ChromaSubsampling) -> "ChromaSubsamplingPolicy":
        return cls(PolicyKind.FIXED, ChromaSubsampling(mode))

    @classmethod
    def disabled(cls) -> "ChromaSubsamplingPolicy":
        return cls(PolicyKind.DISABLED)


def distance_to_target(distortion: float, target: float) -> float:
    """Absolute distance between a distortion score and the target."""
    return abs(distortion - target)


def is_closer(distortion: float, best: Optional["SearchOutcome"], target: float) -> bool:
    """True when ``distortion`` beats ``best``.

    Ties keep the existing best, so the first candidate found wins.
    """
    if best is None:
        return True
    return distance_to_target(distortion, target) < distance_to_target(best.distortion, target)


@dataclass(frozen=True)
class SearchOutcome:
    """An encoded candidate and the distortion it produced.

    Attributes:
        distortion: DSSIM of the buffer against the original (0 = identical)
        buffer: Encoded image bytes
        quality: Quality level used, None for lossless output
        subsampling: Chroma mode used, None for lossless output
        lossless: True when produced by a lossless encoder
        iterations: Encode/compare calls spent by the search that found it
    """
    distortion: float
    buffer: bytes
    quality: Optional[int] = None
    subsampling: Optional[ChromaSubsampling] = None
    lossless: bool = False
    iterations: int = 0

    @property
    def size_bytes(self) -> int:
        return len(self.buffer)


@dataclass
class CompressionAttempt:
    """Mutable state of one binary search over quality levels.

    ``min_quality`` may exceed ``max_quality`` only once the search is done.
    """
    min_quality: int
    max_quality: int
    target: float
    best: Optional[SearchOutcome] = None
    iterations: int = 0
    terminated: bool = False

    def __post_init__(self):
        if not 0 <= self.min_quality <= self.max_quality <= 100:
            raise ValueError(
                f"quality bounds must satisfy 0 <= min <= max <= 100, "
                f"got [{self.min_quality}, {self.max_quality}]"
            )

    @property
    def best_distortion(self) -> float:
        return self.best.distortion if self.best is not None else math.inf

    def next_quality(self) -> int:
        return (self.min_quality + self.max_quality) // 2

    def record(self, outcome: SearchOutcome) -> bool:
        """Count a probe and keep it if it is the closest so far."""
        self.iterations += 1
        if is_closer(outcome.distortion, self.best, self.target):
            self.best = outcome
            return True
        return False

    def step(self, quality: int, distortion: float) -> None:
        """Narrow the bounds after probing ``quality``."""
        if distortion > self.target:
            self.min_quality = quality + 1
        elif quality == 0:
            # Nothing below 0 to try.
            self.terminated = True
            return
        else:
            self.max_quality = quality - 1

        if self.min_quality > self.max_quality:
            self.terminated = True


@dataclass(frozen=True)
class SearchStep:
    """One probe of the search, reported to progress observers.

    Attributes:
        subsampling: Chroma mode being searched (None for the lossless probe)
        quality: Quality probed (None for the lossless probe)
        min_quality: Lower bound before the probe
        max_quality: Upper bound before the probe
        distortion: DSSIM of the probe
        size_bytes: Encoded size of the probe
        original_size: Size of the source file, if known
        lossless: True for the lossless comparison probe
    """
    subsampling: Optional[ChromaSubsampling]
    quality: Optional[int]
    min_quality: int
    max_quality: int
    distortion: float
    size_bytes: int
    original_size: Optional[int] = None
    lossless: bool = False

    @property
    def size_ratio(self) -> Optional[float]:
        """Encoded size relative to the original file, if known."""
        if not self.original_size:
            return None
        return self.size_bytes / self.original_size


@dataclass
class CompressionResult:
    """Result of a compression run with detailed feedback.

    Attributes:
        encoded_bytes: The chosen output buffer
        final_size_bytes: Size of the chosen buffer
        distortion: DSSIM of the chosen buffer (0.0 for lossless)
        target_distortion: Distortion the search aimed for
        format_used: Format name (JPEG, PNG, WEBP)
        dimensions: Image dimensions (width, height)
        quality_used: Quality of the chosen lossy buffer, None if lossless
        subsampling_used: Chroma mode of the chosen lossy buffer
        lossless: True when the lossless buffer won on size
        iterations: Total encode/compare calls across all searches
        encoding_time_ms: Wall time of the run in milliseconds
        message: Human-readable status message
    """
    encoded_bytes: bytes
    final_size_bytes: int
    distortion: float
    target_distortion: float
    format_used: str
    dimensions: Tuple[int, int]
    quality_used: Optional[int] = None
    subsampling_used: Optional[ChromaSubsampling] = None
    lossless: bool = False
    iterations: int = 0
    encoding_time_ms: int = 0
    message: str = ""

    @property
    def final_size_mb(self) -> float:
        """Get final size in megabytes."""
        return self.final_size_bytes / (1024 * 1024)
