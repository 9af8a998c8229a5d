"""File-level recompression and batch queue management"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from .compression import (
    ChromaSubsampling,
    ChromaSubsamplingPolicy,
    CompressionEngine,
    CompressionResult,
    RecompressError,
    get_encoder,
    target_for_quality,
)
from .compression.search import StepObserver
from .config import CHROMA_CHOICES, RecompressConfig
from .formats import Format, decode, detect_format

logger = logging.getLogger(__name__)


def policy_for(output_format: Format, chroma_subsampling: str) -> ChromaSubsamplingPolicy:
    """
    Chroma policy for an output format and a setting name.

    Args:
        output_format: Format being written
        chroma_subsampling: auto, 444, 422 or 420

    Returns:
        Disabled for formats without chroma subsampling, otherwise the
        policy the setting names
    """
    if not output_format.supports_chroma_subsampling:
        return ChromaSubsamplingPolicy.disabled()
    if chroma_subsampling == 'auto':
        return ChromaSubsamplingPolicy.automatic()
    return ChromaSubsamplingPolicy.fixed(ChromaSubsampling.parse(chroma_subsampling))


@dataclass
class RecompressTask:
    """A single input file to recompress into an output file."""
    input_path: Path
    output_path: Path
    output_format: Optional[Format] = None  # None = from output extension
    quality: int = 85
    min_quality: int = 0
    max_quality: int = 100
    chroma_subsampling: str = 'auto'

    def __post_init__(self):
        """Validate task parameters."""
        self.input_path = Path(self.input_path)
        self.output_path = Path(self.output_path)

        if not 0 <= self.quality <= 100:
            raise ValueError(f"Quality must be 0-100, got {self.quality}")

        if not 0 <= self.min_quality <= self.max_quality <= 100:
            raise ValueError(
                f"Quality bounds must satisfy 0 <= min <= max <= 100, "
                f"got [{self.min_quality}, {self.max_quality}]"
            )

        self.chroma_subsampling = str(self.chroma_subsampling).lower().replace(':', '')
        if self.chroma_subsampling not in CHROMA_CHOICES:
            raise ValueError(
                f"chroma_subsampling must be one of {', '.join(CHROMA_CHOICES)}, "
                f"got {self.chroma_subsampling}"
            )

        if self.output_format is None:
            self.output_format = Format.from_path(self.output_path)
            if self.output_format is None:
                raise ValueError(
                    f"Cannot determine output format from {self.output_path.name}: "
                    f"use a known extension (jpeg, png or webp) or set the format explicitly"
                )

    @classmethod
    def from_config(
        cls,
        input_path: Union[str, Path],
        output_path: Union[str, Path],
        config: RecompressConfig,
        output_format: Optional[Format] = None,
    ) -> "RecompressTask":
        """Build a task from loaded settings."""
        return cls(
            input_path=input_path,
            output_path=output_path,
            output_format=output_format,
            quality=config.quality,
            min_quality=config.min_quality,
            max_quality=config.max_quality,
            chroma_subsampling=config.chroma_subsampling,
        )

    @property
    def target(self) -> float:
        """Target DSSIM for the task's nominal quality."""
        return target_for_quality(self.quality)


@dataclass
class ProcessOutcome:
    """What happened to one task.

    Attributes:
        output_path: File that was written
        input_size: Source file size in bytes
        output_size: Written file size in bytes
        kept_original: True when the source bytes were copied unchanged
        result: Compression result (its buffer may not be what was written)
    """
    output_path: Path
    input_size: int
    output_size: int
    kept_original: bool
    result: CompressionResult

    @property
    def size_ratio(self) -> float:
        if self.input_size == 0:
            return 0.0
        return self.output_size / self.input_size


class ImageProcessor:
    """Handles single-file and batch recompression"""

    def __init__(self, workers: int = 1):
        """
        Initialize processor with empty queue.

        Args:
            workers: Threads for per-mode searches
        """
        self.queue: List[RecompressTask] = []
        self.workers = workers

    def add_to_queue(self, task: RecompressTask) -> None:
        """Add task to processing queue."""
        self.queue.append(task)

    def remove_from_queue(self, index: int) -> None:
        """
        Remove task from queue by index.

        Args:
            index: Index of task to remove
        """
        if 0 <= index < len(self.queue):
            self.queue.pop(index)

    def clear_queue(self) -> None:
        """Clear all tasks from queue"""
        self.queue.clear()

    def get_queue_size(self) -> int:
        """Get number of tasks in queue"""
        return len(self.queue)

    def process_single(
        self,
        task: RecompressTask,
        observer: Optional[StepObserver] = None,
    ) -> ProcessOutcome:
        """
        Recompress one file.

        Args:
            task: RecompressTask to process
            observer: Optional per-probe progress callback

        Returns:
            ProcessOutcome describing the written file

        Raises:
            RecompressError: Input unreadable or compression failed
            OSError: Input or output file could not be accessed
        """
        input_buffer = task.input_path.read_bytes()
        input_format = detect_format(input_buffer)
        image = decode(input_buffer, input_format)

        logger.info(
            "%s: %s %dx%d -> %s, target DSSIM %.6f (quality %d)",
            task.input_path.name, input_format.value, image.width, image.height,
            task.output_format.value, task.target, task.quality,
        )

        encoder = get_encoder(task.output_format.value)
        engine = CompressionEngine(encoder, workers=self.workers)
        result = engine.compress_to_target(
            image,
            task.target,
            min_quality=task.min_quality,
            max_quality=task.max_quality,
            policy=policy_for(task.output_format, task.chroma_subsampling),
            observer=observer,
            original_size=len(input_buffer),
        )
        logger.info("%s", result.message)

        output_buffer, kept_original = self._accept(
            task, input_buffer, input_format, result
        )

        task.output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(task.output_path, 'wb') as f:
            f.write(output_buffer)

        return ProcessOutcome(
            output_path=task.output_path,
            input_size=len(input_buffer),
            output_size=len(output_buffer),
            kept_original=kept_original,
            result=result,
        )

    def _accept(
        self,
        task: RecompressTask,
        input_buffer: bytes,
        input_format: Format,
        result: CompressionResult,
    ) -> Tuple[bytes, bool]:
        """Decide between the compressed buffer and the source bytes.

        Returns:
            Tuple of (bytes to write, whether they are the source bytes)
        """
        if result.final_size_bytes <= len(input_buffer):
            return result.encoded_bytes, False

        if input_format is task.output_format:
            logger.warning(
                "Output would be larger than input, copying input to output..."
            )
            return input_buffer, True

        logger.warning(
            "Output is larger than input (%d > %d bytes) but formats differ, "
            "writing compressed output",
            result.final_size_bytes, len(input_buffer),
        )
        return result.encoded_bytes, False

    def process_batch(
        self,
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
        skip_existing: bool = False,
    ) -> Dict[str, list]:
        """
        Process all tasks in queue.

        Args:
            progress_callback: Optional callback function(current, total, filename)
                               Called after each task is processed
            skip_existing: If True, skip tasks whose output already exists

        Returns:
            Dict with 'success' (ProcessOutcome list), 'failed'
            ((path, error) list) and 'skipped' (count)
        """
        outcomes = []
        failed_files = []
        total = len(self.queue)
        skipped = 0

        for idx, task in enumerate(self.queue):
            if skip_existing and task.output_path.exists():
                skipped += 1
                if progress_callback:
                    progress_callback(idx + 1, total, f"Skipped: {task.input_path.name}")
                continue

            try:
                outcomes.append(self.process_single(task))
            except (RecompressError, OSError) as e:
                # Track failed files and continue processing others
                logger.error("%s: %s", task.input_path.name, e)
                failed_files.append((task.input_path, str(e)))
                if progress_callback:
                    progress_callback(idx + 1, total, f"ERROR: {task.input_path.name} - {e}")
                continue

            if progress_callback:
                progress_callback(idx + 1, total, task.input_path.name)

        return {
            'success': outcomes,
            'failed': failed_files,
            'skipped': skipped,
        }
