"""Command-line interface.

Usage:
    recompress photo.png photo.jpg
    recompress in.jpg out.webp --quality 80 --min 40 --max 95
    recompress in.jpg out.jpg --chroma-subsampling 420 --workers 3
"""

import argparse
import logging
from dataclasses import replace
from typing import List, Optional

from .compression import DEFAULT_QUALITY, RecompressError
from .config import CHROMA_CHOICES, load_config
from .formats import Format
from .logger import close_logging, setup_logging
from .processor import ImageProcessor, RecompressTask
from .progress import ConsoleProgress

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recompress",
        description="Recompress an image to the smallest file that keeps a "
                    "target structural similarity to the original.",
        epilog="Examples:\n"
               "  recompress photo.png photo.jpg\n"
               "  recompress in.jpg out.webp --quality 80\n",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", help="Input image (jpeg, png or webp)")
    parser.add_argument("output", help="Output image path")
    parser.add_argument(
        "-q", "--quality",
        type=int,
        help=f"Nominal quality whose typical SSIM is the target (default {DEFAULT_QUALITY})",
    )
    parser.add_argument("--min", dest="min_quality", type=int, help="Minimum quality to try")
    parser.add_argument("--max", dest="max_quality", type=int, help="Maximum quality to try")
    parser.add_argument(
        "--output-format",
        choices=["jpeg", "jpg", "png", "webp"],
        help="Output format (default: from output extension)",
    )
    parser.add_argument(
        "--chroma-subsampling",
        choices=list(CHROMA_CHOICES),
        help="Chroma subsampling for JPEG output (default auto)",
    )
    parser.add_argument("--workers", type=int, help="Threads for chroma mode searches")
    parser.add_argument("--config", help="INI config file (default ./recompress.ini)")
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("--quiet", action="store_true", help="Do not print search progress")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI, returning the process exit code"""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        overrides = {
            key: value
            for key, value in (
                ('quality', args.quality),
                ('min_quality', args.min_quality),
                ('max_quality', args.max_quality),
                ('chroma_subsampling', args.chroma_subsampling),
                ('workers', args.workers),
                ('log_file', args.log_file),
            )
            if value is not None
        }
        if args.verbose:
            overrides['log_level'] = 'DEBUG'
        config = replace(config, **overrides)
    except RecompressError as e:
        setup_logging()
        logger.error("%s", e)
        close_logging()
        return 1

    setup_logging(config.log_level, config.log_file)
    try:
        output_format = Format.parse(args.output_format) if args.output_format else None
        task = RecompressTask.from_config(args.input, args.output, config, output_format)

        observer = None if args.quiet else ConsoleProgress()
        outcome = ImageProcessor(workers=config.workers).process_single(task, observer)

        logger.info(
            "Wrote %s: %d bytes (%d%% of original)%s",
            outcome.output_path, outcome.output_size, int(outcome.size_ratio * 100),
            ", input kept" if outcome.kept_original else "",
        )
        return 0
    except (RecompressError, ValueError, OSError) as e:
        logger.error("%s", e)
        return 1
    finally:
        close_logging()
