"""Console rendering of quality search progress"""

from typing import Optional

from rich.console import Console

from .compression.result import ChromaSubsampling, SearchStep

# Quality points per bar cell; 101 qualities fit in 26 cells
QUALITY_PER_CELL = 4
BAR_CELLS = 100 // QUALITY_PER_CELL + 1


def render_range_bar(quality: int, min_quality: int, max_quality: int) -> str:
    """
    Draw the current search window.

    ``O`` marks the probed quality, ``[`` and ``]`` the bounds, ``-`` the
    inside of the window and ``|`` the ends of the 0-100 scale.
    """
    probe = quality // QUALITY_PER_CELL
    low = min_quality // QUALITY_PER_CELL
    high = max_quality // QUALITY_PER_CELL

    cells = []
    for x in range(BAR_CELLS):
        if x == probe:
            cells.append('O')
        elif x == 0 or x == BAR_CELLS - 1:
            cells.append('|')
        elif x == low:
            cells.append('[')
        elif x == high:
            cells.append(']')
        elif low < x < high:
            cells.append('-')
        else:
            cells.append(' ')
    return ''.join(cells)


def format_step(step: SearchStep) -> str:
    """One progress line for a search probe"""
    if step.lossless:
        line = '|' + ' ' * (BAR_CELLS - 2) + '|' + f"    lossless  {step.distortion:.6f} SSIM"
    else:
        bar = render_range_bar(step.quality, step.min_quality, step.max_quality)
        line = f"{bar} {step.quality:>3} quality  {step.distortion:.6f} SSIM"

    if step.size_ratio is not None:
        line += f"  {int(step.size_ratio * 100):>3} % of original"
    else:
        line += f"  {step.size_bytes} bytes"
    return line


class ConsoleProgress:
    """Search observer that prints one line per probe to stderr"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True, highlight=False)
        self._mode: Optional[ChromaSubsampling] = None

    def __call__(self, step: SearchStep) -> None:
        if step.subsampling is not None and step.subsampling != self._mode:
            self._mode = step.subsampling
            self.console.print(f"chroma subsampling: {step.subsampling.label}", markup=False)
        self.console.print(format_step(step), markup=False)
