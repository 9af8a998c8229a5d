from io import StringIO

from rich.console import Console

from recompress.compression import ChromaSubsampling, SearchStep
from recompress.progress import ConsoleProgress, format_step, render_range_bar


def step(quality, low, high, mode=ChromaSubsampling.S444, **kwargs):
    values = dict(
        subsampling=mode,
        quality=quality,
        min_quality=low,
        max_quality=high,
        distortion=0.0157,
        size_bytes=300,
        original_size=1000,
    )
    values.update(kwargs)
    return SearchStep(**values)


def test_full_range_bar():
    assert render_range_bar(50, 0, 100) == '|' + '-' * 11 + 'O' + '-' * 12 + '|'


def test_narrowed_bar():
    assert render_range_bar(24, 0, 49) == '|-----O-----]' + ' ' * 12 + '|'
    assert render_range_bar(37, 25, 49) == '|' + ' ' * 5 + '[--O--]' + ' ' * 12 + '|'


def test_bar_width():
    for quality in (0, 13, 99, 100):
        assert len(render_range_bar(quality, 0, 100)) == 26


def test_format_step():
    line = format_step(step(50, 0, 100))

    assert line.endswith(" 50 quality  0.015700 SSIM   30 % of original")


def test_format_lossless_step():
    line = format_step(step(None, 0, 100, mode=None, distortion=0.0, lossless=True))

    assert line == '|' + ' ' * 24 + '|    lossless  0.000000 SSIM   30 % of original'


def test_format_without_original_size():
    assert format_step(step(50, 0, 100, original_size=None)).endswith("300 bytes")


def test_console_progress_prints_mode_headers():
    output = StringIO()
    progress = ConsoleProgress(Console(file=output, width=120))

    progress(step(50, 0, 100))
    progress(step(24, 0, 49))
    progress(step(50, 0, 100, mode=ChromaSubsampling.S420))

    lines = output.getvalue().splitlines()
    assert lines[0] == "chroma subsampling: 4:4:4"
    assert lines[3] == "chroma subsampling: 4:2:0"
    assert len(lines) == 5
