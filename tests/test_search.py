import math

import pytest

from recompress.compression import (
    ChromaSubsampling,
    ComparisonError,
    EncodeError,
    find_quality,
)

S444 = ChromaSubsampling.S444


def linear(quality, mode):
    return (100 - quality) / 1000.0


def test_converges_on_exact_target(make_codec, blank_image):
    codec = make_codec(linear)

    outcome = find_quality(blank_image, codec, codec.encode, 0.05, 0, 100, S444)

    assert outcome.quality == 50
    assert outcome.distortion == 0.05
    assert outcome.subsampling is S444
    assert len(codec.calls) <= 7
    assert outcome.iterations == len(codec.calls)


def test_returns_closest_probe_not_last(make_codec, blank_image):
    codec = make_codec(linear)

    outcome = find_quality(blank_image, codec, codec.encode, 0.05, 0, 100, S444)

    assert codec.qualities()[-1] != outcome.quality
    assert codec.qualities()[-1] == 49


def test_single_quality_range_probes_once(make_codec, blank_image):
    codec = make_codec(linear)

    outcome = find_quality(blank_image, codec, codec.encode, 0.01, 85, 85, S444)

    assert codec.qualities() == [85]
    assert outcome.quality == 85
    assert outcome.buffer == codec.encode(blank_image, 85, S444)


@pytest.mark.parametrize("low", [0, 3, 17, 40, 99, 100])
@pytest.mark.parametrize("high_offset", [0, 1, 2, 7, 33, 100])
@pytest.mark.parametrize("target", [0.0, 0.02, 0.05, 0.2])
def test_call_count_and_range(make_codec, blank_image, low, high_offset, target):
    high = min(100, low + high_offset)
    codec = make_codec(linear)

    find_quality(blank_image, codec, codec.encode, target, low, high, S444)

    qualities = codec.qualities()
    assert len(qualities) <= math.ceil(math.log2(high - low + 2))
    assert len(set(qualities)) == len(qualities)
    assert all(low <= q <= high for q in qualities)


@pytest.mark.parametrize("target", [0.0, 0.0004, 0.013, 0.0157, 0.1, 0.3, 0.7])
@pytest.mark.parametrize("low,high", [(0, 100), (20, 90), (50, 51), (0, 10)])
def test_monotonic_encoder_matches_linear_scan(make_codec, blank_image, target, low, high):
    def decaying(quality, mode):
        return 0.6 * math.exp(-quality / 18.0)

    codec = make_codec(decaying)

    outcome = find_quality(blank_image, codec, codec.encode, target, low, high, S444)

    best_distance = min(abs(decaying(q, S444) - target) for q in range(low, high + 1))
    assert abs(outcome.distortion - target) == best_distance


def test_stops_at_quality_zero(make_codec, blank_image):
    codec = make_codec(lambda quality, mode: 0.0)

    outcome = find_quality(blank_image, codec, codec.encode, 0.5, 0, 100, S444)

    assert codec.qualities() == [50, 24, 11, 5, 2, 0]
    assert min(codec.qualities()) == 0
    # Every probe ties at distance 0.5, so the first one is kept
    assert outcome.quality == 50


def test_quality_zero_above_target_moves_up(make_codec, blank_image):
    codec = make_codec(lambda quality, mode: 1.0 if quality == 0 else 0.0)

    outcome = find_quality(blank_image, codec, codec.encode, 0.5, 0, 1, S444)

    assert codec.qualities() == [0, 1]
    assert outcome.quality == 0


def test_never_exceeds_hundred(make_codec, blank_image):
    codec = make_codec(lambda quality, mode: 1.0)

    outcome = find_quality(blank_image, codec, codec.encode, 0.0, 0, 100, S444)

    assert max(codec.qualities()) == 100
    assert outcome.quality == 50


def test_deterministic(make_codec, blank_image):
    first = find_quality(blank_image, make_codec(linear), make_codec(linear).encode, 0.033, 0, 100, S444)
    codec = make_codec(linear)
    second = find_quality(blank_image, codec, codec.encode, 0.033, 0, 100, S444)

    assert first == second


def test_encode_error_propagates(make_codec, blank_image):
    codec = make_codec(linear)

    def failing(image, quality, subsampling):
        if quality < 50:
            raise EncodeError(f"cannot encode at {quality}")
        return codec.encode(image, quality, subsampling)

    with pytest.raises(EncodeError):
        find_quality(blank_image, codec, failing, 0.5, 0, 100, S444)


def test_comparison_error_propagates(make_codec, blank_image):
    codec = make_codec(linear)

    class BrokenComparator:
        def compare(self, buffer):
            raise ComparisonError("corrupt candidate")

    with pytest.raises(ComparisonError):
        find_quality(blank_image, BrokenComparator(), codec.encode, 0.05, 0, 100, S444)
    assert len(codec.calls) == 1


def test_observer_sees_every_probe(make_codec, blank_image):
    codec = make_codec(linear)
    steps = []

    find_quality(
        blank_image, codec, codec.encode, 0.05, 0, 100, S444,
        observer=steps.append, original_size=200,
    )

    assert [s.quality for s in steps] == codec.qualities()
    first = steps[0]
    assert (first.min_quality, first.max_quality) == (0, 100)
    assert first.size_ratio == pytest.approx(first.size_bytes / 200)
    assert (steps[1].min_quality, steps[1].max_quality) == (0, 49)


def test_rejects_invalid_bounds(make_codec, blank_image):
    codec = make_codec(linear)

    with pytest.raises(ValueError):
        find_quality(blank_image, codec, codec.encode, 0.05, 60, 40, S444)
    with pytest.raises(ValueError):
        find_quality(blank_image, codec, codec.encode, 0.05, 0, 101, S444)
