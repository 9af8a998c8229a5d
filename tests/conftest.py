import threading

import numpy as np
import pytest
from PIL import Image

from recompress.compression import ChromaSubsampling


class SyntheticCodec:
    """Encoder and comparator pair driven by a distortion function.

    Buffers carry their mode and quality so ``compare`` can look the
    distortion up again; ``size_fn`` pads them to a chosen length.
    """

    def __init__(self, distortion_fn, size_fn=None):
        self.distortion_fn = distortion_fn
        self.size_fn = size_fn or (lambda quality, mode: quality)
        self.calls = []
        self._lock = threading.Lock()

    def encode(self, image, quality, subsampling):
        with self._lock:
            self.calls.append((quality, subsampling))
        header = f"{int(subsampling)}:{quality}:".encode()
        return header + b'x' * self.size_fn(quality, subsampling)

    def compare(self, buffer):
        mode, quality, _ = buffer.split(b':', 2)
        return self.distortion_fn(int(quality), ChromaSubsampling(int(mode)))

    def qualities(self, mode=None):
        return [q for q, m in self.calls if mode is None or m == mode]


@pytest.fixture
def make_codec():
    return SyntheticCodec


@pytest.fixture
def blank_image():
    return Image.new('RGB', (16, 16), (128, 128, 128))


@pytest.fixture
def photo_image():
    """Smooth gradient with noise, compresses like a small photo."""
    rng = np.random.default_rng(1234)
    y, x = np.mgrid[0:64, 0:64]
    base = np.stack([x * 4, y * 4, (x + y) * 2], axis=-1).astype(np.float64)
    noisy = np.clip(base + rng.normal(0, 12, base.shape), 0, 255).astype(np.uint8)
    return Image.fromarray(noisy, 'RGB')


@pytest.fixture
def flat_image():
    """Few flat colour blocks, where lossless output is tiny."""
    img = Image.new('RGB', (64, 64), (255, 255, 255))
    img.paste((200, 30, 30), (0, 0, 32, 32))
    img.paste((30, 30, 200), (32, 32, 64, 64))
    return img
