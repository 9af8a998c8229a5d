from io import BytesIO

import pytest
from PIL import Image

from recompress.compression import DecodeError
from recompress.formats import Format, decode, detect_format


def encoded(image, format_name):
    buffer = BytesIO()
    image.save(buffer, format=format_name)
    return buffer.getvalue()


@pytest.mark.parametrize("fmt", list(Format))
def test_from_magic(photo_image, fmt):
    data = encoded(photo_image, fmt.value)

    assert Format.from_magic(data[:16]) is fmt
    assert detect_format(data) is fmt


def test_from_magic_unknown():
    assert Format.from_magic(b'GIF89a') is None
    assert Format.from_magic(b'RIFF\x00\x00\x00\x00WAVE') is None
    assert Format.from_magic(b'') is None


@pytest.mark.parametrize("name,expected", [
    ("photo.jpg", Format.JPEG),
    ("photo.JPEG", Format.JPEG),
    ("dir/photo.png", Format.PNG),
    ("photo.WebP", Format.WEBP),
    ("photo.gif", None),
    ("photo", None),
])
def test_from_path(name, expected):
    assert Format.from_path(name) is expected


def test_parse():
    assert Format.parse("jpg") is Format.JPEG
    assert Format.parse("WEBP") is Format.WEBP
    with pytest.raises(ValueError):
        Format.parse("avif")


def test_only_jpeg_supports_chroma_subsampling():
    assert Format.JPEG.supports_chroma_subsampling
    assert not Format.PNG.supports_chroma_subsampling
    assert not Format.WEBP.supports_chroma_subsampling


@pytest.mark.parametrize("fmt", list(Format))
def test_decode(photo_image, fmt):
    image = decode(encoded(photo_image, fmt.value))

    assert image.size == photo_image.size


def test_decode_unknown_format():
    with pytest.raises(DecodeError, match="Unknown input format"):
        decode(b'hello world, not an image')


def test_decode_corrupt(photo_image):
    data = encoded(photo_image, 'PNG')

    with pytest.raises(DecodeError):
        decode(data[:40], Format.PNG)


def test_decode_wrong_declared_format(photo_image):
    with pytest.raises(DecodeError):
        decode(encoded(photo_image, 'PNG'), Format.JPEG)
