"""Image format detection and decoding"""

from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from .compression.errors import DecodeError

# Bytes needed to identify any supported format
MAGIC_LENGTH = 16

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'
JPEG_SIGNATURE = b'\xff\xd8\xff'


class Format(Enum):
    """Supported container formats."""
    JPEG = 'JPEG'
    PNG = 'PNG'
    WEBP = 'WEBP'

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def supports_chroma_subsampling(self) -> bool:
        return self is Format.JPEG

    @classmethod
    def from_magic(cls, header: bytes) -> Optional["Format"]:
        """
        Identify a format from the first bytes of a file.

        Args:
            header: At least the first 12 bytes of the file

        Returns:
            Format or None if the header is not recognised
        """
        if header.startswith(JPEG_SIGNATURE):
            return cls.JPEG
        if header.startswith(PNG_SIGNATURE):
            return cls.PNG
        if len(header) >= 12 and header[:4] == b'RIFF' and header[8:12] == b'WEBP':
            return cls.WEBP
        return None

    @classmethod
    def from_path(cls, filepath: Union[str, Path]) -> Optional["Format"]:
        """
        Identify a format from a file extension.

        Args:
            filepath: Path to check

        Returns:
            Format or None if extension is not supported
        """
        return _SUFFIXES.get(Path(filepath).suffix.lower())

    @classmethod
    def parse(cls, name: str) -> "Format":
        """Parse a format name such as ``jpeg``, ``jpg`` or ``webp``."""
        fmt = _SUFFIXES.get('.' + name.lower().lstrip('.'))
        if fmt is None:
            raise ValueError(f"Unknown format: {name}. Expected jpeg, png or webp")
        return fmt


_EXTENSIONS = {
    Format.JPEG: '.jpg',
    Format.PNG: '.png',
    Format.WEBP: '.webp',
}

_SUFFIXES = {
    '.jpg': Format.JPEG,
    '.jpeg': Format.JPEG,
    '.png': Format.PNG,
    '.webp': Format.WEBP,
}


def detect_format(buffer: bytes) -> Format:
    """Format of ``buffer`` by magic number, DecodeError if unknown."""
    fmt = Format.from_magic(buffer[:MAGIC_LENGTH])
    if fmt is None:
        raise DecodeError("Unknown input format, expected jpeg, png or webp")
    return fmt


def decode(buffer: bytes, fmt: Optional[Format] = None) -> Image.Image:
    """
    Decode image bytes into a fully loaded PIL Image.

    Args:
        buffer: Encoded image
        fmt: Expected format, detected from the bytes if omitted

    Returns:
        Decoded image

    Raises:
        DecodeError: Bytes are not a readable image of the expected format
    """
    if fmt is None:
        fmt = detect_format(buffer)

    try:
        with Image.open(BytesIO(buffer), formats=[fmt.value]) as img:
            img.load()
            # Detach from the BytesIO so the image outlives the context
            return img.copy()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise DecodeError(f"Failed to read {fmt.value} input: {e}") from e
