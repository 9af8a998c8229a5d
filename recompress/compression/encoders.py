"""Format-specific image encoders built on Pillow.

Each encoder turns an image plus a quality level into bytes. Pillow
failures are reported as EncodeError so callers see a single error type.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from io import BytesIO
from typing import Dict, List, Optional

from PIL import Image

from .errors import EncodeError
from .result import ChromaSubsampling


@dataclass
class EncoderOptions:
    """Options for format-specific encoding.

    Attributes:
        quality: Compression quality (0-100)
        chroma_subsampling: JPEG chroma mode
        lossless: Request lossless output (WebP only)
        effort: Encoder effort level (WebP method 0-6)
    """
    quality: int = 85
    chroma_subsampling: ChromaSubsampling = ChromaSubsampling.S444
    lossless: bool = False
    effort: int = 4

    def __post_init__(self):
        """Validate options."""
        if not 0 <= self.quality <= 100:
            raise ValueError(f"quality must be 0-100, got {self.quality}")
        self.chroma_subsampling = ChromaSubsampling(self.chroma_subsampling)
        if not 0 <= self.effort <= 6:
            raise ValueError(f"effort must be 0-6, got {self.effort}")


class BaseEncoder(ABC):
    """Abstract base class for format-specific encoders."""

    format_name: str
    file_extension: str
    supports_chroma_subsampling: bool = False
    supports_lossless: bool = False

    @abstractmethod
    def _save(self, image: Image.Image, buffer: BytesIO, options: EncoderOptions) -> None:
        """Write ``image`` into ``buffer`` with Pillow."""

    def encode(self, image: Image.Image, options: EncoderOptions) -> bytes:
        """Encode image to bytes.

        Raises:
            EncodeError: Options not representable by the format, or Pillow failed
        """
        if options.lossless and not self.supports_lossless:
            raise EncodeError(f"{self.format_name} has no lossless mode")
        if (options.chroma_subsampling is not ChromaSubsampling.S444
                and not self.supports_chroma_subsampling):
            raise EncodeError(
                f"{self.format_name} cannot encode chroma subsampling "
                f"{options.chroma_subsampling.label}"
            )

        buffer = BytesIO()
        try:
            self._save(self.prepare_image(image), buffer, options)
        except (OSError, ValueError) as e:
            raise EncodeError(
                f"{self.format_name} encoding failed at quality {options.quality}: {e}"
            ) from e
        return buffer.getvalue()

    def encode_lossy(
        self,
        image: Image.Image,
        quality: int,
        subsampling: ChromaSubsampling = ChromaSubsampling.S444,
    ) -> bytes:
        """Lossy encode at a quality level, the search's encode callback."""
        try:
            options = EncoderOptions(quality=quality, chroma_subsampling=subsampling)
        except ValueError as e:
            raise EncodeError(str(e)) from e
        return self.encode(image, options)

    def encode_lossless(self, image: Image.Image) -> bytes:
        """Lossless encode, for formats that have one."""
        return self.encode(image, EncoderOptions(quality=100, lossless=True))

    def prepare_image(self, image: Image.Image) -> Image.Image:
        """Prepare image for encoding (mode conversion, etc)."""
        return image


class JpegEncoder(BaseEncoder):
    """JPEG encoder with selectable chroma subsampling."""

    format_name = "JPEG"
    file_extension = ".jpg"
    supports_chroma_subsampling = True

    def _save(self, image, buffer, options):
        image.save(
            buffer,
            format='JPEG',
            quality=options.quality,
            optimize=True,
            subsampling=int(options.chroma_subsampling),
        )

    def prepare_image(self, image: Image.Image) -> Image.Image:
        """Convert to RGB for JPEG."""
        if image.mode in ('RGBA', 'LA'):
            # Composite on white background
            rgba = image.convert('RGBA')
            background = Image.new('RGB', rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[3])
            return background
        elif image.mode != 'RGB':
            return image.convert('RGB')
        return image


class PngEncoder(BaseEncoder):
    """Lossy PNG via palette quantization.

    Quality maps linearly onto the palette size, 2 colours at 0 up to the
    full 256 at 100.
    """

    format_name = "PNG"
    file_extension = ".png"

    MIN_COLORS = 2
    MAX_COLORS = 256

    @classmethod
    def colors_for_quality(cls, quality: int) -> int:
        span = cls.MAX_COLORS - cls.MIN_COLORS
        return cls.MIN_COLORS + round(span * quality / 100)

    def _save(self, image, buffer, options):
        quantized = image.quantize(
            colors=self.colors_for_quality(options.quality),
            method=Image.Quantize.FASTOCTREE,
            dither=Image.Dither.FLOYDSTEINBERG,
        )
        quantized.save(buffer, format='PNG', optimize=True)

    def prepare_image(self, image: Image.Image) -> Image.Image:
        """FASTOCTREE handles RGB and RGBA only."""
        if image.mode in ('RGB', 'RGBA'):
            return image
        if image.mode in ('LA', 'PA') or 'transparency' in image.info:
            return image.convert('RGBA')
        return image.convert('RGB')


class WebpEncoder(BaseEncoder):
    """WebP encoder with lossy and lossless support."""

    format_name = "WEBP"
    file_extension = ".webp"
    supports_lossless = True

    def _save(self, image, buffer, options):
        image.save(
            buffer,
            format='WEBP',
            quality=options.quality,
            lossless=options.lossless,
            method=options.effort,
        )

    def prepare_image(self, image: Image.Image) -> Image.Image:
        """Prepare image for WebP encoding."""
        if image.mode == 'P':
            # Check if palette has transparency
            if 'transparency' in image.info:
                return image.convert('RGBA')
            return image.convert('RGB')
        elif image.mode == 'LA':
            return image.convert('RGBA')
        elif image.mode not in ('RGB', 'RGBA'):
            return image.convert('RGB')
        return image


# Encoder registry
_ENCODERS: Dict[str, BaseEncoder] = {
    'JPEG': JpegEncoder(),
    'PNG': PngEncoder(),
    'WEBP': WebpEncoder(),
}


def get_encoder(format_name: str) -> Optional[BaseEncoder]:
    """Get encoder for format.

    Args:
        format_name: Format name (JPEG, PNG, WEBP), case-insensitive

    Returns:
        Encoder instance or None if format not supported
    """
    return _ENCODERS.get(format_name.upper())


def get_available_formats() -> List[str]:
    """Get list of available format names."""
    return list(_ENCODERS.keys())
