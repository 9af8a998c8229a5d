"""
Settings for recompress, loaded from an INI file
"""

from configparser import ConfigParser, Error as ConfigParserError
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .compression.errors import ConfigError
from .compression.profile import DEFAULT_QUALITY

# Config file looked up in the working directory when none is given
CONFIG_FILENAME = "recompress.ini"

CHROMA_CHOICES = ('auto', '444', '422', '420')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')


@dataclass
class RecompressConfig:
    """Compression and logging settings.

    Attributes:
        quality: Nominal quality whose typical distortion is the target
        min_quality: Lowest quality the search may use
        max_quality: Highest quality the search may use
        chroma_subsampling: auto, 444, 422 or 420
        workers: Threads for per-mode searches
        log_level: Logging level name
        log_file: Optional log file path
    """
    quality: int = DEFAULT_QUALITY
    min_quality: int = 0
    max_quality: int = 100
    chroma_subsampling: str = 'auto'
    workers: int = 1
    log_level: str = 'INFO'
    log_file: Optional[str] = None

    def __post_init__(self):
        """Validate settings."""
        for name in ('quality', 'min_quality', 'max_quality'):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ConfigError(f"{name} must be 0-100, got {value}")
        if self.min_quality > self.max_quality:
            raise ConfigError(
                f"min_quality ({self.min_quality}) exceeds max_quality ({self.max_quality})"
            )
        self.chroma_subsampling = str(self.chroma_subsampling).lower().replace(':', '')
        if self.chroma_subsampling not in CHROMA_CHOICES:
            raise ConfigError(
                f"chroma_subsampling must be one of {', '.join(CHROMA_CHOICES)}, "
                f"got {self.chroma_subsampling}"
            )
        if self.workers < 1:
            raise ConfigError(f"workers must be >= 1, got {self.workers}")
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}")


def load_config(config_path: Optional[Union[str, Path]] = None) -> RecompressConfig:
    """
    Load settings from an INI file.

    A missing default file yields the defaults; a missing explicit file is
    an error.

    Args:
        config_path: INI file to read, recompress.ini in cwd if omitted

    Returns:
        RecompressConfig with file values over defaults

    Raises:
        ConfigError: File unreadable or holds invalid values
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME
        if not config_path.exists():
            return RecompressConfig()
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    parser = ConfigParser()
    try:
        parser.read(config_path, encoding="utf-8")

        values = {}
        if parser.has_section("Compression"):
            for key in ('quality', 'min_quality', 'max_quality', 'workers'):
                if parser.has_option("Compression", key):
                    values[key] = parser.getint("Compression", key)
            if parser.has_option("Compression", "chroma_subsampling"):
                values['chroma_subsampling'] = parser.get("Compression", "chroma_subsampling")

        if parser.has_section("Logging"):
            values['log_level'] = parser.get("Logging", "level", fallback="INFO")
            log_file = parser.get("Logging", "log_file", fallback="").strip()
            if log_file:
                values['log_file'] = log_file
    except (ConfigParserError, ValueError) as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e

    return RecompressConfig(**values)


def save_config(config: RecompressConfig, config_path: Union[str, Path]) -> None:
    """Write settings to an INI file that load_config reads back."""
    parser = ConfigParser()

    parser.add_section("Compression")
    parser.set("Compression", "quality", str(config.quality))
    parser.set("Compression", "min_quality", str(config.min_quality))
    parser.set("Compression", "max_quality", str(config.max_quality))
    parser.set("Compression", "chroma_subsampling", config.chroma_subsampling)
    parser.set("Compression", "workers", str(config.workers))

    parser.add_section("Logging")
    parser.set("Logging", "level", config.log_level)
    parser.set("Logging", "log_file", config.log_file or "")

    with open(config_path, "w", encoding="utf-8") as f:
        parser.write(f)
