"""Application configuration loaded from environment variables."""

import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, TypeVar

from dotenv import load_dotenv

from errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PATH = Path(__file__).resolve().parent / ".env"
load_dotenv(ENV_PATH)

T = TypeVar("T", int, float)

RGBA = tuple[int, int, int, int]


def get_numeric(
    key: str,
    default: T,
    cast: Callable[[str], T] | None = None,
    minimum: T | None = None,
    maximum: T | None = None,
) -> T:
    """Read a number from the environment, falling back to *default*.

    Unparseable, non-finite or out-of-range values log a warning and use
    the default.
    """
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    convert = cast or type(default)
    try:
        value = convert(raw.strip())
    except ValueError:
        logger.warning("Invalid value for %s (%r), using default: %s", key, raw, default)
        return default
    if isinstance(value, float) and not math.isfinite(value):
        logger.warning("Non-finite value for %s (%r), using default: %s", key, raw, default)
        return default
    if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
        logger.warning("Out of range value for %s (%s), using default: %s", key, value, default)
        return default
    return value


def _get_color(prefix: str, default: RGBA) -> RGBA:
    r, g, b, a = (
        get_numeric(f"{prefix}_{channel}", value, minimum=0, maximum=255)
        for channel, value in zip("RGBA", default)
    )
    return (r, g, b, a)


# Paths
BASE_DIR = Path(__file__).resolve().parent.parent
ASSETS_DIR = BASE_DIR / "assets"

# Server
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = get_numeric("PORT", 3333, minimum=1, maximum=65535)
WORKERS: int = get_numeric("WORKERS", 0, minimum=0)
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info").upper()

# Font
FONT_PATH: str = os.getenv("FONT_PATH", "")

# Limits
MAX_FILE_SIZE_MB: int = get_numeric("MAX_FILE_SIZE_MB", 50, minimum=1)
MAX_FILE_SIZE_BYTES: int = MAX_FILE_SIZE_MB * 1024 * 1024

# HTTP client
HTTP_POOL_MAX_IDLE: int = get_numeric("HTTP_POOL_MAX_IDLE", 10, minimum=0)
HTTP_CONNECT_TIMEOUT: float = get_numeric("HTTP_CONNECT_TIMEOUT", 10.0, minimum=0.0)
HTTP_REQUEST_TIMEOUT: float = get_numeric("HTTP_REQUEST_TIMEOUT", 60.0, minimum=0.0)

# Watermark text used when the request carries no usercode parameter
DEFAULT_WATERMARK_TEXT: str = os.getenv("DEFAULT_WATERMARK_TEXT", "WATERMARK")


@dataclass(frozen=True)
class WatermarkConfig:
    """Tuning parameters of the tiled watermark.

    Ratios are relative to the image height (font size) or to the glyph
    scale (spacing, shadow), so the pattern density is independent of the
    image resolution.
    """

    font_height_ratio: float = 0.10
    font_height_min: float = 10.0
    font_width_ratio: float = 0.6
    watermark_color: RGBA = (255, 255, 255, 46)
    shadow_color: RGBA = (0, 0, 0, 46)
    shadow_offset_ratio: float = 0.065
    char_spacing_x_ratio: float = 1.1
    char_spacing_y_ratio: float = 0.4
    global_offset_x_ratio: float = -0.5
    global_offset_y_ratio: float = -1.0
    jpeg_quality: int = 90

    @classmethod
    def from_env(cls) -> "WatermarkConfig":
        d = cls()
        return cls(
            font_height_ratio=get_numeric("FONT_HEIGHT_RATIO", d.font_height_ratio, minimum=0.0),
            font_height_min=get_numeric("FONT_HEIGHT_MIN", d.font_height_min, minimum=1.0),
            font_width_ratio=get_numeric("FONT_WIDTH_RATIO", d.font_width_ratio, minimum=0.0),
            watermark_color=_get_color("WATERMARK_COLOR", d.watermark_color),
            shadow_color=_get_color("SHADOW_COLOR", d.shadow_color),
            shadow_offset_ratio=get_numeric("SHADOW_OFFSET_RATIO", d.shadow_offset_ratio),
            char_spacing_x_ratio=get_numeric("CHAR_SPACING_X_RATIO", d.char_spacing_x_ratio),
            char_spacing_y_ratio=get_numeric("CHAR_SPACING_Y_RATIO", d.char_spacing_y_ratio),
            global_offset_x_ratio=get_numeric("GLOBAL_OFFSET_X_RATIO", d.global_offset_x_ratio),
            global_offset_y_ratio=get_numeric("GLOBAL_OFFSET_Y_RATIO", d.global_offset_y_ratio),
            jpeg_quality=get_numeric("JPEG_QUALITY", d.jpeg_quality, minimum=1, maximum=100),
        )


@dataclass(frozen=True)
class StorageSettings:
    """Object storage endpoint that receives the processed objects."""

    endpoint: str
    access_key: str
    secret_key: str
    secure: bool = False

    @classmethod
    def from_env(cls) -> "StorageSettings":
        """Read the storage settings; missing values abort startup."""
        missing = [
            key for key in ("MINIO_ENDPOINT", "MINIO_ACCESS_KEY", "MINIO_SECRET_KEY")
            if not os.getenv(key)
        ]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")
        secure = os.getenv("MINIO_SECURE", "false").strip().lower() in ("1", "true", "yes")
        endpoint = os.environ["MINIO_ENDPOINT"].rstrip("/")
        if "://" not in endpoint:
            endpoint = f"{'https' if secure else 'http'}://{endpoint}"
        return cls(
            endpoint=endpoint,
            access_key=os.environ["MINIO_ACCESS_KEY"],
            secret_key=os.environ["MINIO_SECRET_KEY"],
            secure=secure,
        )


WATERMARK: WatermarkConfig = WatermarkConfig.from_env()
