"""Font loading for the watermark renderer.

A font is loaded once per process and shared read-only by every request.
If the startup load fails, the provider retries once per request under a
lock before reporting ``FontError``.
"""

import logging
import threading
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path

from PIL import ImageFont

from config import ASSETS_DIR
from errors import FontError

logger = logging.getLogger(__name__)

# Size used to measure the vertical metrics of a face
_REFERENCE_SIZE = 1000

_FONT_CANDIDATES = [
    ASSETS_DIR / "DejaVuSans.ttf",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
    Path("/usr/share/fonts/TTF/DejaVuSans.ttf"),
    Path("/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf"),
    Path("/usr/share/fonts/noto/NotoSans-Regular.ttf"),
    Path("C:/Windows/Fonts/arial.ttf"),
]


@dataclass(frozen=True)
class Font:
    """Parsed font face, safe to share between threads.

    Holds only the raw file bytes; FreeType objects are created per request
    by :meth:`sized` because they are not safe for concurrent use.
    """

    data: bytes = field(repr=False)
    name: str
    # font size (ppem) that gives one pixel of ascent + descent
    size_per_line_px: float

    def sized(self, line_height: float) -> ImageFont.FreeTypeFont:
        """Return a FreeType font whose ascent + descent is *line_height* px."""
        size = max(1, round(line_height * self.size_per_line_px))
        return ImageFont.truetype(BytesIO(self.data), size)


def resolve_font_path(configured: str = "") -> Path:
    """Pick the font file: the configured path, else the first existing candidate.

    No font ships with the service; ``assets/`` is where a deployment may
    drop one. Without FONT_PATH and without a system font, watermarking
    fails with ``FontError`` until a font appears.
    """
    if configured:
        return Path(configured)
    for path in _FONT_CANDIDATES:
        if path.exists():
            return path
    logger.warning(
        "No font found in %s; set FONT_PATH to a TrueType/OpenType file",
        ", ".join(str(p) for p in _FONT_CANDIDATES),
    )
    return _FONT_CANDIDATES[0]


def load_font(source: str | Path | bytes) -> Font:
    """Load and validate a TrueType/OpenType font from a path or raw bytes.

    Raises:
        FontError: If the file is missing, empty or not a usable font.
    """
    if isinstance(source, bytes):
        data, origin = source, "<bytes>"
    else:
        path = Path(source)
        origin = str(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise FontError("cannot read font file", path=origin, reason=e.strerror or str(e))

    if not data:
        raise FontError("font data is empty", path=origin)

    try:
        face = ImageFont.truetype(BytesIO(data), _REFERENCE_SIZE)
    except OSError as e:
        raise FontError("cannot parse font", path=origin, reason=str(e))

    ascent, descent = face.getmetrics()
    if ascent + descent <= 0:
        raise FontError("font has no vertical metrics", path=origin)

    family, style = face.getname()
    name = " ".join(part for part in (family, style) if part)
    return Font(data=data, name=name, size_per_line_px=_REFERENCE_SIZE / (ascent + descent))


class FontProvider:
    """Process-wide holder of the watermark font.

    ``load()`` is the startup attempt. ``get()`` is called per request: it
    returns the loaded font without locking, or makes one more attempt
    under an exclusive lock.
    """

    def __init__(self, source: str | Path | bytes) -> None:
        self._source = source
        self._font: Font | None = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._font is not None

    def load(self) -> Font | None:
        """Try to load the font at startup; failures are logged, not raised."""
        try:
            return self._reload()
        except FontError as e:
            logger.error("Font load failed, will retry on first request: %s", e.describe())
            return None

    def get(self) -> Font:
        font = self._font
        if font is not None:
            return font
        return self._reload()

    def _reload(self) -> Font:
        with self._lock:
            if self._font is None:
                font = load_font(self._source)
                logger.info("Loaded watermark font %s", font.name)
                self._font = font
            return self._font
