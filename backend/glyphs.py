"""Single-glyph rasterization into alpha masks."""

from dataclasses import dataclass

from PIL import Image, ImageDraw

from fonts import Font


@dataclass(frozen=True)
class Glyph:
    """Coverage mask of one character.

    ``left`` and ``top`` place the mask relative to the tile anchor, which
    is the left end of the font's ascender line.
    """

    mask: Image.Image
    left: int
    top: int

    @property
    def size(self) -> tuple[int, int]:
        return self.mask.size


class GlyphRenderer:
    """Renders characters of one font at a fixed ``(x, y)`` pixel scale.

    ``scale[1]`` is the line height (ascent + descent); ``scale[0]`` is the
    horizontal scale, applied as a stretch of the uniformly rendered glyph.
    A renderer belongs to a single request; masks are cached per
    ``(char, scale)``.
    """

    def __init__(self, font: Font, scale: tuple[float, float]) -> None:
        self.scale = scale
        self._face = font.sized(scale[1])
        self._stretch = scale[0] / scale[1] if scale[1] > 0 else 1.0
        self._cache: dict[tuple[str, tuple[float, float]], Glyph | None] = {}

    def render(self, char: str) -> Glyph | None:
        """Return the mask for *char*, or None when it draws no pixels."""
        key = (char, self.scale)
        if key not in self._cache:
            self._cache[key] = self._rasterize(char)
        return self._cache[key]

    def _rasterize(self, char: str) -> Glyph | None:
        left, top, right, bottom = self._face.getbbox(char, anchor="la")
        width, height = right - left, bottom - top
        if width <= 0 or height <= 0:
            return None

        mask = Image.new("L", (width, height), 0)
        ImageDraw.Draw(mask).text((-left, -top), char, font=self._face, fill=255, anchor="la")
        if mask.getbbox() is None:
            return None

        if self._stretch != 1.0:
            stretched = max(1, round(width * self._stretch))
            mask = mask.resize((stretched, height), Image.BILINEAR)
            left = round(left * self._stretch)

        return Glyph(mask=mask, left=left, top=top)
