"""Blend the tiled watermark onto an image."""

import logging
import math

from PIL import Image

from config import RGBA, WatermarkConfig
from fonts import Font
from glyphs import Glyph, GlyphRenderer
from layout import TileGeometry, iter_tiles

logger = logging.getLogger(__name__)


def _alpha_table(alpha: int) -> list[int]:
    """Lookup table scaling glyph coverage by a color's alpha, rounded."""
    return [(v * alpha + 127) // 255 for v in range(256)]


class _Brush:
    """Draws glyph masks in one color onto a raster."""

    def __init__(self, color: RGBA) -> None:
        self.color = color
        self._table = _alpha_table(color[3])

    def draw(self, raster: Image.Image, glyph: Glyph, x: int, y: int) -> None:
        if self.color[3] == 0:
            return
        # out = fg * a + bg * (1 - a) per channel, a = coverage * color alpha
        mask = glyph.mask.point(self._table)
        fill = Image.new("RGBA", glyph.size, self.color)
        raster.paste(fill, (x + glyph.left, y + glyph.top), mask)


def _intersects(raster: Image.Image, glyph: Glyph, x: int, y: int) -> bool:
    width, height = raster.size
    x0, y0 = x + glyph.left, y + glyph.top
    x1, y1 = x0 + glyph.size[0], y0 + glyph.size[1]
    return x1 > 0 and y1 > 0 and x0 < width and y0 < height


def composite(
    raster: Image.Image,
    text: str,
    geometry: TileGeometry,
    config: WatermarkConfig,
    font: Font,
) -> Image.Image:
    """Draw the watermark grid onto *raster* in place and return it.

    Every tile draws its shadow first, offset by ``geometry.shadow_offset``,
    and then the foreground glyph at the tile anchor. The result is fully
    opaque.
    """
    if raster.mode != "RGBA":
        raise ValueError(f"expected an RGBA raster, got {raster.mode}")
    if not text:
        return raster

    renderer = GlyphRenderer(font, geometry.glyph_scale)
    shadow = _Brush(config.shadow_color)
    foreground = _Brush(config.watermark_color)
    dx, dy = geometry.shadow_offset

    drawn = 0
    for tile in iter_tiles(geometry, text):
        glyph = renderer.render(tile.char)
        if glyph is None:
            continue
        x, y = math.floor(tile.x), math.floor(tile.y)
        if _intersects(raster, glyph, x + dx, y + dy):
            shadow.draw(raster, glyph, x + dx, y + dy)
        if _intersects(raster, glyph, x, y):
            foreground.draw(raster, glyph, x, y)
            drawn += 1

    raster.putalpha(255)
    logger.debug("Drew %d of %d tiles", drawn, geometry.rows * geometry.columns)
    return raster
