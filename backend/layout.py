"""Tiling geometry for the repeating watermark.

Glyphs are laid out on a brick pattern: every odd row is shifted by half a
column so the characters do not line up in straight vertical columns, and
the character index combines row and column so the text runs diagonally.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterator

from config import WatermarkConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileGeometry:
    """Per-image layout of the watermark grid (all sizes in pixels)."""

    glyph_scale: tuple[float, float]
    shadow_offset: tuple[int, int]
    spacing: tuple[float, float]
    columns: int
    rows: int
    global_offset: tuple[float, float]


@dataclass(frozen=True)
class Tile:
    row: int
    column: int
    x: float
    y: float
    char: str


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _tile_count(extent: int, step: float) -> int:
    if step <= 0:
        return 1
    return max(1, math.ceil(extent / step))


def compute_geometry(
    image_width: int,
    image_height: int,
    text_length: int,
    config: WatermarkConfig,
) -> TileGeometry:
    """Compute the watermark grid for an image of the given size.

    Raises:
        ValueError: If *text_length* is not positive. Empty text never
            reaches the layout; callers pass the image through instead.
    """
    if text_length <= 0:
        raise ValueError("watermark text must not be empty")

    font_px_height = max(image_height * config.font_height_ratio, config.font_height_min)
    scale_x = font_px_height * config.font_width_ratio
    scale_y = font_px_height

    shadow_offset = (
        _round_half_away(scale_x * config.shadow_offset_ratio),
        _round_half_away(scale_y * config.shadow_offset_ratio),
    )
    spacing_x = scale_x * config.char_spacing_x_ratio
    spacing_y = scale_y * config.char_spacing_y_ratio

    columns = _tile_count(image_width, spacing_x)
    rows = _tile_count(image_height, spacing_y)

    global_offset = (
        spacing_x * config.global_offset_x_ratio,
        spacing_y * config.global_offset_y_ratio,
    )
    # Rows start above the top edge when shifted up; one more keeps the bottom covered
    if global_offset[1] < 0:
        rows += 1

    geometry = TileGeometry(
        glyph_scale=(scale_x, scale_y),
        shadow_offset=shadow_offset,
        spacing=(spacing_x, spacing_y),
        columns=columns,
        rows=rows,
        global_offset=global_offset,
    )
    logger.debug("Geometry for %dx%d: %s", image_width, image_height, geometry)
    return geometry


def row_stagger(geometry: TileGeometry, row: int) -> float:
    """Horizontal shift of *row*: half a column on odd rows."""
    return geometry.spacing[0] / 2 if row % 2 else 0.0


def tile_anchor(geometry: TileGeometry, row: int, column: int) -> tuple[float, float]:
    x = column * geometry.spacing[0] + row_stagger(geometry, row) + geometry.global_offset[0]
    y = row * geometry.spacing[1] + geometry.global_offset[1]
    return x, y


def iter_tiles(geometry: TileGeometry, text: str) -> Iterator[Tile]:
    """Yield every tile of the grid in row-major order."""
    length = len(text)
    for row in range(geometry.rows):
        for column in range(geometry.columns):
            x, y = tile_anchor(geometry, row, column)
            yield Tile(row, column, x, y, text[(row + column) % length])
