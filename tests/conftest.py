from __future__ import annotations

import string
from io import BytesIO
from pathlib import Path

import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen
from PIL import Image

from fonts import Font, FontProvider, load_font

UNITS_PER_EM = 1000
ASCENT = 800
DESCENT = -200


def _box_glyph():
    # Solid rectangle so glyph interiors have full coverage.
    pen = TTGlyphPen(None)
    pen.moveTo((50, 0))
    pen.lineTo((50, 700))
    pen.lineTo((550, 700))
    pen.lineTo((550, 0))
    pen.closePath()
    return pen.glyph()


def build_box_font(path: Path) -> Path:
    """Write a TrueType font whose uppercase letters are filled boxes."""
    letters = list(string.ascii_uppercase)
    fb = FontBuilder(UNITS_PER_EM, isTTF=True)
    fb.setupGlyphOrder([".notdef", "space"] + letters)
    cmap = {ord(" "): "space"}
    cmap.update({ord(ch): ch for ch in letters})
    fb.setupCharacterMap(cmap)

    glyphs = {".notdef": _box_glyph(), "space": TTGlyphPen(None).glyph()}
    glyphs.update({ch: _box_glyph() for ch in letters})
    fb.setupGlyf(glyphs)

    glyf = fb.font["glyf"]
    fb.setupHorizontalMetrics({name: (600, getattr(glyf[name], "xMin", 0)) for name in glyphs})
    fb.setupHorizontalHeader(ascent=ASCENT, descent=DESCENT)
    fb.setupNameTable({"familyName": "BoxTest", "styleName": "Regular"})
    fb.setupOS2(sTypoAscender=ASCENT, sTypoDescender=DESCENT, usWinAscent=ASCENT, usWinDescent=-DESCENT)
    fb.setupPost()
    fb.save(str(path))
    return path


@pytest.fixture(scope="session")
def font_path(tmp_path_factory) -> Path:
    return build_box_font(tmp_path_factory.mktemp("fonts") / "BoxTest.ttf")


@pytest.fixture(scope="session")
def font(font_path) -> Font:
    return load_font(font_path)


@pytest.fixture()
def font_provider(font_path) -> FontProvider:
    provider = FontProvider(font_path)
    provider.load()
    return provider


def make_image(size=(200, 150), color=(90, 120, 150, 255)) -> Image.Image:
    return Image.new("RGBA", size, color)


def image_bytes(size=(200, 150), color=(90, 120, 150), fmt="PNG") -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()
