"""Tiled text watermark: image bytes in, JPEG bytes out."""

import logging

from PIL import Image

from codec import decode, encode
from compositor import composite
from config import WatermarkConfig
from fonts import Font, FontProvider
from layout import compute_geometry

logger = logging.getLogger(__name__)


def watermark_image(
    image: Image.Image,
    text: str,
    font: Font,
    config: WatermarkConfig,
) -> Image.Image:
    """Overlay the repeating watermark *text* on an RGBA image in place.

    Args:
        image: RGBA raster; its size never changes.
        text: Characters cycled across the tiles. Empty text leaves the
            image untouched.
        font: Face used for every glyph.
        config: Sizes, colors and spacing ratios.

    Returns:
        The same image object, now fully opaque.
    """
    if not text:
        return image
    w, h = image.size
    geometry = compute_geometry(w, h, len(text), config)
    return composite(image, text, geometry, config, font)


def add_watermark(
    image_bytes: bytes,
    text: str,
    fonts: FontProvider,
    config: WatermarkConfig,
) -> bytes:
    """Watermark an encoded image and return it as JPEG.

    Empty *text* returns *image_bytes* unchanged without decoding it.

    Raises:
        DecodeError: Input is not a decodable image.
        FontError: The font is still unavailable after one reload attempt.
        EncodeError: The result could not be written as JPEG.
    """
    if not text:
        logger.info("Empty watermark text, passing %d bytes through", len(image_bytes))
        return image_bytes

    font = fonts.get()
    image = decode(image_bytes)
    logger.info("Watermarking %dx%d image with %d characters", image.width, image.height, len(text))
    watermark_image(image, text, font, config)
    return encode(image, config.jpeg_quality)
