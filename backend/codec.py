"""Image decode/encode boundary."""

from io import BytesIO

from PIL import Image, UnidentifiedImageError

from errors import DecodeError, EncodeError


def decode(data: bytes) -> Image.Image:
    """Decode any image format Pillow understands into an RGBA raster.

    Raises:
        DecodeError: If the bytes are empty, malformed or unsupported.
    """
    if not data:
        raise DecodeError("image data is empty", size=0)
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except UnidentifiedImageError:
        raise DecodeError("unsupported image format", size=len(data))
    except Image.DecompressionBombError as e:
        raise DecodeError("image is too large", size=len(data), reason=str(e))
    except (OSError, SyntaxError, ValueError) as e:
        raise DecodeError("malformed image data", size=len(data), reason=str(e))


def encode(raster: Image.Image, quality: int) -> bytes:
    """Encode *raster* as a baseline JPEG, dropping any alpha channel.

    Raises:
        EncodeError: If *quality* is outside 1..100 or Pillow fails to write.
    """
    if not 1 <= quality <= 100:
        raise EncodeError("JPEG quality out of range", quality=quality)
    buf = BytesIO()
    try:
        raster.convert("RGB").save(buf, format="JPEG", quality=quality)
    except (OSError, ValueError) as e:
        raise EncodeError("cannot write JPEG", quality=quality, reason=str(e))
    return buf.getvalue()
