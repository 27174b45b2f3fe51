"""Error types raised by the watermarking core and its collaborators.

Each error carries structured context; turning it into a human-readable
message or an HTTP status happens in ``main`` only.
"""

from typing import Any


class WatermarkError(Exception):
    """Base class for failures that end a single watermarking request."""

    kind = "watermark"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def describe(self) -> str:
        """Render the error with its context, e.g. ``font: not found (path=x)``."""
        if not self.context:
            return f"{self.kind}: {self.message}"
        details = ", ".join(f"{k}={v}" for k, v in sorted(self.context.items()))
        return f"{self.kind}: {self.message} ({details})"


class DecodeError(WatermarkError):
    """Input bytes are not a decodable image."""

    kind = "decode"


class FontError(WatermarkError):
    """Font file is missing, empty or cannot be parsed."""

    kind = "font"


class EncodeError(WatermarkError):
    """The watermarked raster could not be written as JPEG."""

    kind = "encode"


class StorageError(WatermarkError):
    """Download of the source object or upload of the result failed."""

    kind = "storage"


class ConfigError(Exception):
    """Mandatory setting missing at startup."""
