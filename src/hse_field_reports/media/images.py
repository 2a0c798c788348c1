"""Photo normalization: bounded dimensions, JPEG re-encode, data URI output."""

from __future__ import annotations

import asyncio
import base64
from io import BytesIO
from typing import Final

import structlog
from PIL import Image, ImageOps

from hse_field_reports.constants import IMAGE_JPEG_QUALITY, IMAGE_MAX_DIMENSION

logger = structlog.get_logger(__name__)

JPEG_DATA_URI_PREFIX: Final[str] = "data:image/jpeg;base64,"
_WHITE: Final[tuple[int, int, int]] = (255, 255, 255)


class ImageNormalizationError(OSError):
    """The source could not be decoded or the JPEG could not be produced."""


def bounded_size(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Scale the larger side down to ``max_dimension``; never upscale.

    The other side follows proportionally and is truncated to an integer
    with a floor of one pixel. Square images take the height branch.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"image dimensions must be positive, got {width}x{height}")
    if max_dimension <= 0:
        raise ValueError("max_dimension must be > 0")

    scaled_w, scaled_h = float(width), float(height)
    if width > height:
        if width > max_dimension:
            scaled_h = height * (max_dimension / width)
            scaled_w = float(max_dimension)
    elif height > max_dimension:
        scaled_w = width * (max_dimension / height)
        scaled_h = float(max_dimension)
    return max(1, int(scaled_w)), max(1, int(scaled_h))


def _flatten(image: Image.Image) -> Image.Image:
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, _WHITE)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def normalize_image_bytes(
    data: bytes,
    *,
    max_dimension: int = IMAGE_MAX_DIMENSION,
    quality: int = IMAGE_JPEG_QUALITY,
) -> str:
    """Decode ``data``, bound it and return a ``data:image/jpeg;base64,`` URI.

    EXIF orientation is applied before measuring. Transparent pixels are
    composited onto white since JPEG has no alpha channel.
    """
    if not 1 <= quality <= 95:
        raise ValueError("quality must be within [1, 95]")
    if not data:
        raise ImageNormalizationError("image payload is empty")

    try:
        with Image.open(BytesIO(data)) as source:
            source.load()
            oriented = ImageOps.exif_transpose(source)
            target = bounded_size(oriented.width, oriented.height, max_dimension)
            rgb = _flatten(oriented)
            if rgb.size != target:
                rgb = rgb.resize(target, Image.Resampling.LANCZOS)
            buffer = BytesIO()
            rgb.save(buffer, format="JPEG", quality=quality, optimize=True)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.warning("image_normalization_failed", size_bytes=len(data), error=str(exc))
        raise ImageNormalizationError(f"could not normalize image: {exc}") from exc

    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    logger.debug(
        "image_normalized",
        source_bytes=len(data),
        output_bytes=buffer.tell(),
        width=target[0],
        height=target[1],
    )
    return JPEG_DATA_URI_PREFIX + encoded


async def normalize_image(
    data: bytes,
    *,
    max_dimension: int = IMAGE_MAX_DIMENSION,
    quality: int = IMAGE_JPEG_QUALITY,
) -> str:
    """Run :func:`normalize_image_bytes` in a worker thread."""
    return await asyncio.to_thread(
        normalize_image_bytes, data, max_dimension=max_dimension, quality=quality
    )


def decode_data_uri(uri: str) -> bytes:
    """Return the payload bytes of a base64 data URI."""
    header, sep, payload = uri.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("expected a base64 data URI")
    try:
        return base64.b64decode(payload, validate=True)
    except ValueError as exc:
        raise ValueError(f"invalid base64 payload: {exc}") from exc


__all__ = [
    "JPEG_DATA_URI_PREFIX",
    "ImageNormalizationError",
    "bounded_size",
    "decode_data_uri",
    "normalize_image",
    "normalize_image_bytes",
]
