"""Photo normalization."""

from hse_field_reports.media.images import (
    ImageNormalizationError,
    bounded_size,
    normalize_image,
    normalize_image_bytes,
)

__all__ = [
    "ImageNormalizationError",
    "bounded_size",
    "normalize_image",
    "normalize_image_bytes",
]
