"""Pillow-based JPEG encoder."""

import io
from dataclasses import dataclass

from PIL import Image, ImageOps

from rental_inspection.domain.photos import CompressionPreset
from rental_inspection.services.compression import ImageEncoder


@dataclass
class PillowImageEncoder(ImageEncoder):
    """Encodes images to JPEG, shrinking quality until the size target fits."""

    quality_step: float = 0.1
    min_quality: float = 0.1

    def encode(self, content: bytes, preset: CompressionPreset) -> bytes:
        """Downscale and re-encode image bytes as JPEG."""
        with Image.open(io.BytesIO(content)) as source:
            with ImageOps.exif_transpose(source) as oriented:
                with oriented.convert("RGB") as image:
                    image.thumbnail(
                        (preset.max_dimension, preset.max_dimension),
                        Image.Resampling.LANCZOS,
                    )
                    quality = preset.quality
                    encoded = _save_jpeg(image, quality)
                    while (
                        len(encoded) > preset.max_bytes
                        and quality - self.quality_step >= self.min_quality
                    ):
                        quality = round(quality - self.quality_step, 2)
                        encoded = _save_jpeg(image, quality)
        return encoded


def _save_jpeg(image: Image.Image, quality: float) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=int(quality * 100), optimize=True)
    return buffer.getvalue()
