"""Progressive photo compression."""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Protocol

from rental_inspection.domain.photos import (
    CompressedPhoto,
    CompressionPreset,
    RawPhoto,
)
from rental_inspection.errors import CompressionFailed, InputTooLarge, InvalidInput

logger = logging.getLogger(__name__)

_MB = 1024 * 1024

MAX_INPUT_BYTES = 2 * _MB

DEFAULT_LADDER: tuple[CompressionPreset, ...] = (
    CompressionPreset(max_bytes=int(0.5 * _MB), max_dimension=1920, quality=0.8),
    CompressionPreset(max_bytes=int(0.8 * _MB), max_dimension=1280, quality=0.6),
    CompressionPreset(max_bytes=int(1.2 * _MB), max_dimension=800, quality=0.4),
)

OUTPUT_EXTENSION = ".jpg"


class ImageEncoder(Protocol):
    """Interface for encoding an image into JPEG bytes."""

    def encode(self, content: bytes, preset: CompressionPreset) -> bytes:
        """Encode image bytes according to a preset and return JPEG bytes."""


@dataclass
class ImageCompressor:
    """Compresses photos by walking a ladder of encode presets."""

    encoder: ImageEncoder
    ladder: tuple[CompressionPreset, ...] = field(default=DEFAULT_LADDER)
    max_input_bytes: int = MAX_INPUT_BYTES

    async def compress(self, raw: RawPhoto) -> CompressedPhoto:
        """Compress a raw photo, falling back to later presets on encode errors."""
        self._validate(raw)
        last_error: Exception | None = None
        for attempt, preset in enumerate(self.ladder, start=1):
            logger.info(
                "Compressing %s (attempt %d/%d, %dpx, quality %.1f)",
                raw.file_name,
                attempt,
                len(self.ladder),
                preset.max_dimension,
                preset.quality,
            )
            try:
                encoded = await asyncio.to_thread(
                    self.encoder.encode, raw.content, preset
                )
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                logger.warning(
                    "Compression attempt %d failed for %s: %s",
                    attempt,
                    raw.file_name,
                    exc,
                )
                continue
            compressed = CompressedPhoto(
                content=encoded,
                size=len(encoded),
                file_name=normalize_file_name(raw.file_name),
                compression_ratio=_reduction_percent(raw.size, len(encoded)),
            )
            logger.info(
                "Compressed %s to %.2fMB (%.1f%% reduction)",
                raw.file_name,
                compressed.size / _MB,
                compressed.compression_ratio,
            )
            return compressed

        raise CompressionFailed(
            f'Failed to compress "{raw.file_name}" after {len(self.ladder)} '
            f"attempts. Last error: {last_error or 'unknown error'}"
        ) from last_error

    def _validate(self, raw: RawPhoto) -> None:
        if not raw.media_type.startswith("image/"):
            raise InvalidInput(f'File "{raw.file_name}" is not a valid image file.')
        if raw.size > self.max_input_bytes:
            raise InputTooLarge(
                f'File "{raw.file_name}" is too large ({raw.size / _MB:.2f}MB). '
                f"Maximum allowed size is {self.max_input_bytes / _MB:g}MB."
            )


def normalize_file_name(file_name: str) -> str:
    """Replace the extension of a file name with the output extension."""
    stem = PurePath(file_name).stem or "photo"
    return f"{stem}{OUTPUT_EXTENSION}"


def _reduction_percent(original_size: int, compressed_size: int) -> float:
    if original_size <= 0:
        return 0.0
    return round((1 - compressed_size / original_size) * 100, 1)
