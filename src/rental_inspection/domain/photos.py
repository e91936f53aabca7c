"""Domain models for inspection photos."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RawPhoto:
    """Photo as received from the device, before compression."""

    content: bytes
    media_type: str
    size: int
    file_name: str


@dataclass
class CompressedPhoto:
    """JPEG-encoded photo ready for upload."""

    content: bytes
    size: int
    file_name: str
    compression_ratio: float
    released: bool = field(default=False, compare=False)

    def release(self) -> None:
        """Drop the encoded bytes once the photo has been consumed."""
        self.content = b""
        self.released = True


@dataclass(frozen=True)
class CompressionPreset:
    """One rung of the compression ladder."""

    max_bytes: int
    max_dimension: int
    quality: float


@dataclass(frozen=True)
class UploadedPhotoRecord:
    """Persisted association between an order and a stored photo."""

    order_id: str
    merchant_id: str
    file_name: str
    file_path: str
