"""Photo upload to storage plus photo record persistence."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from rental_inspection.domain.photos import CompressedPhoto, UploadedPhotoRecord

logger = logging.getLogger(__name__)

CONTENT_TYPE = "image/jpeg"


class PhotoStorage(Protocol):
    """Interface for the binary storage bucket."""

    def put_object(self, path: str, content: bytes, content_type: str) -> str:
        """Store bytes at a path and return a storage handle."""


class PhotoRecordRepository(Protocol):
    """Persistence interface for uploaded photo records."""

    def insert_photo_record(self, record: UploadedPhotoRecord) -> UploadedPhotoRecord:
        """Persist a photo record and return it."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class PhotoUploadService:
    """Stores a compressed photo and records where it was stored."""

    storage: PhotoStorage
    record_repository: PhotoRecordRepository
    clock: Callable[[], datetime] = field(default=_utc_now)

    def upload(
        self, photo: CompressedPhoto, order_id: str, merchant_id: str
    ) -> UploadedPhotoRecord:
        """Upload one photo and create its record."""
        file_name = f"{order_id}_{round(self.clock().timestamp() * 1000)}.jpg"
        file_path = f"{merchant_id}/{order_id}/{file_name}"
        logger.info("Uploading %s as %s", photo.file_name, file_path)
        self.storage.put_object(file_path, photo.content, CONTENT_TYPE)
        return self.record_repository.insert_photo_record(
            UploadedPhotoRecord(
                order_id=order_id,
                merchant_id=merchant_id,
                file_name=file_name,
                file_path=file_path,
            )
        )
