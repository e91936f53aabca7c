"""Supabase-backed photo storage and photo records."""

from dataclasses import dataclass

from supabase import Client

from rental_inspection.domain.photos import UploadedPhotoRecord
from rental_inspection.services.photos import PhotoRecordRepository, PhotoStorage


@dataclass
class SupabasePhotoStorage(PhotoStorage):
    """Supabase Storage implementation for photo bytes."""

    client: Client
    bucket: str = "return-photos"

    def put_object(self, path: str, content: bytes, content_type: str) -> str:
        """Upload bytes to the bucket and return the stored path."""
        self.client.storage.from_(self.bucket).upload(
            path, content, {"content-type": content_type}
        )
        return f"{self.bucket}/{path}"


@dataclass
class SupabasePhotoRecordRepository(PhotoRecordRepository):
    """Supabase implementation for uploaded photo rows."""

    client: Client

    def insert_photo_record(self, record: UploadedPhotoRecord) -> UploadedPhotoRecord:
        """Create a photo row and return it."""
        response = (
            self.client.table("return_photos")
            .insert(
                {
                    "order_id": record.order_id,
                    "merchant_id": record.merchant_id,
                    "file_name": record.file_name,
                    "file_path": record.file_path,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create photo record in Supabase")
        row = response.data[0]
        return UploadedPhotoRecord(
            order_id=row["order_id"],
            merchant_id=row["merchant_id"],
            file_name=row["file_name"],
            file_path=row["file_path"],
        )
