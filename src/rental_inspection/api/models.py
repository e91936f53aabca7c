"""Pydantic models for the inspection API."""

from typing import Literal

from pydantic import BaseModel

CheckAnswer = Literal["ok", "problem"]


class SessionResponse(BaseModel):
    """Resolved session context."""

    order_id: str
    merchant_id: str
    store_id: str
    language: str


class UploadedPhotoResponse(BaseModel):
    """Stored photo reference."""

    file_name: str
    file_path: str


class SubmissionResponse(BaseModel):
    """Outcome of a submission request."""

    outcome: str
    submission_id: str | None = None
    uploaded_photos: list[UploadedPhotoResponse] = []
    error: str | None = None
