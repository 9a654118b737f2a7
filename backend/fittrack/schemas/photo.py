from datetime import date

from pydantic import BaseModel, Field


class ProgressPhotoOut(BaseModel):
    id: int
    photo_url: str
    week_start_date: str
    notes: str | None
    created_at: str | None


class PhotoUploadUrlRequest(BaseModel):
    filename: str = Field(..., min_length=1, max_length=255)
    content_type: str = "image/jpeg"


class PhotoUploadUrlResponse(BaseModel):
    upload_url: str
    storage_path: str
    public_url: str
    expires_in: int


class PhotoRegisterRequest(BaseModel):
    """Record a photo the client already PUT to the presigned URL."""

    storage_path: str = Field(..., min_length=1, max_length=1024)
    week_start_date: date
    notes: str | None = None


class PhotoUploadResponse(BaseModel):
    success: bool = True
    photos: list[ProgressPhotoOut]
    message: str
