"""Progress photos API: direct and presigned uploads, weekly listing, deletion."""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.api.deps import get_current_user
from fittrack.config import settings
from fittrack.db.session import get_db
from fittrack.models.progress_photo import ProgressPhoto
from fittrack.models.user import User
from fittrack.schemas.photo import (
    PhotoRegisterRequest,
    PhotoUploadResponse,
    PhotoUploadUrlRequest,
    PhotoUploadUrlResponse,
    ProgressPhotoOut,
)
from fittrack.services import storage
from fittrack.services.audit import record_action
from fittrack.services.image_resize import InvalidImageError, normalize_photo_async
from fittrack.services.weekly_report import photo_to_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/photos", tags=["photos"])

MAX_FILES_PER_UPLOAD = 20


def _validate_image(file: UploadFile, image_bytes: bytes) -> None:
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")
    if len(image_bytes) == 0:
        raise HTTPException(status_code=400, detail="File is empty or invalid.")
    if len(image_bytes) > settings.max_photo_bytes:
        raise HTTPException(
            status_code=400, detail=f"Image too large (max {settings.max_photo_bytes // (1024 * 1024)}MB)"
        )
    magic = image_bytes[:12]
    if not (
        magic.startswith(b"\xff\xd8\xff")
        or magic.startswith(b"\x89PNG\r\n\x1a\n")
        or magic.startswith(b"GIF87a")
        or magic.startswith(b"GIF89a")
        or (magic[:4] == b"RIFF" and magic[8:12] == b"WEBP")
    ):
        raise HTTPException(status_code=400, detail="File must be a valid image (JPEG, PNG, GIF or WebP).")


def _owned_key(user_id: int, storage_path: str) -> str:
    key = storage_path.strip().lstrip("/")
    if not key.startswith(f"{user_id}/") or ".." in key:
        raise HTTPException(status_code=403, detail="Storage path does not belong to this user.")
    return key


@router.post(
    "",
    response_model=PhotoUploadResponse,
    status_code=201,
    summary="Upload progress photos for a week",
    responses={
        400: {"description": "Invalid image"},
        401: {"description": "Not authenticated"},
        502: {"description": "Storage unavailable"},
    },
)
async def upload_photos(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    files: Annotated[list[UploadFile], File(description="One or more images")],
    week_start_date: Annotated[date, Form()],
    notes: Annotated[str | None, Form()] = None,
) -> PhotoUploadResponse:
    """Images are re-encoded as JPEG. Without notes each photo is labelled "Progress photo N"."""
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(files) > MAX_FILES_PER_UPLOAD:
        raise HTTPException(status_code=400, detail=f"At most {MAX_FILES_PER_UPLOAD} photos per upload")
    prepared: list[bytes] = []
    for file in files:
        raw = await file.read()
        _validate_image(file, raw)
        try:
            prepared.append(await normalize_photo_async(raw))
        except InvalidImageError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    rows = []
    for i, jpeg in enumerate(prepared, start=1):
        key = storage.photo_object_key(user.id)
        try:
            url = await storage.upload_object(settings.s3_photos_bucket, key, jpeg, "image/jpeg")
        except Exception as e:
            logger.exception("Failed to store progress photo for user_id=%s", user.id)
            # Rows roll back with the request; drop the objects stored so far
            await storage.delete_objects_best_effort(settings.s3_photos_bucket, [r.storage_path for r in rows])
            raise HTTPException(status_code=502, detail="Failed to store the photo. Please try again.") from e
        row = ProgressPhoto(
            user_id=user.id,
            photo_url=url,
            storage_path=key,
            week_start_date=week_start_date,
            notes=(notes or "").strip() or f"Progress photo {i}",
        )
        session.add(row)
        rows.append(row)
    await session.flush()
    await record_action(session, user.id, "create", "progress_photo", None, details={"count": len(rows)})
    return PhotoUploadResponse(
        photos=[ProgressPhotoOut(**photo_to_response(r)) for r in rows],
        message=f"Uploaded {len(rows)} photos",
    )


@router.post(
    "/upload-url",
    response_model=PhotoUploadUrlResponse,
    summary="Get a presigned URL to upload a photo directly to storage",
    responses={401: {"description": "Not authenticated"}, 502: {"description": "Storage unavailable"}},
)
async def create_upload_url(
    user: Annotated[User, Depends(get_current_user)],
    body: PhotoUploadUrlRequest,
) -> PhotoUploadUrlResponse:
    if not body.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")
    ext = storage.safe_filename(body.filename, "photo.jpg").rsplit(".", 1)[-1].lower()
    key = storage.photo_object_key(user.id, ext if ext in {"jpg", "jpeg", "png", "gif", "webp"} else "jpg")
    try:
        url = await storage.presigned_upload_url(settings.s3_photos_bucket, key, body.content_type)
    except Exception as e:
        logger.exception("Failed to presign upload for user_id=%s", user.id)
        raise HTTPException(status_code=502, detail="Storage unavailable. Please try again.") from e
    return PhotoUploadUrlResponse(
        upload_url=url,
        storage_path=key,
        public_url=storage.public_url(settings.s3_photos_bucket, key),
        expires_in=settings.s3_presign_expire_seconds,
    )


@router.post(
    "/register",
    response_model=ProgressPhotoOut,
    status_code=201,
    summary="Record a photo uploaded through a presigned URL",
    responses={401: {"description": "Not authenticated"}, 403: {"description": "Path not owned by user"}},
)
async def register_photo(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    body: PhotoRegisterRequest,
) -> dict:
    key = _owned_key(user.id, body.storage_path)
    row = ProgressPhoto(
        user_id=user.id,
        photo_url=storage.public_url(settings.s3_photos_bucket, key),
        storage_path=key,
        week_start_date=body.week_start_date,
        notes=(body.notes or "").strip() or None,
    )
    session.add(row)
    await session.flush()
    return photo_to_response(row)


@router.get(
    "",
    response_model=list[ProgressPhotoOut],
    summary="List progress photos",
    responses={401: {"description": "Not authenticated"}},
)
async def list_photos(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    week_start_date: date | None = Query(default=None),
) -> list[dict]:
    """All photos, or one week's when week_start_date is given; oldest first."""
    q = select(ProgressPhoto).where(ProgressPhoto.user_id == user.id)
    if week_start_date is not None:
        q = q.where(ProgressPhoto.week_start_date == week_start_date)
    r = await session.execute(q.order_by(ProgressPhoto.created_at.asc(), ProgressPhoto.id.asc()))
    return [photo_to_response(p) for p in r.scalars().all()]


@router.delete(
    "/{photo_id}",
    status_code=204,
    summary="Delete a progress photo",
    responses={401: {"description": "Not authenticated"}, 404: {"description": "Photo not found"}},
)
async def delete_photo(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    photo_id: int,
) -> None:
    r = await session.execute(
        select(ProgressPhoto).where(ProgressPhoto.id == photo_id, ProgressPhoto.user_id == user.id)
    )
    photo = r.scalar_one_or_none()
    if not photo:
        raise HTTPException(status_code=404, detail="Photo not found.")
    if photo.storage_path:
        await storage.delete_objects_best_effort(settings.s3_photos_bucket, [photo.storage_path])
    await session.delete(photo)
    await session.flush()


@router.delete(
    "",
    summary="Delete all of the user's progress photos",
    responses={401: {"description": "Not authenticated"}},
)
async def delete_all_photos(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
) -> dict:
    """Rows are always removed; stored objects are removed best effort."""
    r = await session.execute(select(ProgressPhoto).where(ProgressPhoto.user_id == user.id))
    photos = r.scalars().all()
    keys = [p.storage_path for p in photos if p.storage_path]
    removed = await storage.delete_objects_best_effort(settings.s3_photos_bucket, keys)
    for p in photos:
        await session.delete(p)
    await session.flush()
    await record_action(
        session, user.id, "delete", "progress_photo", None, details={"count": len(photos), "objects_removed": removed}
    )
    return {"deleted": len(photos), "objects_removed": removed}
