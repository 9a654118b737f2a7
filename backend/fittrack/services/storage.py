"""
S3-compatible object storage for progress photos and workout plan PDFs.

Two buckets: settings.s3_photos_bucket (publicly readable images) and
settings.s3_plans_bucket (private PDFs). Object keys always start with the
owner's user id. boto3 is blocking, so every call runs in a worker thread.
"""
import asyncio
import io
import logging
import re
import time
import uuid

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from fittrack.config import settings

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def get_s3_client():
    return boto3.client(
        "s3",
        endpoint_url=settings.s3_endpoint_url,
        aws_access_key_id=settings.s3_access_key,
        aws_secret_access_key=settings.s3_secret_key,
        config=Config(signature_version="s3v4"),
    )


def safe_filename(filename: str | None, default: str = "file") -> str:
    name = (filename or "").rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    name = _UNSAFE_KEY_CHARS.sub("_", name).strip("._")
    return name or default


def plan_object_key(user_id: int, filename: str | None) -> str:
    """{user_id}/{unix_ms}-{filename}"""
    return f"{user_id}/{int(time.time() * 1000)}-{safe_filename(filename, 'plan.pdf')}"


def photo_object_key(user_id: int, ext: str = "jpg") -> str:
    return f"{user_id}/{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.{ext}"


def public_url(bucket: str, key: str) -> str:
    base = (settings.s3_public_base_url or settings.s3_endpoint_url or "").rstrip("/")
    return f"{base}/{bucket}/{key}"


async def ensure_bucket_exists(bucket: str) -> None:
    client = get_s3_client()

    def _create_if_missing() -> None:
        try:
            client.head_bucket(Bucket=bucket)
        except ClientError:
            logger.info("storage: creating bucket %s", bucket)
            client.create_bucket(Bucket=bucket)

    await asyncio.to_thread(_create_if_missing)


async def upload_object(bucket: str, key: str, data: bytes, content_type: str) -> str:
    """Upload bytes under `key` and return the object's public URL."""
    client = get_s3_client()

    def _upload() -> None:
        client.upload_fileobj(
            io.BytesIO(data),
            bucket,
            key,
            ExtraArgs={"ContentType": content_type},
        )

    await ensure_bucket_exists(bucket)
    await asyncio.to_thread(_upload)
    return public_url(bucket, key)


async def download_object(bucket: str, key: str) -> bytes:
    client = get_s3_client()

    def _download() -> bytes:
        buf = io.BytesIO()
        client.download_fileobj(bucket, key, buf)
        return buf.getvalue()

    return await asyncio.to_thread(_download)


async def delete_object(bucket: str, key: str) -> None:
    client = get_s3_client()
    await asyncio.to_thread(client.delete_object, Bucket=bucket, Key=key)


async def delete_objects_best_effort(bucket: str, keys: list[str]) -> int:
    """Delete each key; failures are logged and skipped. Returns the number removed."""
    removed = 0
    for key in keys:
        try:
            await delete_object(bucket, key)
            removed += 1
        except (BotoCoreError, ClientError) as e:
            logger.warning("storage: could not delete %s/%s: %s", bucket, key, e)
    return removed


async def presigned_upload_url(bucket: str, key: str, content_type: str) -> str:
    """Presigned PUT URL so the client can upload directly to storage."""
    client = get_s3_client()

    def _sign() -> str:
        return client.generate_presigned_url(
            "put_object",
            Params={"Bucket": bucket, "Key": key, "ContentType": content_type},
            ExpiresIn=settings.s3_presign_expire_seconds,
        )

    await ensure_bucket_exists(bucket)
    return await asyncio.to_thread(_sign)
