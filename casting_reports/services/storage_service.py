"""S3-compatible object storage for report evidence (DigitalOcean Spaces, AWS S3)."""
from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable

from boto3.session import Session
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from ..config import get_settings
from ..security.secrets import MissingSecretError, is_placeholder, require_secret

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageConfig:
    """Runtime configuration extracted from settings and secrets."""

    key: str
    secret: str
    region: str
    bucket: str
    endpoint_url: str | None
    public_base_url: str


@dataclass(frozen=True)
class StoredFile:
    """Metadata returned after uploading an evidence file."""

    url: str
    key: str
    filename: str | None
    content_type: str


class StorageConfigurationError(RuntimeError):
    """Raised when required storage settings are missing or invalid."""


class StorageUploadError(RuntimeError):
    """Raised when an upload to object storage fails."""


class StorageDeletionError(RuntimeError):
    """Raised when deleting an object from storage fails."""


@lru_cache(maxsize=1)
def load_storage_config() -> StorageConfig:
    """Read and validate object storage configuration."""

    settings = get_settings()
    try:
        key = require_secret("STORAGE_ACCESS_KEY")
        secret = require_secret("STORAGE_SECRET_KEY")
    except MissingSecretError as exc:
        raise StorageConfigurationError(str(exc)) from exc

    region = (settings.storage_region or "").strip()
    bucket = (settings.storage_bucket or "").strip()
    if is_placeholder(region):
        raise StorageConfigurationError("STORAGE_REGION must be set to a valid region identifier")
    if is_placeholder(bucket):
        raise StorageConfigurationError("STORAGE_BUCKET must be set to the target bucket name")

    endpoint_url = (settings.storage_endpoint_url or "").strip().rstrip("/") or None
    public_base_url = (settings.storage_public_base_url or "").strip().rstrip("/")
    if not public_base_url:
        public_base_url = endpoint_url or f"https://{bucket}.s3.{region}.amazonaws.com"

    return StorageConfig(
        key=key,
        secret=secret,
        region=region,
        bucket=bucket,
        endpoint_url=endpoint_url,
        public_base_url=public_base_url,
    )


@lru_cache(maxsize=1)
def get_storage_client() -> BaseClient:
    """Create a singleton boto3 client for storage interactions."""

    config = load_storage_config()
    session = Session()
    return session.client(
        "s3",
        region_name=config.region,
        endpoint_url=config.endpoint_url,
        aws_access_key_id=config.key,
        aws_secret_access_key=config.secret,
    )


def _sanitize_segments(parts: Iterable[str]) -> list[str]:
    """Sanitize path segments to be safe for object keys."""

    sanitized: list[str] = []
    for part in parts:
        if part in {"", ".", ".."}:
            continue
        cleaned = re.sub(r"[^A-Za-z0-9._-]", "-", part.strip())
        cleaned = re.sub(r"-+", "-", cleaned).strip("-._")
        if cleaned:
            sanitized.append(cleaned)
    return sanitized


def object_key(filename: str | None, folder: str) -> str:
    """Generate a namespaced object key anchored within the requested folder."""

    extension = Path(filename or "").suffix.lower()
    if extension and not re.fullmatch(r"\.[A-Za-z0-9]{1,10}", extension):
        extension = ""

    folder_segments = _sanitize_segments((folder or "uploads").replace("\\", "/").split("/"))
    safe_folder = "/".join(folder_segments) or "uploads"
    return f"{safe_folder}/{uuid.uuid4().hex}{extension}"


def build_public_url(key: str) -> str:
    config = load_storage_config()
    return f"{config.public_base_url}/{key.lstrip('/')}"


async def store_file(
    file: UploadFile,
    *,
    folder: str,
    client: BaseClient | None = None,
) -> StoredFile:
    """Upload ``file`` and return its public metadata."""

    config = load_storage_config()
    s3_client = client or get_storage_client()
    key = object_key(file.filename, folder)
    content_type = (file.content_type or "application/octet-stream").strip() or "application/octet-stream"
    file_obj = getattr(file, "file", None)
    if file_obj is None:
        raise StorageUploadError("UploadFile is missing an underlying file buffer.")

    def _upload() -> None:
        try:
            file_obj.seek(0)
            s3_client.upload_fileobj(
                file_obj,
                config.bucket,
                key,
                ExtraArgs={"ACL": "public-read", "ContentType": content_type},
            )
        except (ClientError, BotoCoreError) as exc:  # pragma: no cover - network errors hard to reproduce
            logger.exception("Upload of evidence %s failed", key)
            raise StorageUploadError("Upload to object storage failed") from exc

    await run_in_threadpool(_upload)
    return StoredFile(url=build_public_url(key), key=key, filename=file.filename, content_type=content_type)


def delete_stored_file(key: str, *, client: BaseClient | None = None) -> None:
    """Remove an object from storage."""

    if not key:
        return

    config = load_storage_config()
    s3_client = client or get_storage_client()
    try:
        s3_client.delete_object(Bucket=config.bucket, Key=key.lstrip("/"))
    except (ClientError, BotoCoreError) as exc:  # pragma: no cover - network bound
        logger.exception("Failed to delete storage object %s", key)
        raise StorageDeletionError("Unable to delete evidence from storage") from exc


__all__ = [
    "StorageConfig",
    "StoredFile",
    "StorageConfigurationError",
    "StorageUploadError",
    "StorageDeletionError",
    "load_storage_config",
    "get_storage_client",
    "object_key",
    "build_public_url",
    "store_file",
    "delete_stored_file",
]
