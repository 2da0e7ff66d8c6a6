"""Tests for evidence uploads to S3-compatible storage."""
from __future__ import annotations

import asyncio
from io import BytesIO
from typing import Iterator

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from casting_reports.config import get_settings
from casting_reports.services import storage_service


class _RecordingClient:
    def __init__(self) -> None:
        self.uploads: list[tuple[str, str, dict]] = []
        self.deleted: list[tuple[str, str]] = []

    def upload_fileobj(self, file_obj, bucket, key, ExtraArgs=None):
        assert file_obj.read() == b"evidence-bytes"
        self.uploads.append((bucket, key, ExtraArgs or {}))

    def delete_object(self, Bucket, Key):
        self.deleted.append((Bucket, Key))


@pytest.fixture
def storage_env(monkeypatch) -> Iterator[None]:
    monkeypatch.setenv("STORAGE_ACCESS_KEY", "test-access")
    monkeypatch.setenv("STORAGE_SECRET_KEY", "test-secret")
    monkeypatch.setenv("STORAGE_REGION", "fra1")
    monkeypatch.setenv("STORAGE_BUCKET", "casting-evidence")
    monkeypatch.setenv("STORAGE_PUBLIC_BASE_URL", "https://cdn.example.test")
    get_settings.cache_clear()
    storage_service.load_storage_config.cache_clear()
    storage_service.get_storage_client.cache_clear()
    yield
    get_settings.cache_clear()
    storage_service.load_storage_config.cache_clear()
    storage_service.get_storage_client.cache_clear()


def test_object_key_stays_inside_folder():
    key = storage_service.object_key("../../etc/passwd.PNG", "../report evidence/")

    assert key.startswith("report-evidence/")
    assert key.endswith(".png")
    assert ".." not in key


def test_store_file_uploads_with_content_type(storage_env):
    client = _RecordingClient()
    upload = UploadFile(
        file=BytesIO(b"evidence-bytes"),
        filename="chat.png",
        headers=Headers({"content-type": "image/png"}),
    )

    stored = asyncio.run(storage_service.store_file(upload, folder="report-evidence", client=client))

    bucket, key, extra = client.uploads[0]
    assert bucket == "casting-evidence"
    assert extra["ContentType"] == "image/png"
    assert stored.key == key
    assert stored.url == f"https://cdn.example.test/{key}"
    assert stored.filename == "chat.png"

    storage_service.delete_stored_file(key, client=client)
    assert client.deleted == [("casting-evidence", key)]


def test_missing_credentials_raise_configuration_error(storage_env, monkeypatch):
    monkeypatch.setenv("STORAGE_SECRET_KEY", "changeme")
    storage_service.load_storage_config.cache_clear()

    with pytest.raises(storage_service.StorageConfigurationError):
        storage_service.load_storage_config()
