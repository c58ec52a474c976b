"""Shared fixtures for the media store tests."""

from __future__ import annotations

import base64

import pytest

from app import create_app
from media import AssetClassConfig, LocalMediaStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + bytes(range(48))


@pytest.fixture
def make_data_url():
    def _make(raw: bytes = PNG_BYTES, media_type: str = "image/png") -> str:
        return f"data:{media_type};base64,{base64.b64encode(raw).decode('ascii')}"

    return _make


@pytest.fixture
def avatar_config(tmp_path) -> AssetClassConfig:
    return AssetClassConfig(
        name="avatar",
        storage_root=str(tmp_path / "uploads" / "avatars"),
        preferred_prefix="/uploads/avatars",
        legacy_prefixes=("/api/uploads/avatars",),
        max_bytes=1024,
    )


@pytest.fixture
def store(avatar_config) -> LocalMediaStore:
    return LocalMediaStore(avatar_config)


@pytest.fixture
def app_overrides(tmp_path) -> dict:
    return {
        "TESTING": True,
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "AVATAR_PUBLIC_PREFIX": None,
        "AVATAR_MAX_BYTES": 1024,
        "GALLERY_PUBLIC_PREFIX": None,
        "GALLERY_MAX_BYTES": 2048,
        "RATELIMIT_ENABLED": False,
        "SENTRY_DSN": "",
    }


@pytest.fixture
def app(app_overrides):
    return create_app(app_overrides)


@pytest.fixture
def client(app):
    return app.test_client()
