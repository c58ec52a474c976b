"""HTTP surface: upload, delete and read-only serving of stored media."""

from __future__ import annotations

import os

import pytest

from app import create_app


def _upload(client, data_url, asset_class="avatar", **extra):
    body = {"image": data_url, "owner_id": 42}
    body.update(extra)
    return client.post(f"/api/media/{asset_class}", json=body)


def test_upload_and_serve(client, make_data_url):
    resp = _upload(client, make_data_url(b"avatar-bytes"))

    assert resp.status_code == 201
    path = resp.get_json()["path"]
    assert path.startswith("/uploads/avatars/42-")

    served = client.get(path)
    assert served.status_code == 200
    assert served.data == b"avatar-bytes"

    legacy = client.get(path.replace("/uploads/", "/api/uploads/", 1))
    assert legacy.status_code == 200
    assert legacy.data == b"avatar-bytes"


def test_gallery_upload_uses_its_own_directory(client, app, make_data_url):
    resp = _upload(client, make_data_url(b"g" * 1500), asset_class="gallery")

    assert resp.status_code == 201
    path = resp.get_json()["path"]
    assert path.startswith("/uploads/establishments/42-")
    store = app.extensions["media_stores"]["gallery"]
    assert os.path.dirname(store.resolve(path)) == os.path.realpath(store.directory)


def test_invalid_image(client):
    resp = _upload(client, "data:image/gif;base64,AAAA")

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "invalid_image"
    assert body["reason"] == "unsupported_media_type"


def test_missing_image(client):
    resp = client.post("/api/media/avatar", json={"owner_id": 1})
    assert resp.status_code == 400
    assert resp.get_json()["reason"] == "not_a_string"


def test_image_too_large(client, make_data_url):
    resp = _upload(client, make_data_url(b"\x00" * 1025))

    assert resp.status_code == 413
    body = resp.get_json()
    assert body["error"] == "image_too_large"
    assert body["limit"] == 1024


@pytest.mark.parametrize("owner_id", [None, "", "   "])
def test_owner_is_required(client, make_data_url, owner_id):
    resp = client.post("/api/media/avatar", json={"image": make_data_url(), "owner_id": owner_id})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "owner_required"


def test_unknown_asset_class(client, make_data_url):
    resp = _upload(client, make_data_url(), asset_class="documents")
    assert resp.status_code == 404


def test_replace_on_update(client, make_data_url):
    first = _upload(client, make_data_url(b"one")).get_json()["path"]
    second = _upload(client, make_data_url(b"two"), previous_path=first).get_json()["path"]

    assert client.get(first).status_code == 404
    assert client.get(second).data == b"two"


def test_delete_is_idempotent(client, make_data_url):
    path = _upload(client, make_data_url()).get_json()["path"]

    first = client.delete("/api/media/avatar", json={"path": path})
    assert first.status_code == 200
    assert first.get_json() == {"success": True, "deleted": True}

    second = client.delete("/api/media/avatar", json={"path": path})
    assert second.status_code == 200
    assert second.get_json() == {"success": True, "deleted": False}

    assert client.get(path).status_code == 404


def test_delete_ignores_traversal(client):
    resp = client.delete("/api/media/avatar", json={"path": "/uploads/avatars/../../etc/passwd"})

    assert resp.status_code == 200
    assert resp.get_json()["deleted"] is False
    assert os.path.exists("/etc/passwd")


def test_delete_requires_path(client):
    resp = client.delete("/api/media/avatar", json={})
    assert resp.status_code == 400


def test_serving_unknown_file(client):
    assert client.get("/uploads/avatars/nope.png").status_code == 404


def test_non_json_body_is_rejected(client):
    resp = client.post("/api/media/avatar", data="image=x", content_type="text/plain")
    assert resp.status_code == 415


def test_request_id_header(client):
    resp = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert resp.headers["X-Request-ID"] == "abc123"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "stores": ["avatar", "gallery"]}


def test_prefix_override(app_overrides, make_data_url):
    app_overrides["AVATAR_PUBLIC_PREFIX"] = "cdn/avatars/"
    client = create_app(app_overrides).test_client()

    path = _upload(client, make_data_url(b"cdn")).get_json()["path"]

    assert path.startswith("/cdn/avatars/42-")
    assert client.get(path).data == b"cdn"
    assert client.get(path.replace("/cdn/avatars", "/uploads/avatars", 1)).data == b"cdn"


def test_non_object_json_body(client):
    resp = client.post("/api/media/avatar", json=["data:image/png;base64,AAAA"])
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "owner_required"


def test_delete_unencodable_path(client):
    resp = client.delete("/api/media/avatar", json={"path": "/uploads/avatars/\ud800.png"})

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "deleted": False}


def test_trailing_newline_payload_is_rejected(client):
    resp = _upload(client, "data:image/png;base64,AAAA\n")

    assert resp.status_code == 400
    assert resp.get_json()["reason"] == "malformed"
