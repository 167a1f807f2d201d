"""
Tests for Nursing Rocks API endpoints.

Tests cover:
- Health check
- Authentication (login, admin PIN, me)
- Gallery (list, upload, update, delete, replace-with)
- Media folders
- Video approval (public listing, approve, unapprove, delete, sync, poster upload)
- Page elements (list, save, create)
"""

import io
import uuid
from datetime import datetime, timezone

import pytest
from botocore.exceptions import ClientError
from PIL import Image

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_PIN
from nursing_rocks.auth import create_user, ensure_admin_user
from nursing_rocks.config import settings
from nursing_rocks.main import app
from nursing_rocks.models.approved_video import ApprovedVideo
from nursing_rocks.models.page_element import PageElement
from nursing_rocks.routers.videos_router import get_provider
from nursing_rocks.video.provider import B2VideoProvider


def _png_bytes(size=(8, 8)):
    buffer = io.BytesIO()
    Image.new("RGB", size, (200, 30, 90)).save(buffer, format="PNG")
    return buffer.getvalue()


def _page():
    return f"page-{uuid.uuid4().hex[:8]}"


class TestHealthCheck:
    def test_root_returns_message(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "running" in response.json()["message"]


class TestAuth:
    """Tests for /api/auth endpoints."""

    def test_login_returns_admin_token(self, client):
        response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        assert response.status_code == 200

        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["is_admin"] is True
        assert data["access_token"]

    def test_login_ignores_email_case(self, client, db):
        email = f"Nurse-{uuid.uuid4().hex[:6]}@Example.com"
        user = create_user(db, email=email, password="shift-password")
        assert user.email == email.lower()

        response = client.post("/api/auth/login", json={"email": email, "password": "shift-password"})
        assert response.status_code == 200

    def test_bootstrap_admin_with_mixed_case_email(self, client, db):
        email = f" Charge-{uuid.uuid4().hex[:6]}@Site.com "
        admin = ensure_admin_user(db, email=email, password="charge-password")
        assert admin.is_admin
        assert ensure_admin_user(db, email=email.strip().upper(), password="other").id == admin.id

        response = client.post("/api/auth/login", json={"email": email.strip(), "password": "charge-password"})
        assert response.status_code == 200
        assert response.json()["is_admin"] is True

    def test_login_with_wrong_password(self, client):
        response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "nope"})
        assert response.status_code == 401

    def test_verify_pin(self, client, admin_headers):
        response = client.post("/api/auth/admin/verify-pin", json={"pin": ADMIN_PIN}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"verified": True}

    def test_verify_wrong_pin(self, client, admin_headers):
        response = client.post("/api/auth/admin/verify-pin", json={"pin": "0000"}, headers=admin_headers)
        assert response.status_code == 400

    def test_verify_pin_requires_admin(self, client, user_headers):
        response = client.post("/api/auth/admin/verify-pin", json={"pin": ADMIN_PIN}, headers=user_headers)
        assert response.status_code == 403

    def test_me(self, client, admin_headers):
        response = client.get("/api/auth/me", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["email"] == ADMIN_EMAIL

    def test_me_with_bad_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestGallery:
    """Tests for /api/gallery endpoints."""

    def test_list_includes_created_image(self, client, make_image):
        image = make_image()

        response = client.get("/api/gallery")
        assert response.status_code == 200
        assert image.id in [i["id"] for i in response.json()]

    def test_get_missing_image(self, client):
        response = client.get("/api/gallery/999999")
        assert response.status_code == 404

    def test_upload_requires_admin(self, client, user_headers):
        response = client.post(
            "/api/gallery/upload",
            files=[("images", ("a.png", _png_bytes(), "image/png"))],
            headers=user_headers,
        )
        assert response.status_code == 403

    def test_upload_images(self, client, admin_headers):
        response = client.post(
            "/api/gallery/upload",
            files=[
                ("images", ("first.png", _png_bytes(), "image/png")),
                ("images", ("second.png", _png_bytes(), "image/png")),
            ],
            data={"alt_text": "Nurses at the concert"},
            headers=admin_headers,
        )
        assert response.status_code == 201

        data = response.json()
        assert len(data) == 2
        assert all(i["image_url"].startswith("/media/gallery/") for i in data)
        assert data[0]["alt_text"] == "Nurses at the concert"
        assert data[1]["sort_order"] == data[0]["sort_order"] + 1

        served = client.get(data[0]["image_url"])
        assert served.status_code == 200

    def test_upload_rejects_unknown_extension(self, client, admin_headers):
        response = client.post(
            "/api/gallery/upload",
            files=[("images", ("notes.txt", b"hello", "text/plain"))],
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_update_metadata(self, client, admin_headers, make_image):
        image = make_image()

        response = client.patch(
            f"/api/gallery/{image.id}",
            json={"alt_text": "Updated", "metadata": {"tags": ["stage"]}},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["alt_text"] == "Updated"
        assert response.json()["metadata"] == {"tags": ["stage"]}

    def test_delete_image(self, client, admin_headers, make_image):
        image = make_image()

        response = client.delete(f"/api/gallery/{image.id}", headers=admin_headers)
        assert response.status_code == 200
        assert client.get(f"/api/gallery/{image.id}").status_code == 404

    def test_reorder(self, client, admin_headers, make_image):
        first, second = make_image(), make_image()

        response = client.put("/api/gallery/reorder", json=[second.id, first.id], headers=admin_headers)
        assert response.status_code == 200

        assert client.get(f"/api/gallery/{second.id}").json()["sort_order"] == 0
        assert client.get(f"/api/gallery/{first.id}").json()["sort_order"] == 1


class TestReplaceWith:
    """Tests for POST /api/gallery/{id}/replace-with/{replacementId}."""

    def test_copies_replacement_onto_original(self, client, admin_headers, make_image):
        original = make_image(alt_text="old")
        replacement = make_image(alt_text="new", extra={"credit": "Jane"})

        response = client.post(
            f"/api/gallery/{original.id}/replace-with/{replacement.id}",
            json={"originalUrl": original.image_url},
            headers=admin_headers,
        )
        assert response.status_code == 200

        data = response.json()
        assert data["id"] == original.id
        assert data["originalUrl"] == original.image_url
        assert data["image_url"] == replacement.image_url

        updated = client.get(f"/api/gallery/{original.id}").json()
        assert updated["image_url"] == replacement.image_url
        assert updated["alt_text"] == "new"
        assert updated["metadata"] == {"credit": "Jane"}

    def test_updates_page_elements_by_id_and_exact_path(self, client, admin_headers, db, make_image):
        original = make_image()
        replacement = make_image()
        page = _page()

        keyed = PageElement(page=page, element_key="hero", tag_name="img",
                            image_url="/media/gallery/elsewhere.jpg", gallery_image_id=original.id)
        same_path = PageElement(page=page, element_key="card", tag_name="img",
                                image_url=f"{original.image_url}?v=123")
        lookalike = PageElement(page=page, element_key="other", tag_name="img",
                                image_url=f"{original.image_url}.bak")
        db.add_all([keyed, same_path, lookalike])
        db.commit()

        response = client.post(
            f"/api/gallery/{original.id}/replace-with/{replacement.id}",
            json={"originalUrl": original.image_url},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["updated_elements"] == 2

        elements = {e["element_key"]: e for e in client.get(f"/api/pages/{page}/elements").json()}
        assert elements["hero"]["image_url"] == replacement.image_url
        assert elements["card"]["image_url"] == replacement.image_url
        assert elements["other"]["image_url"] == f"{original.image_url}.bak"

    def test_external_original_requires_url(self, client, admin_headers, make_image):
        replacement = make_image()

        response = client.post(f"/api/gallery/-1/replace-with/{replacement.id}", json={}, headers=admin_headers)
        assert response.status_code == 400

    def test_external_original(self, client, admin_headers, make_image):
        replacement = make_image()

        response = client.post(
            f"/api/gallery/-1/replace-with/{replacement.id}",
            json={"originalUrl": "https://cdn.example.com/stock.jpg"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["id"] == -1
        assert response.json()["image_url"] == replacement.image_url

    def test_missing_replacement(self, client, admin_headers, make_image):
        original = make_image()

        response = client.post(f"/api/gallery/{original.id}/replace-with/999999", headers=admin_headers)
        assert response.status_code == 404

    def test_requires_admin(self, client, make_image):
        original, replacement = make_image(), make_image()

        response = client.post(f"/api/gallery/{original.id}/replace-with/{replacement.id}")
        assert response.status_code == 401


class TestMediaFolders:
    def test_create_and_list(self, client, admin_headers):
        name = f"Concerts {uuid.uuid4().hex[:6]}"

        response = client.post("/api/media-folders", json={"name": name}, headers=admin_headers)
        assert response.status_code == 201
        folder_id = response.json()["id"]

        assert name in [f["name"] for f in client.get("/api/media-folders").json()]
        assert client.get(f"/api/gallery/folder/{folder_id}").json() == []

    def test_duplicate_name(self, client, admin_headers):
        name = f"Dup {uuid.uuid4().hex[:6]}"
        client.post("/api/media-folders", json={"name": name}, headers=admin_headers)

        response = client.post("/api/media-folders", json={"name": name}, headers=admin_headers)
        assert response.status_code == 409


class TestVideos:
    """Tests for /api/videos and /api/admin/videos."""

    def _public_ids(self, response):
        return [v["public_id"] for v in response.json()["resources"]]

    def test_pending_video_hidden_from_public(self, client, video_file):
        response = client.get("/api/videos")
        assert response.status_code == 200
        assert video_file not in self._public_ids(response)

    def test_all_requires_admin(self, client):
        response = client.get("/api/videos", params={"all": "true"})
        assert response.status_code == 401

    def test_all_lists_pending_for_admin(self, client, admin_headers, video_file):
        response = client.get("/api/videos", params={"all": "true"}, headers=admin_headers)
        assert response.status_code == 200
        assert video_file in self._public_ids(response)
        assert response.json()["total"] == len(response.json()["resources"])

    def test_approve_makes_video_public(self, client, admin_headers, video_file):
        response = client.post(
            "/api/admin/videos/approve",
            json={"public_id": video_file, "admin_notes": "Great set"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["approved"] is True
        assert response.json()["admin_notes"] == "Great set"

        assert video_file in self._public_ids(client.get("/api/videos"))

    def test_unapprove_is_idempotent(self, client, admin_headers, db, video_file):
        for _ in range(2):
            response = client.post("/api/admin/videos/unapprove", json={"public_id": video_file},
                                   headers=admin_headers)
            assert response.status_code == 200
            assert response.json()["approved"] is False

        assert db.query(ApprovedVideo).filter(ApprovedVideo.public_id == video_file).count() == 1
        assert video_file not in self._public_ids(client.get("/api/videos"))

    def test_delete_hides_video(self, client, admin_headers, video_file):
        client.post("/api/admin/videos/approve", json={"public_id": video_file}, headers=admin_headers)

        response = client.post("/api/admin/videos/delete", json={"public_id": video_file}, headers=admin_headers)
        assert response.status_code == 200

        listed = client.get("/api/videos", params={"all": "true"}, headers=admin_headers)
        assert video_file not in self._public_ids(listed)

        records = client.get("/api/admin/videos", headers=admin_headers).json()
        assert video_file not in [r["public_id"] for r in records]

    def test_sync_adds_missing_records(self, client, admin_headers, video_file):
        first = client.post("/api/admin/videos/sync", headers=admin_headers)
        assert first.status_code == 200
        assert first.json()["total"] >= 1

        second = client.post("/api/admin/videos/sync", headers=admin_headers)
        assert second.json()["synced"] == 0

        records = client.get("/api/admin/videos", headers=admin_headers).json()
        record = next(r for r in records if r["public_id"] == video_file)
        assert record["approved"] is False

    def test_upload_thumbnail(self, client, admin_headers, video_file):
        response = client.post(
            "/api/admin/videos/upload-thumbnail",
            data={"videoId": video_file},
            files={"thumbnail": (f"{video_file}.jpg", _png_bytes(), "image/jpeg")},
            headers=admin_headers,
        )
        assert response.status_code == 200

        data = response.json()
        assert data["success"] is True
        assert data["poster_url"].startswith("/media/videos/posters/")

        records = client.get("/api/admin/videos", headers=admin_headers).json()
        record = next(r for r in records if r["public_id"] == video_file)
        assert record["poster_url"] == data["poster_url"]

    def test_admin_routes_require_admin(self, client, user_headers):
        response = client.post("/api/admin/videos/approve", json={"public_id": "x"}, headers=user_headers)
        assert response.status_code == 403


class FakePaginator:
    def __init__(self, pages, error=None):
        self.pages = pages
        self.error = error
        self.calls = []

    def paginate(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return iter(self.pages)


class FakeS3Client:
    def __init__(self, paginator):
        self.paginator = paginator

    def get_paginator(self, name):
        assert name == "list_objects_v2"
        return self.paginator


class TestB2VideoProvider:
    """Tests for the Backblaze B2 listing behind /api/videos."""

    @pytest.fixture(autouse=True)
    def b2_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "B2_BUCKET_NAME", "nursing-rocks")
        monkeypatch.setattr(settings, "B2_ENDPOINT_URL", "https://s3.us-west-004.backblazeb2.com")
        monkeypatch.setattr(settings, "B2_VIDEO_PREFIX", "videos/")
        monkeypatch.setattr(settings, "VIDEO_CDN_BASE_URL", "https://cdn.nursingrocks.test")

    @pytest.fixture
    def use_provider(self):
        def install(provider):
            app.dependency_overrides[get_provider] = lambda: provider
            return provider

        yield install
        app.dependency_overrides.pop(get_provider, None)

    def _pages(self):
        return [
            {"Contents": [
                {"Key": "videos/2024/opening-set.mp4", "Size": 2048,
                 "LastModified": datetime(2024, 5, 1, tzinfo=timezone.utc)},
                {"Key": "videos/2024/notes.txt", "Size": 12},
            ]},
            {"Contents": [{"Key": "videos/encore.MOV", "Size": 4096}]},
            {},
        ]

    def test_lists_video_objects(self):
        paginator = FakePaginator(self._pages())
        provider = B2VideoProvider(client=FakeS3Client(paginator))

        videos = provider.list_source_videos()

        assert [v.public_id for v in videos] == ["2024/opening-set", "encore"]
        assert paginator.calls == [{"Bucket": "nursing-rocks", "Prefix": "videos/"}]

        first = videos[0]
        assert first.format == "mp4"
        assert first.bytes == 2048
        assert first.asset_folder == "2024"
        assert first.url == "https://cdn.nursingrocks.test/videos/2024/opening-set.mp4"
        assert first.secure_url == first.url
        assert first.hls_url == "https://cdn.nursingrocks.test/hls/2024/opening-set/master.m3u8"
        assert first.created_at == datetime(2024, 5, 1, tzinfo=timezone.utc)

        assert videos[1].format == "mov"
        assert videos[1].asset_folder is None

    def test_listing_without_cdn_uses_bucket_url(self, monkeypatch):
        monkeypatch.setattr(settings, "VIDEO_CDN_BASE_URL", "")
        provider = B2VideoProvider(client=FakeS3Client(FakePaginator(self._pages())))

        assert provider.list_source_videos()[1].url == (
            "https://s3.us-west-004.backblazeb2.com/nursing-rocks/videos/encore.MOV"
        )

    def test_admin_listing_served_from_b2(self, client, admin_headers, use_provider):
        use_provider(B2VideoProvider(client=FakeS3Client(FakePaginator(self._pages()))))

        response = client.get("/api/videos", params={"all": "true"}, headers=admin_headers)
        assert response.status_code == 200

        ids = [v["public_id"] for v in response.json()["resources"]]
        assert ids == ["2024/opening-set", "encore"]

    def test_client_error_becomes_bad_gateway(self, client, admin_headers, use_provider):
        error = ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "ListObjectsV2")
        use_provider(B2VideoProvider(client=FakeS3Client(FakePaginator([], error=error))))

        response = client.get("/api/videos")
        assert response.status_code == 502
        assert response.json()["detail"] == "Could not list videos from storage"

        response = client.post("/api/admin/videos/sync", headers=admin_headers)
        assert response.status_code == 502


class TestPageElements:
    """Tests for page element routes."""

    def test_save_creates_then_updates(self, client, admin_headers):
        page = _page()

        response = client.put(
            "/api/admin/elements/intro",
            json={"page": page, "tag_name": "P", "content_html": "Hello<br>nurses"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["tag_name"] == "p"

        response = client.put(
            "/api/admin/elements/intro",
            json={"page": page, "content_html": "Bye", "style": "color: red"},
            headers=admin_headers,
        )
        assert response.status_code == 200

        elements = client.get(f"/api/pages/{page}/elements").json()
        assert len(elements) == 1
        assert elements[0]["content_html"] == "Bye"
        assert elements[0]["style"] == "color: red"

    def test_save_rejects_blank_content(self, client, admin_headers):
        response = client.put(
            "/api/admin/elements/intro",
            json={"page": _page(), "content_html": "   "},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_save_requires_token(self, client):
        response = client.put("/api/admin/elements/intro", json={"page": _page(), "content_html": "x"})
        assert response.status_code == 401

    def test_create_relative_to_target(self, client, admin_headers):
        page = _page()

        for key in ("a", "b"):
            response = client.post(
                "/api/admin/elements",
                json={"page": page, "element_key": key, "content_html": key.upper()},
                headers=admin_headers,
            )
            assert response.status_code == 201

        client.post(
            "/api/admin/elements",
            json={"page": page, "element_key": "c", "tag_name": "h2", "content_html": "C",
                  "target_key": "b", "location": "before"},
            headers=admin_headers,
        )
        client.post(
            "/api/admin/elements",
            json={"page": page, "element_key": "child", "content_html": "inside",
                  "target_key": "a", "location": "append"},
            headers=admin_headers,
        )

        elements = client.get(f"/api/pages/{page}/elements").json()
        roots = sorted((e for e in elements if e["parent_key"] is None), key=lambda e: e["position"])
        assert [e["element_key"] for e in roots] == ["a", "c", "b"]

        child = next(e for e in elements if e["element_key"] == "child")
        assert child["parent_key"] == "a"

    def test_create_duplicate_key(self, client, admin_headers):
        page = _page()
        payload = {"page": page, "element_key": "dup", "content_html": "x"}

        client.post("/api/admin/elements", json=payload, headers=admin_headers)
        response = client.post("/api/admin/elements", json=payload, headers=admin_headers)
        assert response.status_code == 409

    def test_create_rejects_unknown_tag(self, client, admin_headers):
        response = client.post(
            "/api/admin/elements",
            json={"page": _page(), "element_key": "x", "tag_name": "script", "content_html": "x"},
            headers=admin_headers,
        )
        assert response.status_code == 422
