"""
Pytest configuration and fixtures for Nursing Rocks API tests.
"""

import os
import shutil
import tempfile
import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing the app
_TEST_ROOT = tempfile.mkdtemp(prefix="nursing_rocks_test_")

os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT}/test.db"
os.environ["LOCAL_MEDIA_PATH"] = os.path.join(_TEST_ROOT, "media")
os.environ["STORAGE_BACKEND"] = "local"
os.environ["VIDEO_PROVIDER"] = "local"
os.environ["ADMIN_EMAIL"] = "admin@nursingrocks.test"
os.environ["ADMIN_PASSWORD"] = "admin-password-123"
os.environ["ADMIN_PIN"] = "4321"
os.environ["SECRET_KEY"] = "test-secret-key"

from nursing_rocks.main import app  # noqa: E402
from nursing_rocks.auth import create_access_token, create_user  # noqa: E402
from nursing_rocks.client.api import AdminApiClient  # noqa: E402
from nursing_rocks.client.notifications import Notifier  # noqa: E402
from nursing_rocks.config import settings  # noqa: E402
from nursing_rocks.core.edit_store import AdminEditStore  # noqa: E402
from nursing_rocks.database import SessionLocal  # noqa: E402
from nursing_rocks.models.gallery_image import GalleryImage  # noqa: E402


ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]
ADMIN_PIN = os.environ["ADMIN_PIN"]


@pytest.fixture(scope="session", autouse=True)
def test_root():
    """Temporary database and media root, removed after the session."""
    yield _TEST_ROOT
    shutil.rmtree(_TEST_ROOT, ignore_errors=True)


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def admin_token(client):
    """Log in as the bootstrap admin and return the bearer token."""
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return response.json()["access_token"]


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def user_headers(db):
    """Headers for a regular (non-admin) account."""
    user = create_user(db, email=f"user-{uuid.uuid4().hex[:8]}@nursingrocks.test", password="user-password")
    token = create_access_token({"sub": user.id, "admin": False})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_image(db):
    """Factory for gallery rows with unique media paths."""

    def _make(name=None, **fields):
        name = name or uuid.uuid4().hex[:10]
        url = f"/media/gallery/{name}.jpg"
        image = GalleryImage(
            image_url=fields.pop("image_url", url),
            thumbnail_url=fields.pop("thumbnail_url", url),
            alt_text=fields.pop("alt_text", name),
            **fields,
        )
        db.add(image)
        db.commit()
        db.refresh(image)
        return image

    return _make


@pytest.fixture
def video_file():
    """A fake video in the local provider folder; yields its public_id."""
    videos = Path(settings.LOCAL_MEDIA_PATH) / "videos"
    videos.mkdir(parents=True, exist_ok=True)

    public_id = f"clip-{uuid.uuid4().hex[:8]}"
    path = videos / f"{public_id}.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42")

    yield public_id

    path.unlink(missing_ok=True)


@pytest.fixture
def store(admin_token):
    """Edit store for a logged-in admin with edit mode on."""
    store = AdminEditStore()
    store.login_admin(admin_token)
    store.verify_pin()
    store.set_admin_mode(True)
    return store


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def api(client, store):
    """API client driving the app through the test client."""
    return AdminApiClient(store=store, session=client)
