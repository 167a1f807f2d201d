"""HTTP client the admin overlay uses to talk to the Nursing Rocks API."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests

from nursing_rocks.core.edit_store import AdminEditStore


logger = logging.getLogger(__name__)

GENERIC_ERROR = "An unknown error occurred"


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _error_message(response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value

    return f"{GENERIC_ERROR} ({response.status_code})"


class AdminApiClient:
    def __init__(self, base_url: str = "", store: Optional[AdminEditStore] = None, session=None,
                 timeout: Optional[float] = None):
        self.base_url = base_url.rstrip("/")
        self.store = store or AdminEditStore()
        self.session = session or requests.Session()
        self.timeout = timeout

    # ==========================================================
    # TRANSPORT
    # ==========================================================
    def _headers(self) -> Dict[str, str]:
        token = self.store.auth_token
        return {"Authorization": f"Bearer {token}"} if token else {}

    def request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        try:
            response = self.session.request(method, url, headers=self._headers(), **kwargs)
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise ApiError(0, "Could not reach the server") from e

        if response.status_code in (401, 403):
            # stale or revoked admin credentials
            self.store.clear_admin_session()

        if response.status_code >= 400:
            message = _error_message(response)
            logger.error("%s %s returned %s: %s", method, path, response.status_code, message)
            raise ApiError(response.status_code, message)

        if not response.content:
            return None
        return response.json()

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        return self.request("POST", path, **kwargs)

    # ==========================================================
    # AUTH
    # ==========================================================
    def login(self, email: str, password: str) -> dict:
        data = self.post("/api/auth/login", json={"email": email, "password": password})

        if data.get("is_admin"):
            self.store.login_admin(data["access_token"])
        else:
            self.store.state.token = data["access_token"]

        return data

    def verify_pin(self, pin: str) -> bool:
        self.post("/api/auth/admin/verify-pin", json={"pin": pin})
        self.store.verify_pin()
        return True

    def me(self) -> dict:
        return self.get("/api/auth/me")

    # ==========================================================
    # GALLERY
    # ==========================================================
    def list_gallery(self) -> List[dict]:
        return self.get("/api/gallery")

    def list_event_images(self, event_id: int) -> List[dict]:
        return self.get(f"/api/gallery/event/{event_id}")

    def list_folder_images(self, folder_id: int) -> List[dict]:
        return self.get(f"/api/gallery/folder/{folder_id}")

    def get_gallery_image(self, image_id: int) -> dict:
        return self.get(f"/api/gallery/{image_id}")

    def upload_gallery_images(self, files: Iterable[Tuple[str, bytes, str]], alt_text: Optional[str] = None,
                              event_id: Optional[int] = None, folder_id: Optional[int] = None) -> List[dict]:
        form = {"alt_text": alt_text, "event_id": event_id, "folder_id": folder_id}
        return self.post(
            "/api/gallery/upload",
            data={k: str(v) for k, v in form.items() if v is not None},
            files=[("images", f) for f in files],
        )

    def update_gallery_image(self, image_id: int, **fields) -> dict:
        return self.request("PATCH", f"/api/gallery/{image_id}", json=fields)

    def delete_gallery_image(self, image_id: int) -> dict:
        return self.request("DELETE", f"/api/gallery/{image_id}")

    def reorder_gallery(self, ids: List[int]) -> dict:
        return self.request("PUT", "/api/gallery/reorder", json=ids)

    def replace_image(self, element_id: int, image_id: int, original_url: Optional[str] = None) -> dict:
        return self.post(
            f"/api/gallery/{element_id}/replace-with/{image_id}",
            json={"originalUrl": original_url},
        )

    def list_media_folders(self) -> List[dict]:
        return self.get("/api/media-folders")

    def create_media_folder(self, name: str, description: Optional[str] = None) -> dict:
        return self.post("/api/media-folders", json={"name": name, "description": description})

    # ==========================================================
    # VIDEOS
    # ==========================================================
    def list_videos(self, all: bool = False) -> dict:
        params = {"all": "true"} if all else None
        return self.get("/api/videos", params=params)

    def list_approval_records(self) -> List[dict]:
        return self.get("/api/admin/videos")

    def approve_video(self, public_id: str, admin_notes: Optional[str] = None) -> dict:
        return self.post("/api/admin/videos/approve", json={"public_id": public_id, "admin_notes": admin_notes})

    def unapprove_video(self, public_id: str) -> dict:
        return self.post("/api/admin/videos/unapprove", json={"public_id": public_id})

    def delete_video(self, public_id: str) -> dict:
        return self.post("/api/admin/videos/delete", json={"public_id": public_id})

    def sync_videos(self) -> dict:
        return self.post("/api/admin/videos/sync")

    def upload_thumbnail(self, public_id: str, jpeg: bytes) -> dict:
        filename = f"{public_id.split('/')[-1]}.jpg"
        return self.post(
            "/api/admin/videos/upload-thumbnail",
            data={"videoId": public_id},
            files={"thumbnail": (filename, jpeg, "image/jpeg")},
        )

    # ==========================================================
    # PAGE ELEMENTS
    # ==========================================================
    def list_page_elements(self, page: str) -> List[dict]:
        return self.get(f"/api/pages/{page}/elements")

    def save_element(self, page: str, element_key: str, content_html: str, style: Optional[str] = None,
                     tag_name: Optional[str] = None) -> dict:
        return self.request(
            "PUT",
            f"/api/admin/elements/{element_key}",
            json={"page": page, "content_html": content_html, "style": style, "tag_name": tag_name},
        )

    def create_element(self, page: str, element_key: str, tag_name: str, content_html: str,
                       style: Optional[str] = None, target_key: Optional[str] = None,
                       location: str = "after") -> dict:
        return self.post(
            "/api/admin/elements",
            json={
                "page": page,
                "element_key": element_key,
                "tag_name": tag_name,
                "content_html": content_html,
                "style": style,
                "target_key": target_key,
                "location": location,
            },
        )
