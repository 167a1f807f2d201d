"""
Media storage for gallery uploads and video poster frames.

Files go to ``LOCAL_MEDIA_PATH`` (served under ``/media``) or to a Supabase
storage bucket, picked by ``STORAGE_BACKEND``. Callers only ever see the
public path or URL that ``save_file`` returns.
"""

import logging
import os
import re
import shutil
import uuid
from pathlib import Path

from fastapi import UploadFile
from nursing_rocks.config import settings

if settings.STORAGE_BACKEND == "supabase":
    from nursing_rocks.supabase_client import supabase


logger = logging.getLogger(__name__)

MEDIA_PREFIX = "/media/"

MAX_IMAGE_SIZE = 10 * 1024 * 1024
MAX_VIDEO_SIZE = 200 * 1024 * 1024

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}

GALLERY_FOLDER = "gallery"
POSTER_FOLDER = "videos/posters"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]+")


# ==========================================================
# VALIDATION
# ==========================================================
def get_file_size(file: UploadFile) -> int:
    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)
    return size


def validate_file_size(file: UploadFile):
    """Returns ``(ok, error)`` using the limit for the upload's content type."""
    size = get_file_size(file)
    content_type = file.content_type or ""

    if content_type.startswith("image/") and size > MAX_IMAGE_SIZE:
        return False, f"Image too large (max {MAX_IMAGE_SIZE // (1024 * 1024)}MB)."
    if content_type.startswith("video/") and size > MAX_VIDEO_SIZE:
        return False, f"Video too large (max {MAX_VIDEO_SIZE // (1024 * 1024)}MB)."

    return True, None


def is_image_filename(filename: str | None) -> bool:
    return os.path.splitext(filename or "")[1].lower() in IMAGE_EXTENSIONS


def safe_filename(name: str, fallback: str = "file") -> str:
    cleaned = _UNSAFE_CHARS.sub("-", name.strip()).strip("-_.")
    return cleaned or fallback


def extract_storage_key(url_or_path: str) -> str:
    """Public Supabase URL or stored path → bucket key."""
    if not url_or_path:
        return ""

    marker = f"/storage/v1/object/public/{settings.SUPABASE_BUCKET}/"
    if url_or_path.startswith("http") and marker in url_or_path:
        return url_or_path.split(marker, 1)[1].split("?")[0]

    return url_or_path.strip("/")


# ==========================================================
# BACKENDS
# ==========================================================
def _save_local(key: str, file: UploadFile) -> str:
    target = Path(settings.LOCAL_MEDIA_PATH) / key
    target.parent.mkdir(parents=True, exist_ok=True)

    file.file.seek(0)
    with open(target, "wb") as out:
        shutil.copyfileobj(file.file, out)

    return MEDIA_PREFIX + key


def _save_supabase(key: str, file: UploadFile) -> str:
    file.file.seek(0)
    contents = file.file.read()
    if not contents:
        raise RuntimeError("File is empty – nothing to upload")

    bucket = supabase.storage.from_(settings.SUPABASE_BUCKET)
    res = bucket.upload(
        key,
        contents,
        {"content-type": file.content_type or "application/octet-stream", "upsert": "true"},
    )
    if not res:
        raise RuntimeError("Supabase upload failed (no response)")

    logger.info("Supabase upload OK: %s", key)
    return bucket.get_public_url(key)


def _delete_local(path: str) -> None:
    if not path.startswith(MEDIA_PREFIX):
        return

    fs_path = Path(settings.LOCAL_MEDIA_PATH) / path[len(MEDIA_PREFIX):].split("?")[0]
    if not fs_path.exists():
        return

    try:
        fs_path.unlink()
    except OSError as e:
        logger.warning("Local delete failed for %s: %s", fs_path, e)


def _delete_supabase(path: str) -> None:
    key = extract_storage_key(path)
    try:
        supabase.storage.from_(settings.SUPABASE_BUCKET).remove([key])
        logger.info("Supabase delete OK: %s", key)
    except Exception as e:
        logger.warning("Supabase delete failed for %s: %s", key, e)


# ==========================================================
# SAVE / DELETE
# ==========================================================
def save_file(folder: str, file: UploadFile, filename: str | None = None) -> str:
    filename = filename or f"{uuid.uuid4().hex}_{safe_filename(file.filename or 'upload')}"
    key = f"{folder.strip('/')}/{filename}"

    if settings.STORAGE_BACKEND == "local":
        return _save_local(key, file)
    if settings.STORAGE_BACKEND == "supabase":
        return _save_supabase(key, file)
    raise ValueError("Invalid STORAGE_BACKEND")


def delete_file(path: str) -> None:
    if not path:
        return

    if settings.STORAGE_BACKEND == "local":
        _delete_local(path)
    elif settings.STORAGE_BACKEND == "supabase":
        _delete_supabase(path)


# ==========================================================
# DOMAIN HELPERS
# ==========================================================
def save_gallery_image(file: UploadFile) -> str:
    return save_file(GALLERY_FOLDER, file)


def save_poster_frame(public_id: str, file: UploadFile) -> str:
    """Stores a captured frame as ``<public_id>.jpg``; nested ids are flattened."""
    filename = f"{safe_filename(public_id.replace('/', '__'), 'video')}.jpg"
    return save_file(POSTER_FOLDER, file, filename)
