"""
Storage providers that list source videos for the approval dashboard.

A provider only knows what files exist; approval state lives in the
``approved_videos`` table and is joined on ``public_id``.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from nursing_rocks.config import settings
from nursing_rocks.schemas.video_schema import VideoResource
from nursing_rocks.utils.urls import absolute_media_url


logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = {".mp4", ".mov", ".m4v", ".webm"}


class VideoProvider:
    id = "base"

    def list_source_videos(self, prefix: Optional[str] = None) -> List[VideoResource]:
        raise NotImplementedError

    def get_hls_url(self, video_id: str) -> str:
        return f"{settings.VIDEO_CDN_BASE_URL}/hls/{video_id}/master.m3u8"

    def get_poster_url(self, video_id: str) -> str:
        return f"{settings.VIDEO_CDN_BASE_URL}/poster/{video_id}.jpg"


# ==========================================================
# LOCAL FOLDER
# ==========================================================
class LocalVideoProvider(VideoProvider):
    """Videos under ``<LOCAL_MEDIA_PATH>/videos``; public_id is the path below it without extension."""

    id = "local"

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root else Path(settings.LOCAL_MEDIA_PATH) / "videos"

    def list_source_videos(self, prefix: Optional[str] = None) -> List[VideoResource]:
        if not self.root.exists():
            return []

        resources = []
        for path in sorted(self.root.rglob("*")):
            if not path.is_file() or path.suffix.lower() not in VIDEO_EXTENSIONS:
                continue

            rel = path.relative_to(self.root)
            public_id = rel.with_suffix("").as_posix()
            if prefix and not public_id.startswith(prefix):
                continue

            stat = path.stat()
            url = absolute_media_url(f"/media/videos/{rel.as_posix()}")
            folder = rel.parent.as_posix()

            resources.append(VideoResource(
                public_id=public_id,
                asset_id=public_id,
                format=path.suffix.lstrip(".").lower(),
                created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                bytes=stat.st_size,
                url=url,
                secure_url=url,
                asset_folder=None if folder == "." else folder,
            ))

        return resources

    def get_poster_url(self, video_id: str) -> str:
        return absolute_media_url(f"/media/videos/posters/{video_id}.jpg")


# ==========================================================
# BACKBLAZE B2 (S3 API)
# ==========================================================
class B2VideoProvider(VideoProvider):
    id = "b2"

    def __init__(self, client=None):
        self.bucket = settings.B2_BUCKET_NAME
        self._client = client

    @property
    def client(self):
        if self._client is None:
            import boto3

            self._client = boto3.client(
                "s3",
                endpoint_url=settings.B2_ENDPOINT_URL or None,
                aws_access_key_id=settings.B2_KEY_ID or None,
                aws_secret_access_key=settings.B2_APPLICATION_KEY or None,
            )
        return self._client

    def _public_url(self, key: str) -> str:
        if settings.VIDEO_CDN_BASE_URL:
            return f"{settings.VIDEO_CDN_BASE_URL}/{key}"
        return f"{settings.B2_ENDPOINT_URL.rstrip('/')}/{self.bucket}/{key}"

    def list_source_videos(self, prefix: Optional[str] = None) -> List[VideoResource]:
        from botocore.exceptions import ClientError

        base_prefix = settings.B2_VIDEO_PREFIX
        resources = []

        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=base_prefix + (prefix or "")):
                for obj in page.get("Contents", []):
                    key = obj["Key"]
                    suffix = Path(key).suffix.lower()
                    if suffix not in VIDEO_EXTENSIONS:
                        continue

                    public_id = key[len(base_prefix):].rsplit(".", 1)[0]
                    url = self._public_url(key)
                    folder = public_id.rsplit("/", 1)[0] if "/" in public_id else None

                    resources.append(VideoResource(
                        public_id=public_id,
                        asset_id=public_id,
                        format=suffix.lstrip("."),
                        created_at=obj.get("LastModified"),
                        bytes=obj.get("Size", 0),
                        url=url,
                        secure_url=url,
                        asset_folder=folder,
                        hls_url=self.get_hls_url(public_id),
                    ))
        except ClientError as e:
            logger.error("B2 listing failed: %s", e)
            raise RuntimeError("Could not list videos from storage") from e

        return resources


def get_video_provider() -> VideoProvider:
    if settings.VIDEO_PROVIDER == "b2":
        return B2VideoProvider()
    if settings.VIDEO_PROVIDER == "local":
        return LocalVideoProvider()
    raise ValueError(f"Invalid VIDEO_PROVIDER: {settings.VIDEO_PROVIDER}")
