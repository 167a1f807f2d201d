import logging
from typing import Callable, List, Optional, Tuple

from nursing_rocks.client.api import GENERIC_ERROR, AdminApiClient, ApiError
from nursing_rocks.client.notifications import Notifier
from nursing_rocks.core.page_document import PageDocument
from nursing_rocks.core.video_approval import ApprovalCache, join_videos
from nursing_rocks.video.thumbnail import ThumbnailCaptureError, capture_frame


logger = logging.getLogger(__name__)


class VideoApprovalController:
    """
    Admin dashboard for approving provider videos.

    ``videos`` caches the provider listing (``/api/videos?all=true``) and
    ``cache`` the approval records. Mutations patch the caches first and roll
    them back if the request fails.
    """

    def __init__(self, api: AdminApiClient, notifier: Optional[Notifier] = None,
                 document: Optional[PageDocument] = None, grabber=None):
        self.api = api
        self.notifier = notifier or Notifier()
        self.document = document
        self.grabber = grabber

        self.videos: List[dict] = []
        self.cache = ApprovalCache()
        self.pending_id: Optional[str] = None

    # ==========================================================
    # LOAD
    # ==========================================================
    def refresh(self) -> List[Tuple[dict, Optional[dict]]]:
        try:
            self.videos = self.api.list_videos(all=True)["resources"]
            self.cache.replace_all(self.api.list_approval_records())
        except ApiError as e:
            self.notifier.error("Failed to load videos", e.message or GENERIC_ERROR)
        return self.rows()

    def rows(self) -> List[Tuple[dict, Optional[dict]]]:
        return join_videos(self.videos, self.cache.records())

    # ==========================================================
    # MUTATIONS
    # ==========================================================
    def _mutate(self, public_id: str, patch: Callable[[], None], call: Callable[[], dict],
                failure_title: str) -> Optional[dict]:
        if self.pending_id == public_id:
            logger.warning("Ignoring second update for %s while one is in flight", public_id)
            return None

        self.pending_id = public_id
        videos = list(self.videos)
        try:
            with self.cache.transaction():
                patch()
                return call()
        except ApiError as e:
            self.videos = videos
            self.notifier.error(failure_title, e.message or GENERIC_ERROR)
            return None
        finally:
            self.pending_id = None

    def approve(self, public_id: str, admin_notes: Optional[str] = None) -> bool:
        record = self._mutate(
            public_id,
            lambda: self.cache.approve(public_id, admin_notes),
            lambda: self.api.approve_video(public_id, admin_notes),
            "Approval Failed",
        )
        if record is None:
            return False

        self.cache.merge(record)
        self.notifier.toast("Video Approved", "Video is now visible to users")
        return True

    def unapprove(self, public_id: str) -> bool:
        record = self._mutate(
            public_id,
            lambda: self.cache.unapprove(public_id),
            lambda: self.api.unapprove_video(public_id),
            "Unapproval Failed",
        )
        if record is None:
            return False

        self.cache.merge(record)
        self.notifier.toast("Video Unapproved", "Video is now hidden from users")
        return True

    def delete(self, public_id: str) -> bool:
        def patch():
            self.cache.remove(public_id)
            self.videos = [v for v in self.videos if v["public_id"] != public_id]

        result = self._mutate(public_id, patch, lambda: self.api.delete_video(public_id), "Delete Failed")
        if result is None:
            return False

        self.notifier.toast("Video Removed", "Video removed from dashboard (file kept on server)")
        return True

    def sync(self) -> Optional[int]:
        try:
            result = self.api.sync_videos()
        except ApiError as e:
            logger.error("Video sync failed: %s", e.message)
            self.notifier.error("Sync Failed", "Could not sync videos from storage")
            return None

        self.notifier.toast("Videos Synced", f"Synced {result['synced']} new videos")
        self.refresh()
        return result["synced"]

    # ==========================================================
    # POSTER FRAMES
    # ==========================================================
    def capture_thumbnail(self, public_id: str) -> Optional[str]:
        if self.document is None:
            self.notifier.error("Capture Failed", "No video player is open")
            return None

        try:
            jpeg = capture_frame(self.document, public_id, grabber=self.grabber)
        except ThumbnailCaptureError as e:
            self.notifier.error("Capture Failed", str(e))
            return None

        try:
            result = self.api.upload_thumbnail(public_id, jpeg)
        except ApiError as e:
            self.notifier.error("Upload Failed", e.message or GENERIC_ERROR)
            return None

        poster_url = result["poster_url"]
        record = self.cache.get(public_id)
        if record is not None:
            record["poster_url"] = poster_url
        for video in self.videos:
            if video["public_id"] == public_id:
                video["poster_url"] = poster_url

        self.notifier.toast("Thumbnail Saved!", f"Thumbnail captured for {public_id.split('/')[-1]}")
        return poster_url
