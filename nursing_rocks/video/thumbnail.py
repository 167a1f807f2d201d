"""Poster-frame capture from a video element on the admin dashboard."""

import io
import logging
import math
import subprocess

from PIL import Image

from nursing_rocks.config import settings
from nursing_rocks.core.page_document import ElementNode, PageDocument


logger = logging.getLogger(__name__)

FFMPEG_PATH = "ffmpeg"


class ThumbnailCaptureError(Exception):
    pass


# =====================================================================
# FRAME GRABBING
# =====================================================================

class FfmpegFrameGrabber:
    """Decodes one frame at ``timestamp`` seconds from a file path or URL."""

    def __init__(self, ffmpeg_path: str = FFMPEG_PATH):
        self.ffmpeg_path = ffmpeg_path

    def grab(self, source: str, timestamp: float) -> Image.Image:
        cmd = [
            self.ffmpeg_path,
            "-ss", f"{max(timestamp, 0.0):.3f}",
            "-i", source,
            "-frames:v", "1",
            "-f", "image2pipe",
            "-vcodec", "png",
            "-",
        ]

        try:
            result = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error("FFMPEG frame grab failed for %s: %s", source, e)
            raise ThumbnailCaptureError("Could not read a frame from the video") from e

        if not result.stdout:
            raise ThumbnailCaptureError("Could not read a frame from the video")

        return Image.open(io.BytesIO(result.stdout))


# =====================================================================
# CAPTURE
# =====================================================================

def find_video(document: PageDocument, public_id: str) -> ElementNode:
    containers = document.query_by_attribute("data-video-id", public_id)
    if not containers:
        raise ThumbnailCaptureError("Video container not found.")

    container = containers[0]
    if container.tag_name == "VIDEO":
        return container

    stack = list(document.children(container))
    while stack:
        node = stack.pop(0)
        if node.tag_name == "VIDEO":
            return node
        stack.extend(document.children(node))

    raise ThumbnailCaptureError(
        "Video element not found. Please click the thumbnail to load the video first."
    )


def _dimension(node: ElementNode, name: str) -> int:
    """Pixel size from a player attribute, or 0 unless it parses to a positive size."""
    try:
        size = int(float(node.get(name) or 0))
    except (ValueError, OverflowError):
        return 0
    return max(size, 0)


def encode_jpeg(frame: Image.Image, width: int, height: int, quality: int | None = None) -> bytes:
    quality = quality if quality is not None else settings.THUMBNAIL_JPEG_QUALITY

    if frame.size != (width, height):
        frame = frame.resize((width, height), Image.Resampling.LANCZOS)
    if frame.mode != "RGB":
        frame = frame.convert("RGB")

    buffer = io.BytesIO()
    frame.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def capture_frame(document: PageDocument, public_id: str, grabber=None) -> bytes:
    """
    Pause the dashboard player for ``public_id`` and return its current frame
    as JPEG bytes at the player's native video size.
    """
    video = find_video(document, public_id)

    # freeze playback so the frame matches what the admin sees
    video.set("paused", "true")

    width = _dimension(video, "videoWidth")
    height = _dimension(video, "videoHeight")
    if width <= 0 or height <= 0:
        raise ThumbnailCaptureError(
            "Video not loaded yet. Please click the thumbnail to play the video first."
        )

    source = video.get("src")
    if not source:
        raise ThumbnailCaptureError("Video has no source to capture from.")

    try:
        timestamp = float(video.get("currentTime") or 0)
    except ValueError:
        timestamp = 0.0
    if not math.isfinite(timestamp) or timestamp < 0:
        timestamp = 0.0

    grabber = grabber or FfmpegFrameGrabber()
    frame = grabber.grab(source, timestamp)
    return encode_jpeg(frame, width, height)
