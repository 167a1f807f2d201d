# nursing_rocks/routers/videos_router.py

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    UploadFile,
    File,
    Form,
    Query,
)
from sqlalchemy.orm import Session

from nursing_rocks.auth import get_current_admin, get_optional_admin
from nursing_rocks.database import get_db
from nursing_rocks.models.approved_video import ApprovedVideo
from nursing_rocks.models.user import User
from nursing_rocks.schemas.video_schema import (
    ApprovedVideoOut,
    ApproveRequest,
    PublicIdRequest,
    SyncResult,
    ThumbnailUploadResult,
    VideoListOut,
    VideoResource,
)
from nursing_rocks.storage import save_poster_frame
from nursing_rocks.video.provider import VideoProvider, get_video_provider


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/videos", tags=["Videos"])
admin_router = APIRouter(prefix="/api/admin/videos", tags=["Video Approval"])


def get_provider() -> VideoProvider:
    return get_video_provider()


def _list_provider_videos(provider: VideoProvider) -> List[VideoResource]:
    try:
        return provider.list_source_videos()
    except RuntimeError as e:
        raise HTTPException(status_code=502, detail=str(e))


def _get_or_create_record(db: Session, public_id: str) -> ApprovedVideo:
    record = db.query(ApprovedVideo).filter(ApprovedVideo.public_id == public_id).first()
    if record is None:
        folder = public_id.rsplit("/", 1)[0] if "/" in public_id else None
        record = ApprovedVideo(public_id=public_id, folder=folder, approved=False)
        db.add(record)
    return record


# =====================================================================
# PUBLIC LISTING
# =====================================================================

@router.get("", response_model=VideoListOut)
def list_videos(
    all: bool = Query(False),
    db: Session = Depends(get_db),
    provider: VideoProvider = Depends(get_provider),
    admin: Optional[User] = Depends(get_optional_admin),
):
    if all and admin is None:
        raise HTTPException(status_code=401, detail="Admin token required for all=true")

    records = {r.public_id: r for r in db.query(ApprovedVideo).all()}

    resources = []
    for video in _list_provider_videos(provider):
        record = records.get(video.public_id)

        if record and record.hidden:
            continue
        if not all and not (record and record.approved):
            continue

        if record and record.poster_url:
            video.poster_url = record.poster_url
        elif not video.poster_url:
            video.poster_url = provider.get_poster_url(video.public_id)

        resources.append(video)

    return VideoListOut(resources=resources, total=len(resources))


# =====================================================================
# ADMIN: APPROVAL RECORDS
# =====================================================================

@admin_router.get("", response_model=List[ApprovedVideoOut])
def list_approval_records(
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    return (
        db.query(ApprovedVideo)
        .filter(ApprovedVideo.hidden.is_(False))
        .order_by(ApprovedVideo.created_at.asc(), ApprovedVideo.id.asc())
        .all()
    )


@admin_router.post("/approve", response_model=ApprovedVideoOut)
def approve_video(
    payload: ApproveRequest,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    record = _get_or_create_record(db, payload.public_id)

    record.approved = True
    record.hidden = False
    record.approved_by = current_admin.id
    record.approved_at = datetime.utcnow()
    if payload.admin_notes:
        record.admin_notes = payload.admin_notes

    db.commit()
    db.refresh(record)

    logger.info("Video approved: %s", payload.public_id)
    return record


@admin_router.post("/unapprove", response_model=ApprovedVideoOut)
def unapprove_video(
    payload: PublicIdRequest,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    record = _get_or_create_record(db, payload.public_id)

    record.approved = False

    db.commit()
    db.refresh(record)

    logger.info("Video unapproved: %s", payload.public_id)
    return record


@admin_router.post("/delete")
def delete_video(
    payload: PublicIdRequest,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    # the storage object is kept; the video just leaves the dashboard and the site
    record = _get_or_create_record(db, payload.public_id)

    record.approved = False
    record.hidden = True

    db.commit()

    logger.info("Video removed from dashboard: %s", payload.public_id)
    return {"message": "Video removed from dashboard", "public_id": payload.public_id}


@admin_router.post("/sync", response_model=SyncResult)
def sync_videos(
    db: Session = Depends(get_db),
    provider: VideoProvider = Depends(get_provider),
    current_admin: User = Depends(get_current_admin),
):
    videos = _list_provider_videos(provider)

    known = {r.public_id for r in db.query(ApprovedVideo.public_id).all()}

    synced = 0
    for video in videos:
        if video.public_id in known:
            continue
        db.add(ApprovedVideo(
            public_id=video.public_id,
            folder=video.asset_folder,
            approved=False,
        ))
        known.add(video.public_id)
        synced += 1

    db.commit()

    logger.info("Video sync added %d of %d provider videos", synced, len(videos))
    return SyncResult(synced=synced, total=len(videos))


# =====================================================================
# ADMIN: POSTER FRAME UPLOAD
# =====================================================================

@admin_router.post("/upload-thumbnail", response_model=ThumbnailUploadResult)
async def upload_thumbnail(
    thumbnail: UploadFile = File(...),
    videoId: str = Form(...),
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    if thumbnail.content_type and not thumbnail.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Thumbnail must be an image")

    public_id = videoId.strip()
    if not public_id:
        raise HTTPException(status_code=400, detail="videoId is required")

    url = save_poster_frame(public_id, thumbnail)

    record = _get_or_create_record(db, public_id)
    record.poster_url = url

    db.commit()

    logger.info("Poster saved for %s at %s", public_id, url)
    return ThumbnailUploadResult(public_id=public_id, poster_url=url)
