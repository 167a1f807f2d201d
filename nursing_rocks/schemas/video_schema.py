from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


# ------------------------------------------------------
# PROVIDER VIDEO (storage listing, not persisted)
# ------------------------------------------------------
class VideoResource(BaseModel):
    public_id: str
    asset_id: str
    format: str = "mp4"
    resource_type: str = "video"
    created_at: Optional[datetime] = None
    bytes: int = 0
    duration: Optional[float] = None
    url: str
    secure_url: str
    asset_folder: Optional[str] = None
    hls_url: Optional[str] = None
    poster_url: Optional[str] = None


class VideoListOut(BaseModel):
    resources: List[VideoResource] = []
    total: int = 0


# ------------------------------------------------------
# APPROVAL RECORD
# ------------------------------------------------------
class ApprovedVideoOut(BaseModel):
    id: int
    public_id: str
    folder: Optional[str] = None
    approved: bool
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    poster_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


# ------------------------------------------------------
# ADMIN MUTATIONS
# ------------------------------------------------------
class ApproveRequest(BaseModel):
    public_id: str
    admin_notes: Optional[str] = None


class PublicIdRequest(BaseModel):
    public_id: str


class SyncResult(BaseModel):
    synced: int
    total: int


class ThumbnailUploadResult(BaseModel):
    success: bool = True
    public_id: str
    poster_url: str
