from pydantic import BaseModel
from typing import Optional, Any, Dict
from datetime import datetime


# ------------------------------------------------------
# GALLERY IMAGE
# ------------------------------------------------------
class GalleryImageOut(BaseModel):
    id: int
    image_url: str
    thumbnail_url: Optional[str] = None
    alt_text: Optional[str] = None

    event_id: Optional[int] = None
    folder_id: Optional[int] = None

    media_type: str = "image"
    file_size: Optional[int] = None

    sort_order: int = 0
    z_index: int = 0

    metadata: Optional[Dict[str, Any]] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ------------------------------------------------------
# UPDATE GALLERY IMAGE (alt text / ordering / tags)
# ------------------------------------------------------
class GalleryImageUpdate(BaseModel):
    alt_text: Optional[str] = None
    event_id: Optional[int] = None
    folder_id: Optional[int] = None
    sort_order: Optional[int] = None
    z_index: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None


# ------------------------------------------------------
# REPLACE ONE IMAGE WITH ANOTHER
# ------------------------------------------------------
class ReplaceWithRequest(BaseModel):
    originalUrl: Optional[str] = None
    alt_text: Optional[str] = None


class ReplaceWithResult(BaseModel):
    message: str
    id: int
    originalUrl: Optional[str] = None
    image_url: str
    thumbnail_url: Optional[str] = None
    updated_elements: int = 0


# ------------------------------------------------------
# MEDIA FOLDERS
# ------------------------------------------------------
class MediaFolderCreate(BaseModel):
    name: str
    description: Optional[str] = None


class MediaFolderOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
