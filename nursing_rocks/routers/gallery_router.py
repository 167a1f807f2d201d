# nursing_rocks/routers/gallery_router.py

import logging
import os
from datetime import datetime
from typing import List

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    UploadFile,
    File,
    Form,
    Body,
)
from sqlalchemy.orm import Session

from nursing_rocks.auth import get_current_admin
from nursing_rocks.core.image_replacement import EXTERNAL_IMAGE_ID, same_image_path
from nursing_rocks.database import get_db
from nursing_rocks.models.gallery_image import GalleryImage
from nursing_rocks.models.media_folder import MediaFolder
from nursing_rocks.models.page_element import PageElement
from nursing_rocks.models.user import User

from nursing_rocks.schemas.gallery_schema import (
    GalleryImageOut,
    GalleryImageUpdate,
    ReplaceWithRequest,
    ReplaceWithResult,
    MediaFolderCreate,
    MediaFolderOut,
)

from nursing_rocks.storage import (
    delete_file,
    get_file_size,
    is_image_filename,
    save_gallery_image,
    validate_file_size,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/gallery", tags=["Gallery"])
folders_router = APIRouter(prefix="/api/media-folders", tags=["Media Folders"])

MAX_UPLOAD_FILES = 20


# =====================================================================
# BUILD RESPONSE
# =====================================================================

def build_image(image: GalleryImage) -> GalleryImageOut:
    return GalleryImageOut(
        id=image.id,
        image_url=image.image_url,
        thumbnail_url=image.thumbnail_url,
        alt_text=image.alt_text,
        event_id=image.event_id,
        folder_id=image.folder_id,
        media_type=image.media_type,
        file_size=image.file_size,
        sort_order=image.sort_order,
        z_index=image.z_index,
        metadata=image.extra,
        created_at=image.created_at,
        updated_at=image.updated_at,
    )


def _ordered(query):
    return query.order_by(GalleryImage.sort_order.asc(), GalleryImage.id.asc())


def _get_image_or_404(db: Session, image_id: int) -> GalleryImage:
    image = db.query(GalleryImage).filter(GalleryImage.id == image_id).first()
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")
    return image


# =====================================================================
# LIST
# =====================================================================

@router.get("", response_model=List[GalleryImageOut])
def list_gallery_images(db: Session = Depends(get_db)):
    images = _ordered(db.query(GalleryImage)).all()
    return [build_image(i) for i in images]


@router.get("/event/{event_id}", response_model=List[GalleryImageOut])
def list_event_images(event_id: int, db: Session = Depends(get_db)):
    images = _ordered(db.query(GalleryImage).filter(GalleryImage.event_id == event_id)).all()
    return [build_image(i) for i in images]


@router.get("/folder/{folder_id}", response_model=List[GalleryImageOut])
def list_folder_images(folder_id: int, db: Session = Depends(get_db)):
    folder = db.query(MediaFolder).filter(MediaFolder.id == folder_id).first()
    if not folder:
        raise HTTPException(status_code=404, detail="Folder not found")

    images = _ordered(db.query(GalleryImage).filter(GalleryImage.folder_id == folder_id)).all()
    return [build_image(i) for i in images]


# =====================================================================
# GET SINGLE IMAGE
# =====================================================================

@router.get("/{image_id}", response_model=GalleryImageOut)
def get_gallery_image(image_id: int, db: Session = Depends(get_db)):
    return build_image(_get_image_or_404(db, image_id))


# =====================================================================
# UPLOAD
# =====================================================================

@router.post("/upload", response_model=List[GalleryImageOut], status_code=201)
async def upload_gallery_images(
    images: List[UploadFile] = File(...),
    alt_text: str | None = Form(None),
    event_id: int | None = Form(None),
    folder_id: int | None = Form(None),
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    if len(images) > MAX_UPLOAD_FILES:
        raise HTTPException(status_code=400, detail=f"At most {MAX_UPLOAD_FILES} images per upload")

    if folder_id is not None:
        if not db.query(MediaFolder).filter(MediaFolder.id == folder_id).first():
            raise HTTPException(status_code=404, detail="Folder not found")

    # validate everything before writing anything
    for file in images:
        if not is_image_filename(file.filename):
            raise HTTPException(status_code=400, detail=f"Unsupported file type: {file.filename}")

        ok, error = validate_file_size(file)
        if not ok:
            raise HTTPException(status_code=400, detail=error)

    last = db.query(GalleryImage).order_by(GalleryImage.sort_order.desc()).first()
    next_order = (last.sort_order + 1) if last else 0

    created = []
    for offset, file in enumerate(images):
        file_size = get_file_size(file)
        url = save_gallery_image(file)

        image = GalleryImage(
            image_url=url,
            thumbnail_url=url,
            alt_text=alt_text or os.path.splitext(file.filename)[0],
            event_id=event_id,
            folder_id=folder_id,
            media_type="image",
            file_size=file_size,
            sort_order=next_order + offset,
        )
        db.add(image)
        created.append(image)

    db.commit()
    for image in created:
        db.refresh(image)

    logger.info("Uploaded %d gallery images", len(created))
    return [build_image(i) for i in created]


# =====================================================================
# UPDATE
# =====================================================================

@router.patch("/{image_id}", response_model=GalleryImageOut)
def update_gallery_image(
    image_id: int,
    payload: GalleryImageUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    image = _get_image_or_404(db, image_id)

    if payload.alt_text is not None:
        image.alt_text = payload.alt_text.strip() or None
    if payload.event_id is not None:
        image.event_id = payload.event_id
    if payload.folder_id is not None:
        image.folder_id = payload.folder_id
    if payload.sort_order is not None:
        image.sort_order = payload.sort_order
    if payload.z_index is not None:
        image.z_index = payload.z_index
    if payload.metadata is not None:
        image.extra = payload.metadata

    db.commit()
    db.refresh(image)

    return build_image(image)


# =====================================================================
# DELETE
# =====================================================================

@router.delete("/{image_id}")
def delete_gallery_image(
    image_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    image = _get_image_or_404(db, image_id)

    # files may be shared with a replacement copy
    still_used = (
        db.query(GalleryImage)
        .filter(GalleryImage.id != image_id, GalleryImage.image_url == image.image_url)
        .first()
    )
    if not still_used:
        for path in {image.image_url, image.thumbnail_url}:
            if path:
                delete_file(path)

    db.query(PageElement).filter(PageElement.gallery_image_id == image_id).update(
        {PageElement.gallery_image_id: None}
    )
    db.delete(image)
    db.commit()

    return {"message": "Image deleted"}


# =====================================================================
# REORDER
# =====================================================================

@router.put("/reorder")
def reorder_gallery(
    ids: List[int] = Body(...),
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    images = db.query(GalleryImage).filter(GalleryImage.id.in_(ids)).all()
    id_to_image = {i.id: i for i in images}

    for index, image_id in enumerate(ids):
        image = id_to_image.get(image_id)
        if image:
            image.sort_order = index

    db.commit()
    return {"message": "Order saved"}


# =====================================================================
# REPLACE ONE IMAGE WITH ANOTHER GALLERY IMAGE
# =====================================================================

@router.post("/{image_id}/replace-with/{replacement_id}", response_model=ReplaceWithResult)
def replace_with_gallery_image(
    image_id: int,
    replacement_id: int,
    payload: ReplaceWithRequest | None = None,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    payload = payload or ReplaceWithRequest()

    replacement = db.query(GalleryImage).filter(GalleryImage.id == replacement_id).first()
    if not replacement:
        raise HTTPException(status_code=404, detail="Replacement image not found")

    new_url = replacement.image_url
    new_thumb = replacement.thumbnail_url or replacement.image_url

    if image_id == EXTERNAL_IMAGE_ID:
        # element shows a URL with no gallery row behind it
        if not payload.originalUrl:
            raise HTTPException(status_code=400, detail="originalUrl is required for external images")
        original_url = payload.originalUrl
    else:
        original = db.query(GalleryImage).filter(GalleryImage.id == image_id).first()
        if not original:
            raise HTTPException(status_code=404, detail="Original image not found")

        original_url = original.image_url
        original.image_url = new_url
        original.thumbnail_url = new_thumb
        original.alt_text = payload.alt_text or replacement.alt_text or original.alt_text
        original.extra = replacement.extra or original.extra
        original.updated_at = datetime.utcnow()

    # persisted page slots showing the original, by entity id first then by path
    elements = db.query(PageElement).filter(PageElement.image_url.isnot(None)).all()
    updated = 0
    for element in elements:
        keyed = image_id != EXTERNAL_IMAGE_ID and element.gallery_image_id == image_id
        if keyed or same_image_path(element.image_url, original_url) or same_image_path(
            element.image_url, payload.originalUrl
        ):
            element.image_url = new_url
            updated += 1

    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("Image replacement failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to replace image")

    logger.info("Replaced image %s with %s (%d page elements)", image_id, replacement_id, updated)

    return ReplaceWithResult(
        message="Image replaced successfully",
        id=image_id,
        originalUrl=original_url,
        image_url=new_url,
        thumbnail_url=new_thumb,
        updated_elements=updated,
    )


# =====================================================================
# MEDIA FOLDERS
# =====================================================================

@folders_router.get("", response_model=List[MediaFolderOut])
def list_media_folders(db: Session = Depends(get_db)):
    return db.query(MediaFolder).order_by(MediaFolder.name.asc()).all()


@folders_router.post("", response_model=MediaFolderOut, status_code=201)
def create_media_folder(
    payload: MediaFolderCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Folder name is required")

    if db.query(MediaFolder).filter(MediaFolder.name == name).first():
        raise HTTPException(status_code=409, detail="Folder already exists")

    folder = MediaFolder(name=name, description=payload.description)
    db.add(folder)
    db.commit()
    db.refresh(folder)
    return folder
