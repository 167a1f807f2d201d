# nursing_rocks/routers/elements_router.py

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from nursing_rocks.auth import get_current_admin
from nursing_rocks.database import get_db
from nursing_rocks.models.page_element import PageElement
from nursing_rocks.models.user import User
from nursing_rocks.schemas.element_schema import (
    ElementContentUpdate,
    ElementCreate,
    PageElementOut,
)


logger = logging.getLogger(__name__)

router = APIRouter(tags=["Page Elements"])


def _siblings(db: Session, page: str, parent_key):
    return (
        db.query(PageElement)
        .filter(PageElement.page == page, PageElement.parent_key == parent_key)
        .order_by(PageElement.position.asc(), PageElement.id.asc())
        .all()
    )


# =====================================================================
# RENDER DATA
# =====================================================================

@router.get("/api/pages/{page}/elements", response_model=List[PageElementOut])
def list_page_elements(page: str, db: Session = Depends(get_db)):
    return (
        db.query(PageElement)
        .filter(PageElement.page == page)
        .order_by(PageElement.position.asc(), PageElement.id.asc())
        .all()
    )


# =====================================================================
# SAVE TEXT CONTENT
# =====================================================================

@router.put("/api/admin/elements/{element_key}", response_model=PageElementOut)
def save_element_content(
    element_key: str,
    payload: ElementContentUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    element = (
        db.query(PageElement)
        .filter(PageElement.page == payload.page, PageElement.element_key == element_key)
        .first()
    )

    # elements rendered from templates get a row on first edit
    if element is None:
        element = PageElement(
            page=payload.page,
            element_key=element_key,
            tag_name=(payload.tag_name or "p").lower(),
            position=len(_siblings(db, payload.page, None)),
        )
        db.add(element)

    element.content_html = payload.content_html
    if payload.style is not None:
        element.style = payload.style or None
    if payload.tag_name:
        element.tag_name = payload.tag_name.lower()

    db.commit()
    db.refresh(element)

    logger.info("Saved content for %s/%s", payload.page, element_key)
    return element


# =====================================================================
# CREATE NEW ELEMENT
# =====================================================================

@router.post("/api/admin/elements", response_model=PageElementOut, status_code=201)
def create_element(
    payload: ElementCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    exists = (
        db.query(PageElement)
        .filter(PageElement.page == payload.page, PageElement.element_key == payload.element_key)
        .first()
    )
    if exists:
        raise HTTPException(status_code=409, detail="Element key already in use")

    target = None
    if payload.target_key:
        target = (
            db.query(PageElement)
            .filter(PageElement.page == payload.page, PageElement.element_key == payload.target_key)
            .first()
        )

    # work out (parent, index) for the new element
    if target is None:
        parent_key = None
        siblings = _siblings(db, payload.page, None)
        index = 0 if payload.location == "prepend" else len(siblings)
    elif payload.location in ("append", "prepend"):
        parent_key = target.element_key
        siblings = _siblings(db, payload.page, parent_key)
        index = 0 if payload.location == "prepend" else len(siblings)
    else:
        parent_key = target.parent_key
        siblings = _siblings(db, payload.page, parent_key)
        index = [s.id for s in siblings].index(target.id)
        if payload.location == "after":
            index += 1

    element = PageElement(
        page=payload.page,
        element_key=payload.element_key,
        tag_name=payload.tag_name,
        content_html=payload.content_html,
        style=payload.style or None,
        parent_key=parent_key,
    )

    siblings.insert(index, element)
    for position, sibling in enumerate(siblings):
        sibling.position = position

    db.add(element)
    db.commit()
    db.refresh(element)

    logger.info("Created %s element %s on %s", payload.tag_name, payload.element_key, payload.page)
    return element
