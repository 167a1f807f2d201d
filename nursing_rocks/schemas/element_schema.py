from pydantic import BaseModel, field_validator
from typing import Optional, Literal
from datetime import datetime


NewElementTag = Literal["p", "h1", "h2", "h3", "h4", "h5", "h6", "span", "div"]
InsertLocation = Literal["before", "after", "append", "prepend"]


# ------------------------------------------------------
# PAGE ELEMENT OUTPUT
# ------------------------------------------------------
class PageElementOut(BaseModel):
    id: int
    page: str
    element_key: str
    tag_name: str
    content_html: Optional[str] = None
    style: Optional[str] = None
    image_url: Optional[str] = None
    gallery_image_id: Optional[int] = None
    parent_key: Optional[str] = None
    position: int = 0
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


# ------------------------------------------------------
# SAVE TEXT CONTENT (existing element)
# ------------------------------------------------------
class ElementContentUpdate(BaseModel):
    page: str
    tag_name: Optional[str] = None
    content_html: str
    style: Optional[str] = None

    @field_validator("content_html")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Content must not be empty")
        return v


# ------------------------------------------------------
# CREATE NEW ELEMENT relative to an existing one
# ------------------------------------------------------
class ElementCreate(BaseModel):
    page: str
    element_key: str
    tag_name: NewElementTag = "p"
    content_html: str
    style: Optional[str] = None
    target_key: Optional[str] = None
    location: InsertLocation = "after"

    @field_validator("content_html")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Content must not be empty")
        return v
