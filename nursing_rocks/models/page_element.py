from sqlalchemy import Column, Integer, String, Text, DateTime, UniqueConstraint
from datetime import datetime
from nursing_rocks.database import Base


class PageElement(Base):
    __tablename__ = "page_elements"
    __table_args__ = (
        UniqueConstraint("page", "element_key", name="uq_page_element_key"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Which page this element renders on, e.g. "home"
    page = Column(String, nullable=False, index=True)

    # Stable DOM id the overlay addresses the element by
    element_key = Column(String, nullable=False, index=True)

    tag_name = Column(String, nullable=False, default="p")
    content_html = Column(Text, nullable=True)
    style = Column(Text, nullable=True)

    # Image slots
    image_url = Column(String, nullable=True)
    gallery_image_id = Column(Integer, nullable=True, index=True)

    # Tree position
    parent_key = Column(String, nullable=True)
    position = Column(Integer, nullable=False, default=0)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
