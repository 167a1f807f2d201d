from sqlalchemy import Column, Integer, String, ForeignKey, Text, DateTime, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from nursing_rocks.database import Base


class GalleryImage(Base):
    __tablename__ = "gallery"

    id = Column(Integer, primary_key=True, index=True)

    image_url = Column(String, nullable=False)
    thumbnail_url = Column(String, nullable=True)
    alt_text = Column(Text, nullable=True)

    # Optional associations
    event_id = Column(Integer, nullable=True, index=True)
    folder_id = Column(
        Integer,
        ForeignKey("media_folders.id", ondelete="SET NULL"),
        nullable=True
    )

    media_type = Column(String, nullable=False, default="image")
    file_size = Column(Integer, nullable=True)

    # Ordering
    sort_order = Column(Integer, nullable=False, default=0)
    z_index = Column(Integer, nullable=False, default=0)

    # Free-form (tags etc.). "metadata" is reserved on declarative classes.
    extra = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    folder = relationship("MediaFolder", back_populates="images")
