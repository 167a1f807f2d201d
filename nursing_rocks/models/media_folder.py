from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from nursing_rocks.database import Base


class MediaFolder(Base):
    __tablename__ = "media_folders"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    images = relationship(
        "GalleryImage",
        back_populates="folder",
        passive_deletes=True,
    )
