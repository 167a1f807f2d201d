from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey
from datetime import datetime
from nursing_rocks.database import Base


class ApprovedVideo(Base):
    """
    Approval flag for a storage-provider video.

    Rows are joined to provider listings by ``public_id``; a video with no
    row is pending.
    """

    __tablename__ = "approved_videos"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String, nullable=False, unique=True, index=True)
    folder = Column(String, nullable=True)

    approved = Column(Boolean, nullable=False, default=False)
    approved_by = Column(String, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    admin_notes = Column(Text, nullable=True)

    # Poster frame captured from the admin dashboard
    poster_url = Column(String, nullable=True)

    # Removed from the dashboard; the source file stays in storage
    hidden = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
