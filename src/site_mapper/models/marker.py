"""
Feedback markers left on site pages.
"""

from sqlalchemy import Column, DateTime, Index, String, func

from .base import Base

ACTIVE_MARKER_STATUSES = ("open", "resolved")


class Marker(Base):
    """A feedback annotation pinned to a page of a site."""
    __tablename__ = "markers"

    id = Column(String, primary_key=True)
    site_id = Column(String, nullable=False)
    page_url = Column(String, nullable=False)
    status = Column(String, nullable=False, default="open")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_markers_site_status", site_id, status),
    )
