"""SQLAlchemy models for stored tracker documents."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredDocument(Base):
    """
    One JSON document addressed by its path (e.g. ``trackers/abc/state``).

    The payload is stored as-is; clients sanitize whatever they read.
    """

    __tablename__ = "documents"

    path = Column(String(512), primary_key=True)
    payload = Column(JSON, nullable=True)
    revision = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<StoredDocument(path='{self.path}', revision={self.revision})>"
