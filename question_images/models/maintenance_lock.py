"""Maintenance lock: a marker row held while an administrative batch runs."""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from question_images.db.session import Base


class MaintenanceLock(Base):
    __tablename__ = "maintenance_locks"

    name = Column(String(64), primary_key=True)
    holder = Column(String(255), nullable=True)
    acquired_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
