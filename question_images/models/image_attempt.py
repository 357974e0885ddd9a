"""Image attempt: one generated or uploaded image for a question placement.

Rows are addressed either through their prompt (legacy) or directly by
(question_id, placement_type). The partial unique index keeps at most one
selected row per directly addressed placement.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text, text

from question_images.db.session import Base

ACCURACY_FEEDBACK_VALUES = ("correct", "partially_correct", "incorrect")


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImageAttempt(Base):
    __tablename__ = "image_attempts"

    id = Column(String(36), primary_key=True, default=_new_id)
    prompt_id = Column(String(36), nullable=True, index=True)
    # Direct addressing; null until recorded directly or migrated
    question_id = Column(Integer, nullable=True, index=True)
    placement_type = Column(String(64), nullable=True)

    image_url = Column(Text, nullable=False)
    prompt_used = Column(Text, nullable=False)
    alt_text = Column(Text, nullable=True)
    attempt_number = Column(Integer, nullable=False, default=1)
    is_selected = Column(Boolean, nullable=False, default=False)

    user_rating = Column(Integer, nullable=True)  # 1-5
    accuracy_feedback = Column(String(32), nullable=True)  # correct | partially_correct | incorrect

    generated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    user_id = Column(Integer, nullable=True, index=True)

    __table_args__ = (
        Index("ix_image_attempts_question_placement", "question_id", "placement_type"),
        Index(
            "uq_image_attempts_one_selected",
            "question_id",
            "placement_type",
            unique=True,
            sqlite_where=text("is_selected = 1"),
            postgresql_where=text("is_selected"),
        ),
    )
