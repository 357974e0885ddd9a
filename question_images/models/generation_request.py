"""Generation request ("image prompt"): the legacy grouping key for attempts."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from question_images.db.session import Base

DEFAULT_PLACEMENT = "question"
DEFAULT_STYLE = "educational_diagram"


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenerationRequest(Base):
    __tablename__ = "image_prompts"

    id = Column(String(36), primary_key=True, default=_new_id)
    # No FK: prompts may outlive (or predate) the question they describe
    question_id = Column(Integer, nullable=True, index=True)
    placement = Column(String(64), nullable=False, default=DEFAULT_PLACEMENT)
    prompt_text = Column(Text, nullable=False)
    original_ai_prompt = Column(Text, nullable=True)
    style_preference = Column(String(64), nullable=False, default=DEFAULT_STYLE)
    is_generated = Column(Boolean, nullable=False, default=False)
    user_id = Column(Integer, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
