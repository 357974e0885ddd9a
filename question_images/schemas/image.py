"""Pydantic schemas for image attempts, prompts and selection requests."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

AccuracyFeedback = Literal["correct", "partially_correct", "incorrect"]


class ImageAttemptSchema(BaseModel):
    id: str
    prompt_id: str | None = None
    question_id: int | None = None
    placement_type: str | None = None
    image_url: str
    prompt_used: str
    alt_text: str | None = None
    attempt_number: int
    is_selected: bool
    user_rating: int | None = None
    accuracy_feedback: str | None = None
    generated_at: datetime
    user_id: int | None = None

    class Config:
        from_attributes = True


class SaveImageSchema(BaseModel):
    """Record an attempt for a legacy prompt."""

    prompt_id: str | None = None
    image_url: str | None = None
    prompt_used: str | None = None
    original_description: str | None = None


class SaveImageNewSchema(BaseModel):
    """Record an attempt addressed directly by question and placement."""

    question_id: int | None = None
    placement_type: str | None = None
    image_url: str | None = None
    prompt_used: str | None = None
    alt_text: str | None = None


class SelectImageSchema(BaseModel):
    image_id: str | None = None
    question_id: int | None = None
    placement_type: str | None = None
    prompt_id: str | None = None


class DeselectSchema(BaseModel):
    question_id: int | None = None
    placement_type: str | None = None
    prompt_id: str | None = None


class RateImageSchema(BaseModel):
    image_id: str | None = None
    rating: int | None = None
    accuracy_feedback: str | None = None


class PromptCreateSchema(BaseModel):
    question_id: int | None = None
    prompt_text: str | None = None
    placement: str | None = None
    style_preference: str | None = None
    original_ai_prompt: str | None = None


class PromptUpdateSchema(BaseModel):
    id: str | None = None
    prompt_text: str | None = None
    style_preference: str | None = None


class PromptSchema(BaseModel):
    id: str
    question_id: int | None = None
    placement: str
    prompt_text: str
    original_ai_prompt: str | None = None
    style_preference: str
    is_generated: bool
    user_id: int | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class QuestionCreateSchema(BaseModel):
    question_text: str = Field(min_length=1)
    subject: str | None = None


class QuestionSchema(BaseModel):
    id: int
    question_text: str
    subject: str | None = None
    user_id: int | None = None

    class Config:
        from_attributes = True


class GalleryImageSchema(ImageAttemptSchema):
    """Attempt flattened with the prompt fields the gallery shows."""

    placement: str
    prompt_text: str
    original_ai_prompt: str
    style_preference: str
    prompt_created_at: datetime


class RatingStatisticsSchema(BaseModel):
    total_images: int
    average_rating: float
    accuracy_distribution: dict[str, int]
    rating_distribution: dict[str, int]
