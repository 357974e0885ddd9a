"""Questions and the gallery of image attempts attached to them."""
from collections import defaultdict
from datetime import timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from question_images.core.errors import NotFoundError
from question_images.db.store import commit, execute, flush
from question_images.models.generation_request import DEFAULT_PLACEMENT, DEFAULT_STYLE, GenerationRequest
from question_images.models.image_attempt import ImageAttempt
from question_images.models.question import Question
from question_images.schemas.image import GalleryImageSchema, ImageAttemptSchema

logger = structlog.get_logger(__name__)


async def create_question(db: AsyncSession, question_text: str, user_id: int | None, subject: str | None = None) -> Question:
    question = Question(question_text=question_text, subject=subject, user_id=user_id)
    db.add(question)
    await flush(db, "create question")
    await commit(db, "create question")
    logger.info("question_created", question_id=question.id)
    return question


async def get_question(db: AsyncSession, question_id: int) -> Question:
    result = await execute(db, select(Question).where(Question.id == question_id), "fetch question")
    question = result.scalar_one_or_none()
    if question is None:
        raise NotFoundError(f"Question {question_id} not found")
    return question


async def list_question_images(db: AsyncSession, question_id: int) -> tuple[list[GalleryImageSchema], dict[str, list[GalleryImageSchema]]]:
    """Every attempt of the question, direct or through a legacy prompt.

    Sorted by placement, newest first within a placement, and also returned
    grouped by placement.
    """
    legacy_prompts = select(GenerationRequest.id).where(GenerationRequest.question_id == question_id)
    result = await execute(
        db,
        select(ImageAttempt, GenerationRequest)
        .outerjoin(GenerationRequest, ImageAttempt.prompt_id == GenerationRequest.id)
        .where(
            (ImageAttempt.question_id == question_id)
            | (ImageAttempt.question_id.is_(None) & ImageAttempt.prompt_id.in_(legacy_prompts))
        ),
        "fetch question images",
    )

    images = [_flatten(attempt, prompt, question_id) for attempt, prompt in result.all()]
    images.sort(key=lambda image: _naive(image.generated_at), reverse=True)
    images.sort(key=lambda image: image.placement_type)

    grouped = defaultdict(list)
    for image in images:
        grouped[image.placement_type].append(image)
    return images, dict(grouped)


def _flatten(attempt: ImageAttempt, prompt: GenerationRequest | None, question_id: int) -> GalleryImageSchema:
    placement = attempt.placement_type or (prompt.placement if prompt else None) or DEFAULT_PLACEMENT
    data = ImageAttemptSchema.model_validate(attempt).model_dump()
    data.update(
        question_id=question_id,
        placement_type=placement,
        placement=prompt.placement if prompt else placement,
        prompt_text=prompt.prompt_text if prompt else "Image without prompt",
        original_ai_prompt=(prompt.original_ai_prompt if prompt else None) or "Generated image",
        style_preference=prompt.style_preference if prompt else DEFAULT_STYLE,
        prompt_created_at=prompt.created_at if prompt else attempt.generated_at,
    )
    return GalleryImageSchema(**data)


def _naive(value):
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
