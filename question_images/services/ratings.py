"""User ratings of image attempts and rating statistics."""
import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from question_images.core.errors import NotFoundError, StoreError, ValidationError
from question_images.db.store import commit, execute
from question_images.models.generation_request import GenerationRequest
from question_images.models.image_attempt import ACCURACY_FEEDBACK_VALUES, ImageAttempt
from question_images.schemas.image import RatingStatisticsSchema
from question_images.services import attempt_store

logger = structlog.get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def validate_rating(rating: int | None, accuracy_feedback: str | None) -> None:
    if rating is None or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError("rating must be between 1 and 5")
    if accuracy_feedback and accuracy_feedback not in ACCURACY_FEEDBACK_VALUES:
        raise ValidationError("Invalid accuracy_feedback value")


async def rate_attempt(
    db: AsyncSession,
    attempt_id: str,
    rating: int | None,
    accuracy_feedback: str | None,
    user_id: int | None,
) -> ImageAttempt:
    validate_rating(rating, accuracy_feedback)
    attempt = await attempt_store.get_attempt(db, attempt_id, user_id=user_id)
    if attempt is None:
        raise NotFoundError("Image not found or access denied")

    values = {"user_rating": rating}
    if accuracy_feedback:
        values["accuracy_feedback"] = accuracy_feedback
    try:
        await execute(db, update(ImageAttempt).where(ImageAttempt.id == attempt.id).values(**values), "rate attempt")
        await commit(db, "rate attempt")
    except StoreError:
        await db.rollback()
        raise

    logger.info("image_attempt_rated", attempt_id=attempt.id, rating=rating, accuracy_feedback=accuracy_feedback)
    return attempt


def compute_statistics(attempts: list[ImageAttempt]) -> RatingStatisticsSchema:
    rating_distribution = {str(n): 0 for n in range(MIN_RATING, MAX_RATING + 1)}
    rating_distribution["unrated"] = 0
    accuracy_distribution = {value: 0 for value in ACCURACY_FEEDBACK_VALUES}
    accuracy_distribution["unrated"] = 0

    total_rating = 0
    rated = 0
    for attempt in attempts:
        if attempt.user_rating and MIN_RATING <= attempt.user_rating <= MAX_RATING:
            rating_distribution[str(attempt.user_rating)] += 1
            total_rating += attempt.user_rating
            rated += 1
        else:
            rating_distribution["unrated"] += 1

        if attempt.accuracy_feedback in accuracy_distribution:
            accuracy_distribution[attempt.accuracy_feedback] += 1
        elif not attempt.accuracy_feedback:
            accuracy_distribution["unrated"] += 1

    return RatingStatisticsSchema(
        total_images=len(attempts),
        average_rating=total_rating / rated if rated else 0.0,
        accuracy_distribution=accuracy_distribution,
        rating_distribution=rating_distribution,
    )


async def rating_statistics(
    db: AsyncSession,
    image_id: str | None = None,
    question_id: int | None = None,
) -> tuple[list[ImageAttempt], RatingStatisticsSchema]:
    """Ratings for one image, or for every attempt of a question."""
    if image_id:
        stmt = select(ImageAttempt).where(ImageAttempt.id == image_id)
    elif question_id is not None:
        legacy_prompts = select(GenerationRequest.id).where(GenerationRequest.question_id == question_id)
        stmt = select(ImageAttempt).where(
            (ImageAttempt.question_id == question_id)
            | (ImageAttempt.question_id.is_(None) & ImageAttempt.prompt_id.in_(legacy_prompts))
        )
    else:
        raise ValidationError("image_id or question_id is required")

    result = await execute(db, stmt.order_by(ImageAttempt.generated_at.desc()), "fetch ratings")
    attempts = list(result.scalars().all())
    return attempts, compute_statistics(attempts)
