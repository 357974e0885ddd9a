"""Generation requests: the prompt an image attempt was generated from."""
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from question_images.core.errors import NotFoundError, StoreError, ValidationError
from question_images.db.store import commit, execute, flush
from question_images.models.generation_request import DEFAULT_PLACEMENT, DEFAULT_STYLE, GenerationRequest

logger = structlog.get_logger(__name__)


async def create_prompt(
    db: AsyncSession,
    prompt_text: str | None,
    user_id: int | None,
    question_id: int | None = None,
    placement: str | None = None,
    style_preference: str | None = None,
    original_ai_prompt: str | None = None,
) -> GenerationRequest:
    if not prompt_text:
        raise ValidationError("prompt_text is required")

    prompt = GenerationRequest(
        question_id=question_id,
        prompt_text=prompt_text,
        original_ai_prompt=original_ai_prompt or prompt_text,
        placement=placement or DEFAULT_PLACEMENT,
        style_preference=style_preference or DEFAULT_STYLE,
        is_generated=False,
        user_id=user_id,
    )
    db.add(prompt)
    try:
        await flush(db, "create prompt")
        await commit(db, "create prompt")
    except StoreError:
        await db.rollback()
        raise

    logger.info("image_prompt_created", prompt_id=prompt.id, question_id=question_id, placement=prompt.placement)
    return prompt


async def list_prompts(db: AsyncSession, user_id: int | None, question_id: int | None = None) -> list[GenerationRequest]:
    """Caller's prompts, newest first, optionally for one question."""
    stmt = select(GenerationRequest).where(GenerationRequest.user_id == user_id)
    if question_id is not None:
        stmt = stmt.where(GenerationRequest.question_id == question_id)
    result = await execute(db, stmt.order_by(GenerationRequest.created_at.desc()), "list prompts")
    return list(result.scalars().all())


async def update_prompt(
    db: AsyncSession,
    prompt_id: str | None,
    prompt_text: str | None,
    user_id: int | None,
    style_preference: str | None = None,
) -> GenerationRequest:
    if not prompt_id or not prompt_text:
        raise ValidationError("id and prompt_text are required")

    result = await execute(
        db,
        select(GenerationRequest).where(GenerationRequest.id == prompt_id, GenerationRequest.user_id == user_id),
        "fetch prompt",
    )
    prompt = result.scalar_one_or_none()
    if prompt is None:
        raise NotFoundError("Prompt not found or access denied")

    prompt.prompt_text = prompt_text
    prompt.style_preference = style_preference or DEFAULT_STYLE
    await commit(db, "update prompt")
    logger.info("image_prompt_updated", prompt_id=prompt.id)
    return prompt
