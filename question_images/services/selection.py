"""Selection coordinator: at most one selected image attempt per placement.

Every write deselects the rest of the group and selects the chosen attempt
inside one transaction. The partial unique index on
``(question_id, placement_type) WHERE is_selected`` rejects the loser of a
concurrent race instead of letting two selected rows through.

Groups keyed only by a prompt (the prompt has no question) have no such
index: legacy data may already hold several selected rows per prompt. Two
concurrent writers there can both commit a selected row; the next write to
the group clears the extra one.
"""
import structlog
from sqlalchemy import select, union, update
from sqlalchemy.ext.asyncio import AsyncSession

from question_images.core.errors import NotFoundError, StoreError
from question_images.db.store import commit, execute
from question_images.models.generation_request import GenerationRequest
from question_images.models.image_attempt import ImageAttempt
from question_images.services import attempt_store, questions
from question_images.services.groups import AttemptGroupRef, DirectRef, GroupKey, resolve_group

logger = structlog.get_logger(__name__)


async def record_new_attempt(
    db: AsyncSession,
    ref: AttemptGroupRef,
    image_url: str,
    prompt_used: str,
    alt_text: str | None,
    user_id: int | None,
) -> ImageAttempt:
    """Store a new attempt as the selected image of its group.

    The attempt number is one past the highest in the group (1 for the first
    attempt). Legacy refs also flag their prompt as generated.
    """
    key = await resolve_group(db, ref)
    if isinstance(ref, DirectRef):
        await questions.get_question(db, ref.question_id)

    try:
        attempt_number = await attempt_store.next_attempt_number(db, key)
        await attempt_store.deselect_group(db, key)
        attempt = await attempt_store.insert_attempt(
            db,
            prompt_id=key.prompt_id,
            question_id=key.question_id,
            placement_type=key.placement_type,
            image_url=image_url,
            prompt_used=prompt_used,
            alt_text=alt_text,
            attempt_number=attempt_number,
            is_selected=True,
            user_id=user_id,
        )
        if key.prompt_id is not None:
            await execute(
                db,
                update(GenerationRequest)
                .where(GenerationRequest.id == key.prompt_id)
                .values(is_generated=True),
                "mark prompt generated",
            )
        await commit(db, "record attempt")
    except StoreError:
        await db.rollback()
        raise

    logger.info(
        "image_attempt_recorded",
        attempt_id=attempt.id,
        question_id=key.question_id,
        placement_type=key.placement_type,
        prompt_id=key.prompt_id,
        attempt_number=attempt_number,
    )
    return attempt


async def select_attempt(
    db: AsyncSession,
    ref: AttemptGroupRef,
    attempt_id: str,
    user_id: int | None,
) -> ImageAttempt:
    """Make ``attempt_id`` the selected attempt of its group.

    Raises NotFoundError when the attempt is not in the group or is not owned
    by ``user_id``.
    """
    key = await resolve_group(db, ref)
    attempt = await attempt_store.get_attempt(db, attempt_id, key=key, user_id=user_id)
    if attempt is None:
        raise NotFoundError("Image not found or access denied")

    try:
        await attempt_store.deselect_group(db, key, except_id=attempt.id)
        await attempt_store.mark_selected(db, attempt.id)
        await commit(db, "select attempt")
    except StoreError:
        await db.rollback()
        raise

    logger.info("image_attempt_selected", attempt_id=attempt.id, **_key_context(key))
    return attempt


async def deselect_group(db: AsyncSession, ref: AttemptGroupRef) -> None:
    """Clear the selection so the placement shows no default image."""
    key = await resolve_group(db, ref)
    try:
        await attempt_store.deselect_group(db, key)
        await commit(db, "deselect group")
    except StoreError:
        await db.rollback()
        raise
    logger.info("image_group_deselected", **_key_context(key))


async def get_selected(db: AsyncSession, ref: AttemptGroupRef) -> ImageAttempt | None:
    """Selected attempt of the group, else the most recently generated one.

    The fallback is a read-time choice only; nothing is written.
    """
    key = await resolve_group(db, ref)
    return await _selected_or_latest(db, key)


async def get_selected_for_question(db: AsyncSession, question_id: int) -> list[ImageAttempt]:
    """``get_selected`` for every placement of the question that has attempts."""
    placements = union(
        select(ImageAttempt.placement_type.label("placement")).where(
            ImageAttempt.question_id == question_id,
            ImageAttempt.placement_type.is_not(None),
        ),
        select(GenerationRequest.placement.label("placement")).where(
            GenerationRequest.question_id == question_id,
        ),
    )
    result = await execute(db, placements, "fetch placements")
    selected = []
    for placement in sorted(row[0] for row in result.all()):
        attempt = await _selected_or_latest(db, GroupKey(question_id=question_id, placement_type=placement))
        if attempt is not None:
            selected.append(attempt)
    return selected


async def _selected_or_latest(db: AsyncSession, key: GroupKey) -> ImageAttempt | None:
    attempt = await attempt_store.fetch_selected(db, key)
    if attempt is None:
        attempt = await attempt_store.fetch_latest(db, key)
    return attempt


def _key_context(key: GroupKey) -> dict:
    return {
        "question_id": key.question_id,
        "placement_type": key.placement_type,
        "prompt_id": key.prompt_id,
    }
