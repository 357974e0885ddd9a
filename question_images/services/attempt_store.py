"""Query layer over the image_attempts table."""
from datetime import datetime, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from question_images.db.store import execute, flush
from question_images.models.image_attempt import ImageAttempt
from question_images.services.groups import GroupKey, group_clause


async def get_attempt(
    db: AsyncSession,
    attempt_id: str,
    key: GroupKey | None = None,
    user_id: int | None = None,
) -> ImageAttempt | None:
    """Fetch one attempt, optionally restricted to a group and an owner."""
    stmt = select(ImageAttempt).where(ImageAttempt.id == attempt_id)
    if key is not None:
        stmt = stmt.where(group_clause(key))
    if user_id is not None:
        stmt = stmt.where(ImageAttempt.user_id == user_id)
    result = await execute(db, stmt, "fetch attempt")
    return result.scalar_one_or_none()


async def next_attempt_number(db: AsyncSession, key: GroupKey) -> int:
    result = await execute(
        db,
        select(func.max(ImageAttempt.attempt_number)).where(group_clause(key)),
        "fetch attempt numbers",
    )
    current = result.scalar_one_or_none()
    return (current or 0) + 1


async def insert_attempt(db: AsyncSession, **fields) -> ImageAttempt:
    fields.setdefault("generated_at", datetime.now(timezone.utc))
    attempt = ImageAttempt(**fields)
    db.add(attempt)
    await flush(db, "insert attempt")
    return attempt


async def deselect_group(db: AsyncSession, key: GroupKey, except_id: str | None = None) -> None:
    stmt = (
        update(ImageAttempt)
        .where(group_clause(key), ImageAttempt.is_selected.is_(True))
        .values(is_selected=False)
    )
    if except_id is not None:
        stmt = stmt.where(ImageAttempt.id != except_id)
    await execute(db, stmt, "deselect group")


async def mark_selected(db: AsyncSession, attempt_id: str) -> None:
    await execute(
        db,
        update(ImageAttempt).where(ImageAttempt.id == attempt_id).values(is_selected=True),
        "select attempt",
    )


async def list_group(db: AsyncSession, key: GroupKey) -> list[ImageAttempt]:
    """All attempts in the group, newest attempt number first."""
    result = await execute(
        db,
        select(ImageAttempt)
        .where(group_clause(key))
        .order_by(ImageAttempt.attempt_number.desc(), ImageAttempt.generated_at.desc()),
        "list group",
    )
    return list(result.scalars().all())


async def fetch_selected(db: AsyncSession, key: GroupKey) -> ImageAttempt | None:
    result = await execute(
        db,
        select(ImageAttempt)
        .where(group_clause(key), ImageAttempt.is_selected.is_(True))
        .order_by(ImageAttempt.generated_at.desc())
        .limit(1),
        "fetch selected",
    )
    return result.scalar_one_or_none()


async def fetch_latest(db: AsyncSession, key: GroupKey) -> ImageAttempt | None:
    result = await execute(
        db,
        select(ImageAttempt)
        .where(group_clause(key))
        .order_by(ImageAttempt.generated_at.desc(), ImageAttempt.attempt_number.desc())
        .limit(1),
        "fetch latest",
    )
    return result.scalar_one_or_none()


async def delete_unselected(db: AsyncSession, attempt_ids: list[str]) -> None:
    if not attempt_ids:
        return
    await execute(
        db,
        delete(ImageAttempt).where(
            ImageAttempt.id.in_(attempt_ids),
            ImageAttempt.is_selected.is_(False),
        ),
        "delete attempts",
    )
