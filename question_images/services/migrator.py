"""Backfill of direct (question_id, placement_type) addressing.

Legacy attempts only reach their question through the generation request
(prompt) they belong to. ``migrate_question_images`` copies the prompt's
question and placement onto each attempt and collapses duplicate selections
so every placement ends up with exactly one selected attempt. Rows are never
deleted.

Each group is committed on its own: a failing group is rolled back, counted
and logged, and the run moves on. Re-running only touches rows that still
have no ``question_id``.
"""
import os
import socket
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import NamedTuple

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from question_images.core.errors import MigrationInProgressError, StoreError
from question_images.db.store import commit, execute, flush
from question_images.models.generation_request import GenerationRequest
from question_images.models.image_attempt import ImageAttempt
from question_images.models.maintenance_lock import MaintenanceLock
from question_images.models.question import Question
from question_images.schemas.migration import (
    MigrationResultSchema,
    MigrationStatsSchema,
    MigrationStatusSchema,
)

logger = structlog.get_logger(__name__)

MIGRATION_LOCK = "image-migration"


def _holder() -> str:
    return f"{socket.gethostname()}:{os.getpid()}"


@asynccontextmanager
async def maintenance_lock(db: AsyncSession, name: str = MIGRATION_LOCK):
    """Hold the named lock row for the duration of the block.

    Raises MigrationInProgressError if another run already holds it.
    """
    db.add(MaintenanceLock(name=name, holder=_holder(), acquired_at=datetime.now(timezone.utc)))
    try:
        await flush(db, "acquire lock")
        await commit(db, "acquire lock")
    except StoreError as exc:
        await db.rollback()
        if isinstance(exc.__cause__, IntegrityError):
            raise MigrationInProgressError(f"Maintenance lock '{name}' is already held") from exc
        raise

    logger.info("maintenance_lock_acquired", lock=name)
    try:
        yield
    finally:
        await db.rollback()
        await release_lock(db, name)


async def release_lock(db: AsyncSession, name: str = MIGRATION_LOCK) -> bool:
    """Delete the lock row. Returns False if it was not held."""
    result = await execute(db, delete(MaintenanceLock).where(MaintenanceLock.name == name), "release lock")
    await commit(db, "release lock")
    released = bool(result.rowcount)
    logger.info("maintenance_lock_released", lock=name, was_held=released)
    return released


class AttemptSnapshot(NamedTuple):
    """Plain copy of the fields the keeper choice needs.

    Snapshots survive the per-group rollbacks that expire ORM instances.
    """

    id: str
    is_selected: bool
    generated_at: datetime | None
    attempt_number: int | None

    @classmethod
    def of(cls, attempt: ImageAttempt) -> "AttemptSnapshot":
        return cls(attempt.id, bool(attempt.is_selected), attempt.generated_at, attempt.attempt_number)


def choose_keeper(rows: list[AttemptSnapshot]) -> AttemptSnapshot:
    """Pick the attempt that stays selected in a group.

    Already-selected rows win; ties go to the latest ``generated_at``, then
    the highest attempt number, then the id, so the result does not depend
    on the order rows were fetched in.
    """
    return max(
        rows,
        key=lambda row: (
            bool(row.is_selected),
            _sortable_time(row.generated_at),
            row.attempt_number or 0,
            row.id,
        ),
    )


def _sortable_time(value: datetime | None) -> datetime:
    if value is None:
        return datetime.min
    # SQLite hands back naive datetimes; compare everything as naive UTC
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


async def _fetch_unmigrated(db: AsyncSession) -> list[tuple[ImageAttempt, GenerationRequest | None]]:
    result = await execute(
        db,
        select(ImageAttempt, GenerationRequest)
        .outerjoin(GenerationRequest, ImageAttempt.prompt_id == GenerationRequest.id)
        .where(ImageAttempt.question_id.is_(None))
        .order_by(ImageAttempt.generated_at),
        "fetch unmigrated attempts",
    )
    return list(result.all())


async def _migrate_group(
    db: AsyncSession,
    question_id: int,
    placement: str,
    rows: list[AttemptSnapshot],
) -> AttemptSnapshot:
    keeper = choose_keeper(rows)
    others = [row.id for row in rows if row.id != keeper.id]

    if others:
        await execute(
            db,
            update(ImageAttempt)
            .where(ImageAttempt.id.in_(others))
            .values(question_id=question_id, placement_type=placement, is_selected=False),
            "stamp duplicates",
        )
    # Rows recorded directly for this placement give way to the keeper
    await execute(
        db,
        update(ImageAttempt)
        .where(
            ImageAttempt.question_id == question_id,
            ImageAttempt.placement_type == placement,
            ImageAttempt.id != keeper.id,
            ImageAttempt.is_selected.is_(True),
        )
        .values(is_selected=False),
        "clear direct selection",
    )
    await execute(
        db,
        update(ImageAttempt)
        .where(ImageAttempt.id == keeper.id)
        .values(question_id=question_id, placement_type=placement, is_selected=True),
        "stamp keeper",
    )
    await commit(db, "migrate group")
    return keeper


async def migrate_question_images(db: AsyncSession) -> MigrationResultSchema:
    stats = MigrationStatsSchema()

    async with maintenance_lock(db):
        rows = await _fetch_unmigrated(db)
        stats.total_images = len(rows)
        logger.info("migration_started", total_images=stats.total_images)

        if not rows:
            return MigrationResultSchema(success=True, message="No images need migration", stats=stats)

        groups: dict[tuple[int, str], list[AttemptSnapshot]] = defaultdict(list)
        for attempt, prompt in rows:
            if prompt is None or prompt.question_id is None:
                stats.skipped_images += 1
                continue
            groups[(prompt.question_id, prompt.placement)].append(AttemptSnapshot.of(attempt))

        for (question_id, placement), group_rows in groups.items():
            if len(group_rows) > 1:
                stats.duplicates_found += len(group_rows) - 1
            try:
                await _migrate_group(db, question_id, placement, group_rows)
            except StoreError as exc:
                await db.rollback()
                stats.errors += 1
                logger.error(
                    "migration_group_failed",
                    question_id=question_id,
                    placement_type=placement,
                    images=len(group_rows),
                    error=exc.message,
                )
                continue

            if len(group_rows) > 1:
                stats.duplicates_resolved += len(group_rows) - 1
                logger.info(
                    "migration_duplicates_resolved",
                    question_id=question_id,
                    placement_type=placement,
                    images=len(group_rows),
                )
            stats.migrated_images += len(group_rows)

    logger.info("migration_finished", **stats.model_dump())
    if stats.errors:
        return MigrationResultSchema(
            success=False,
            message=f"Migrated {stats.migrated_images} images with {stats.errors} failed groups",
            stats=stats,
        )
    return MigrationResultSchema(
        success=True,
        message=f"Successfully migrated {stats.migrated_images} images",
        stats=stats,
    )


async def validate_migration(db: AsyncSession) -> list[str]:
    """Return human-readable consistency issues; an empty list means consistent."""
    issues = []

    result = await execute(
        db,
        select(func.count(ImageAttempt.id)).where(
            (ImageAttempt.question_id.is_(None)) | (ImageAttempt.placement_type.is_(None))
        ),
        "count unaddressed attempts",
    )
    missing = result.scalar_one()
    if missing:
        issues.append(f"{missing} images still missing question_id or placement_type")

    duplicate_groups = await _count_duplicate_selections(db)
    if duplicate_groups:
        issues.append(f"{duplicate_groups} question/placement combinations have multiple selected images")

    result = await execute(
        db,
        select(func.count(ImageAttempt.id))
        .outerjoin(Question, ImageAttempt.question_id == Question.id)
        .where(ImageAttempt.question_id.is_not(None), Question.id.is_(None)),
        "count orphaned attempts",
    )
    orphaned = result.scalar_one()
    if orphaned:
        issues.append(f"{orphaned} images reference non-existent questions")

    logger.info("migration_validated", issues=len(issues))
    return issues


async def rollback_migration(db: AsyncSession) -> int:
    """Clear direct addressing on every attempt that still has a prompt.

    Selection flags are left as the migration set them; they are not
    restored to their pre-migration values. Attempts recorded without a
    prompt keep their direct fields since they have no other address.
    """
    async with maintenance_lock(db):
        result = await execute(
            db,
            update(ImageAttempt)
            .where(ImageAttempt.question_id.is_not(None), ImageAttempt.prompt_id.is_not(None))
            .values(question_id=None, placement_type=None),
            "rollback migration",
        )
        await commit(db, "rollback migration")
        reverted = result.rowcount or 0

    logger.warning("migration_rolled_back", reverted_images=reverted)
    return reverted


async def get_migration_status(db: AsyncSession) -> MigrationStatusSchema:
    total = (await execute(db, select(func.count(ImageAttempt.id)), "count attempts")).scalar_one()
    migrated = (
        await execute(
            db,
            select(func.count(ImageAttempt.id)).where(ImageAttempt.question_id.is_not(None)),
            "count migrated attempts",
        )
    ).scalar_one()
    return MigrationStatusSchema(
        needs_migration=migrated < total,
        total_images=total,
        migrated_images=migrated,
        duplicate_groups=await _count_duplicate_selections(db),
    )


async def _count_duplicate_selections(db: AsyncSession) -> int:
    duplicates = (
        select(ImageAttempt.question_id, ImageAttempt.placement_type)
        .where(
            ImageAttempt.is_selected.is_(True),
            ImageAttempt.question_id.is_not(None),
            ImageAttempt.placement_type.is_not(None),
        )
        .group_by(ImageAttempt.question_id, ImageAttempt.placement_type)
        .having(func.count(ImageAttempt.id) > 1)
        .subquery()
    )
    result = await execute(db, select(func.count()).select_from(duplicates), "count duplicate selections")
    return result.scalar_one()
