"""Admin routes: schema migration and retention cleanup. Admin users only."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from question_images.db.session import get_db
from question_images.models.user import User
from question_images.routers.auth import require_admin
from question_images.schemas.migration import CleanupRequestSchema, MigrationResultSchema, MigrationStatusSchema
from question_images.services import migrator, retention
from question_images.services.groups import group_ref_from_fields

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/migration/status", response_model=MigrationStatusSchema)
async def migration_status(
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(require_admin)],
):
    return await migrator.get_migration_status(db)


@router.post("/migration/run", response_model=MigrationResultSchema)
async def run_migration(
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(require_admin)],
):
    """Backfill direct addressing on legacy attempts."""
    return await migrator.migrate_question_images(db)


@router.post("/migration/validate")
async def validate_migration(
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(require_admin)],
):
    issues = await migrator.validate_migration(db)
    return {"success": not issues, "issues": issues}


@router.post("/migration/rollback")
async def rollback_migration(
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(require_admin)],
):
    reverted = await migrator.rollback_migration(db)
    return {
        "success": True,
        "message": "Migration rolled back successfully",
        "reverted_images": reverted,
    }


@router.post("/attempts/cleanup")
async def cleanup_attempts(
    body: CleanupRequestSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(require_admin)],
):
    ref = group_ref_from_fields(
        prompt_id=body.prompt_id,
        question_id=body.question_id,
        placement_type=body.placement_type,
    )
    deleted = await retention.cleanup_old_attempts(db, ref, keep_latest=body.keep_latest)
    return {"success": True, "deleted": deleted}
