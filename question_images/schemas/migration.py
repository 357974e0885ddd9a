"""Pydantic schemas for migration runs, status and retention cleanup."""
from pydantic import BaseModel, Field


class MigrationStatsSchema(BaseModel):
    total_images: int = 0
    migrated_images: int = 0
    skipped_images: int = 0
    errors: int = 0
    duplicates_found: int = 0
    duplicates_resolved: int = 0


class MigrationResultSchema(BaseModel):
    success: bool
    message: str
    stats: MigrationStatsSchema


class MigrationStatusSchema(BaseModel):
    needs_migration: bool
    total_images: int
    migrated_images: int
    duplicate_groups: int


class CleanupRequestSchema(BaseModel):
    question_id: int | None = None
    placement_type: str | None = None
    prompt_id: str | None = None
    keep_latest: int | None = Field(default=None, ge=0)
