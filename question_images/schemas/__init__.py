from question_images.schemas.image import (
    ImageAttemptSchema,
    PromptSchema,
    RatingStatisticsSchema,
    SelectImageSchema,
)
from question_images.schemas.migration import MigrationResultSchema, MigrationStatsSchema, MigrationStatusSchema

__all__ = [
    "ImageAttemptSchema",
    "PromptSchema",
    "RatingStatisticsSchema",
    "SelectImageSchema",
    "MigrationResultSchema",
    "MigrationStatsSchema",
    "MigrationStatusSchema",
]
