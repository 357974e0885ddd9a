from question_images.services.migrator import migrate_question_images, rollback_migration, validate_migration
from question_images.services.selection import deselect_group, get_selected, record_new_attempt, select_attempt

__all__ = [
    "record_new_attempt",
    "select_attempt",
    "deselect_group",
    "get_selected",
    "migrate_question_images",
    "validate_migration",
    "rollback_migration",
]
