"""SQLAlchemy declarative base and model imports for Alembic."""
from question_images.db.session import Base

# Import all models so Alembic can see them
from question_images.models.generation_request import GenerationRequest  # noqa: F401
from question_images.models.image_attempt import ImageAttempt  # noqa: F401
from question_images.models.maintenance_lock import MaintenanceLock  # noqa: F401
from question_images.models.question import Question  # noqa: F401
from question_images.models.user import User  # noqa: F401

__all__ = ["Base", "User", "Question", "GenerationRequest", "ImageAttempt", "MaintenanceLock"]
