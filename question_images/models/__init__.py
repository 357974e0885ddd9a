from question_images.models.generation_request import GenerationRequest
from question_images.models.image_attempt import ImageAttempt
from question_images.models.maintenance_lock import MaintenanceLock
from question_images.models.question import Question
from question_images.models.user import User

__all__ = ["User", "Question", "GenerationRequest", "ImageAttempt", "MaintenanceLock"]
