"""Error taxonomy shared by services and routers.

Services raise these; the handlers registered in ``question_images.main``
turn them into ``{"success": false, "error": ...}`` responses.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Missing or malformed request fields."""

    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class PermissionDeniedError(AppError):
    status_code = 403


class NotFoundError(AppError):
    """Attempt, prompt or question does not exist or the caller cannot see it."""

    status_code = 404


class StoreError(AppError):
    """A data-store call failed or timed out.

    ``retriable`` is set for timeouts; callers may retry the whole operation.
    """

    status_code = 500

    def __init__(self, message: str, retriable: bool = False):
        super().__init__(message)
        self.retriable = retriable


class MigrationError(AppError):
    status_code = 500


class MigrationInProgressError(MigrationError):
    status_code = 409
