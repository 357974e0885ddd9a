"""Best-effort purge of old, unselected image attempts."""
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from question_images.core.config import get_settings
from question_images.core.errors import StoreError, ValidationError
from question_images.db.store import commit
from question_images.services import attempt_store
from question_images.services.groups import AttemptGroupRef, resolve_group

logger = structlog.get_logger(__name__)


async def cleanup_old_attempts(db: AsyncSession, ref: AttemptGroupRef, keep_latest: int | None = None) -> int:
    """Delete unselected attempts beyond the newest ``keep_latest`` of a group.

    The selected attempt is never deleted. Returns the number of rows removed.
    """
    if keep_latest is None:
        keep_latest = get_settings().retention_keep_latest
    if keep_latest < 0:
        raise ValidationError("keep_latest must not be negative")

    key = await resolve_group(db, ref)
    attempts = await attempt_store.list_group(db, key)
    doomed = [attempt.id for attempt in attempts[keep_latest:] if not attempt.is_selected]

    try:
        await attempt_store.delete_unselected(db, doomed)
        await commit(db, "cleanup attempts")
    except StoreError:
        await db.rollback()
        raise

    logger.info("image_attempts_cleaned", deleted=len(doomed), kept=len(attempts) - len(doomed))
    return len(doomed)
