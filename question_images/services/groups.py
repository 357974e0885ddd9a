"""Attempt groups: the placement an image attempt competes for selection in.

A request names a group either through a generation request (legacy) or
directly by question and placement. Both resolve to one ``GroupKey`` so the
rest of the code never has to look at which fields a request carried.
"""
from dataclasses import dataclass

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from question_images.core.errors import NotFoundError, ValidationError
from question_images.db.store import execute
from question_images.models.generation_request import GenerationRequest
from question_images.models.image_attempt import ImageAttempt


@dataclass(frozen=True)
class LegacyRef:
    prompt_id: str


@dataclass(frozen=True)
class DirectRef:
    question_id: int
    placement_type: str


AttemptGroupRef = LegacyRef | DirectRef


@dataclass(frozen=True)
class GroupKey:
    """Resolved group.

    ``question_id``/``placement_type`` are set whenever the placement is known;
    ``prompt_id`` is kept for legacy refs and is the only key for prompts that
    were never attached to a question.
    """

    question_id: int | None = None
    placement_type: str | None = None
    prompt_id: str | None = None

    @property
    def is_direct(self) -> bool:
        return self.question_id is not None and self.placement_type is not None


def group_ref_from_fields(
    prompt_id: str | None = None,
    question_id: int | None = None,
    placement_type: str | None = None,
) -> AttemptGroupRef:
    """Build a group ref from request fields, preferring direct addressing."""
    if question_id is not None and placement_type:
        return DirectRef(question_id=question_id, placement_type=placement_type)
    if prompt_id:
        return LegacyRef(prompt_id=prompt_id)
    raise ValidationError("Either (question_id and placement_type) or prompt_id is required")


async def resolve_group(db: AsyncSession, ref: AttemptGroupRef) -> GroupKey:
    if isinstance(ref, DirectRef):
        return GroupKey(question_id=ref.question_id, placement_type=ref.placement_type)

    result = await execute(
        db,
        select(GenerationRequest).where(GenerationRequest.id == ref.prompt_id),
        "fetch prompt",
    )
    prompt = result.scalar_one_or_none()
    if prompt is None:
        raise NotFoundError("Prompt not found")
    if prompt.question_id is None:
        return GroupKey(prompt_id=prompt.id)
    return GroupKey(
        question_id=prompt.question_id,
        placement_type=prompt.placement,
        prompt_id=prompt.id,
    )


def group_clause(key: GroupKey):
    """WHERE clause matching every attempt in the group.

    For a direct key this covers rows already carrying the direct fields and
    not-yet-migrated rows reached through a prompt for the same placement.
    """
    if not key.is_direct:
        return ImageAttempt.prompt_id == key.prompt_id

    legacy_prompts = select(GenerationRequest.id).where(
        GenerationRequest.question_id == key.question_id,
        GenerationRequest.placement == key.placement_type,
    )
    return or_(
        and_(
            ImageAttempt.question_id == key.question_id,
            ImageAttempt.placement_type == key.placement_type,
        ),
        and_(
            ImageAttempt.question_id.is_(None),
            ImageAttempt.prompt_id.in_(legacy_prompts),
        ),
    )
