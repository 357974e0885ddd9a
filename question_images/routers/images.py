"""Image routes: prompts, saving attempts, selection and ratings (JSON)."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from question_images.core.errors import ValidationError
from question_images.db.session import get_db
from question_images.models.user import User
from question_images.routers.auth import get_current_user
from question_images.schemas.image import (
    DeselectSchema,
    ImageAttemptSchema,
    PromptCreateSchema,
    PromptSchema,
    PromptUpdateSchema,
    RateImageSchema,
    SaveImageNewSchema,
    SaveImageSchema,
    SelectImageSchema,
)
from question_images.services import prompts, ratings, selection
from question_images.services.groups import DirectRef, LegacyRef, group_ref_from_fields

router = APIRouter(prefix="/api/images", tags=["images"])


def _attempt(attempt) -> dict:
    return ImageAttemptSchema.model_validate(attempt).model_dump(mode="json")


def _prompt(prompt) -> dict:
    return PromptSchema.model_validate(prompt).model_dump(mode="json")


# ---------- prompts ----------

@router.post("/prompts")
async def create_prompt(
    body: PromptCreateSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
):
    """Create a generation request for a question placement."""
    prompt = await prompts.create_prompt(
        db,
        prompt_text=body.prompt_text,
        user_id=user.id,
        question_id=body.question_id,
        placement=body.placement,
        style_preference=body.style_preference,
        original_ai_prompt=body.original_ai_prompt,
    )
    return {"success": True, "data": _prompt(prompt)}


@router.get("/prompts")
async def list_prompts(
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    question_id: int | None = None,
):
    items = await prompts.list_prompts(db, user_id=user.id, question_id=question_id)
    return {"success": True, "data": [_prompt(p) for p in items]}


@router.put("/prompts")
async def update_prompt(
    body: PromptUpdateSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
):
    prompt = await prompts.update_prompt(
        db,
        prompt_id=body.id,
        prompt_text=body.prompt_text,
        user_id=user.id,
        style_preference=body.style_preference,
    )
    return {"success": True, "data": _prompt(prompt)}


# ---------- attempts ----------

@router.post("/save")
async def save_image(
    body: SaveImageSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
):
    """Record a new attempt for a prompt and make it the selected one."""
    if not (body.prompt_id and body.image_url and body.prompt_used and body.original_description):
        raise ValidationError("prompt_id, image_url, prompt_used, and original_description are required")

    attempt = await selection.record_new_attempt(
        db,
        LegacyRef(prompt_id=body.prompt_id),
        image_url=body.image_url,
        prompt_used=body.prompt_used,
        alt_text=body.original_description,
        user_id=user.id,
    )
    return {"success": True, "data": _attempt(attempt), "message": "Image record saved successfully"}


@router.post("/save-new-schema")
async def save_image_new_schema(
    body: SaveImageNewSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
):
    """Record a new attempt addressed by question and placement."""
    if body.question_id is None or not (body.placement_type and body.image_url and body.prompt_used):
        raise ValidationError("question_id, placement_type, image_url, and prompt_used are required")

    attempt = await selection.record_new_attempt(
        db,
        DirectRef(question_id=body.question_id, placement_type=body.placement_type),
        image_url=body.image_url,
        prompt_used=body.prompt_used,
        alt_text=body.alt_text or body.prompt_used,
        user_id=user.id,
    )
    return {"success": True, "data": _attempt(attempt)}


# ---------- selection ----------

@router.post("/select")
async def select_image(
    body: SelectImageSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
):
    if not body.image_id or not (body.prompt_id or (body.question_id is not None and body.placement_type)):
        raise ValidationError(
            "Either (image_id, question_id, placement_type) or (image_id, prompt_id) are required"
        )

    ref = group_ref_from_fields(
        prompt_id=body.prompt_id,
        question_id=body.question_id,
        placement_type=body.placement_type,
    )
    attempt = await selection.select_attempt(db, ref, body.image_id, user_id=user.id)
    return {
        "success": True,
        "message": "Image selected successfully",
        "selected_image_id": attempt.id,
    }


@router.get("/select")
async def get_selected_images(
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    prompt_id: str | None = None,
    question_id: int | None = None,
    placement_type: str | None = None,
):
    """Selected image per placement, falling back to the newest attempt."""
    if not prompt_id and question_id is None:
        raise ValidationError("prompt_id or question_id is required")

    if question_id is not None and not placement_type:
        attempts = await selection.get_selected_for_question(db, question_id)
    else:
        ref = group_ref_from_fields(prompt_id=prompt_id, question_id=question_id, placement_type=placement_type)
        attempt = await selection.get_selected(db, ref)
        attempts = [attempt] if attempt is not None else []
    return {"success": True, "data": [_attempt(a) for a in attempts]}


@router.delete("/select")
async def deselect_images(
    body: DeselectSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
):
    ref = group_ref_from_fields(
        prompt_id=body.prompt_id,
        question_id=body.question_id,
        placement_type=body.placement_type,
    )
    await selection.deselect_group(db, ref)
    return {"success": True, "message": "All images deselected"}


# ---------- ratings ----------

@router.post("/rate")
async def rate_image(
    body: RateImageSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
):
    """Rate an attempt for quality and educational accuracy."""
    if not body.image_id:
        raise ValidationError("image_id is required")
    await ratings.rate_attempt(
        db,
        body.image_id,
        rating=body.rating,
        accuracy_feedback=body.accuracy_feedback,
        user_id=user.id,
    )
    return {"success": True, "message": "Image rated successfully"}


@router.get("/rate")
async def rating_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    image_id: str | None = None,
    question_id: int | None = None,
):
    attempts, statistics = await ratings.rating_statistics(db, image_id=image_id, question_id=question_id)
    return {
        "success": True,
        "data": {
            "ratings": [_attempt(a) for a in attempts],
            "statistics": statistics.model_dump(),
        },
    }
