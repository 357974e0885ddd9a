"""Question routes: create a question and browse its image attempts."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from question_images.db.session import get_db
from question_images.models.user import User
from question_images.routers.auth import get_current_user
from question_images.schemas.image import QuestionCreateSchema, QuestionSchema
from question_images.services import questions

router = APIRouter(prefix="/api/questions", tags=["questions"])


@router.post("")
async def create_question(
    body: QuestionCreateSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
):
    question = await questions.create_question(db, body.question_text, user_id=user.id, subject=body.subject)
    return {"success": True, "data": QuestionSchema.model_validate(question).model_dump()}


@router.get("/{question_id}/images")
async def question_images(
    question_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
):
    """All image attempts of a question, grouped by placement."""
    images, grouped = await questions.list_question_images(db, question_id)
    return {
        "success": True,
        "data": [image.model_dump(mode="json") for image in images],
        "grouped_by_placement": {
            placement: [image.model_dump(mode="json") for image in items]
            for placement, items in grouped.items()
        },
        "total_images": len(images),
        "total_placements": len(grouped),
    }
