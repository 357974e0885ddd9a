"""Add image_attempts.question_id / placement_type and one-selected-per-placement index.

Existing rows keep null direct fields until the image migration backfills
them (question-images-admin migrate). The partial unique index ignores those
rows, so it can be created before the backfill.

Revision ID: 002
Revises: 001
Create Date: 2025-07-14

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("image_attempts", sa.Column("question_id", sa.Integer(), nullable=True))
    op.add_column("image_attempts", sa.Column("placement_type", sa.String(64), nullable=True))
    op.create_index(op.f("ix_image_attempts_question_id"), "image_attempts", ["question_id"], unique=False)
    op.create_index(
        "ix_image_attempts_question_placement",
        "image_attempts",
        ["question_id", "placement_type"],
        unique=False,
    )
    op.create_index(
        "uq_image_attempts_one_selected",
        "image_attempts",
        ["question_id", "placement_type"],
        unique=True,
        sqlite_where=sa.text("is_selected = 1"),
        postgresql_where=sa.text("is_selected"),
    )


def downgrade() -> None:
    op.drop_index("uq_image_attempts_one_selected", table_name="image_attempts")
    op.drop_index("ix_image_attempts_question_placement", table_name="image_attempts")
    op.drop_index(op.f("ix_image_attempts_question_id"), table_name="image_attempts")
    op.drop_column("image_attempts", "placement_type")
    op.drop_column("image_attempts", "question_id")
