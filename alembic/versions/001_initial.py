"""Initial tables: users, questions, image_prompts, image_attempts (prompt-addressed).

Revision ID: 001
Revises:
Create Date: 2025-06-02

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("subject", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_questions_user_id"), "questions", ["user_id"], unique=False)

    op.create_table(
        "image_prompts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=True),
        sa.Column("placement", sa.String(64), nullable=False, server_default="question"),
        sa.Column("prompt_text", sa.Text(), nullable=False),
        sa.Column("original_ai_prompt", sa.Text(), nullable=True),
        sa.Column("style_preference", sa.String(64), nullable=False, server_default="educational_diagram"),
        sa.Column("is_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_image_prompts_question_id"), "image_prompts", ["question_id"], unique=False)
    op.create_index(op.f("ix_image_prompts_user_id"), "image_prompts", ["user_id"], unique=False)

    op.create_table(
        "image_attempts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("prompt_id", sa.String(36), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column("prompt_used", sa.Text(), nullable=False),
        sa.Column("alt_text", sa.Text(), nullable=True),
        sa.Column("attempt_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_selected", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("user_rating", sa.Integer(), nullable=True),
        sa.Column("accuracy_feedback", sa.String(32), nullable=True),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_image_attempts_prompt_id"), "image_attempts", ["prompt_id"], unique=False)
    op.create_index(op.f("ix_image_attempts_user_id"), "image_attempts", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_image_attempts_user_id"), table_name="image_attempts")
    op.drop_index(op.f("ix_image_attempts_prompt_id"), table_name="image_attempts")
    op.drop_table("image_attempts")
    op.drop_index(op.f("ix_image_prompts_user_id"), table_name="image_prompts")
    op.drop_index(op.f("ix_image_prompts_question_id"), table_name="image_prompts")
    op.drop_table("image_prompts")
    op.drop_index(op.f("ix_questions_user_id"), table_name="questions")
    op.drop_table("questions")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
