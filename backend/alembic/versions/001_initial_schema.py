"""Initial schema: sessions, themes (status lifecycle + partial unique sort_order), responses, theme_selections.

Revision ID: 001
Revises:
Create Date: Initial

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(512), nullable=False, server_default=""),
        sa.Column("outline", sa.Text(), nullable=False, server_default=""),
        sa.Column("topics_source", sa.String(20), nullable=False, server_default="generated"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("topics_source IN ('generated', 'manual')", name="sessions_topics_source_check"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "themes",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("status IN ('active', 'archived')", name="themes_status_check"),
        sa.ForeignKeyConstraint(["session_id"], ["sessions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_themes_session_id", "themes", ["session_id"], unique=False)
    # sort_order is unique among active themes only; archived rows keep whatever value they had
    op.create_index(
        "themes_session_sort_active_unique",
        "themes",
        ["session_id", "sort_order"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "responses",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("participant_email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("free_form_text", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["session_id"], ["sessions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("session_id", "participant_email", name="responses_session_email_unique"),
    )
    op.create_index("ix_responses_session_id", "responses", ["session_id"], unique=False)

    # theme_id has no ON DELETE: themes are archived, never deleted, while selections exist
    op.create_table(
        "theme_selections",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("response_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("theme_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("selection", sa.String(10), nullable=False),
        sa.CheckConstraint("selection IN ('more', 'less')", name="theme_selections_selection_check"),
        sa.ForeignKeyConstraint(["response_id"], ["responses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["theme_id"], ["themes.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("response_id", "theme_id", name="theme_selections_response_theme_unique"),
    )
    op.create_index("ix_theme_selections_response_id", "theme_selections", ["response_id"], unique=False)
    op.create_index("ix_theme_selections_theme_id", "theme_selections", ["theme_id"], unique=False)


def downgrade() -> None:
    op.drop_table("theme_selections")
    op.drop_table("responses")
    op.drop_index("themes_session_sort_active_unique", table_name="themes")
    op.drop_table("themes")
    op.drop_table("sessions")
