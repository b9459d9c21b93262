"""
Response: one participant's feedback for a session (one row per participant email).
ThemeSelection: a more/less vote on one theme. theme_id may point at an archived theme;
selections only disappear when their response is deleted.
"""
import uuid
from datetime import datetime
from sqlalchemy import String, Text, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from feedbacker.database import Base
from feedbacker.models.types import UuidType


class Response(Base):
    __tablename__ = "responses"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    session_id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    participant_email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    free_form_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("session_id", "participant_email", name="responses_session_email_unique"),
    )

    session = relationship("TalkSession", back_populates="responses")
    selections = relationship("ThemeSelection", back_populates="response", cascade="all, delete-orphan")


class ThemeSelection(Base):
    __tablename__ = "theme_selections"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    response_id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), ForeignKey("responses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    theme_id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), ForeignKey("themes.id"), nullable=False, index=True
    )
    selection: Mapped[str] = mapped_column(String(10), nullable=False)

    __table_args__ = (
        CheckConstraint("selection IN ('more', 'less')", name="theme_selections_selection_check"),
        UniqueConstraint("response_id", "theme_id", name="theme_selections_response_theme_unique"),
    )

    response = relationship("Response", back_populates="selections")
    theme = relationship("Theme", back_populates="selections")
