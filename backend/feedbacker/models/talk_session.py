"""
TalkSession: one upcoming talk. Owns its themes (topics) and participant responses.
topics_source tells the editor whether themes still mirror the outline (generated) or were hand-edited (manual).
"""
import uuid
from datetime import datetime
from sqlalchemy import String, Text, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from feedbacker.database import Base
from feedbacker.models.types import UuidType


class TalkSession(Base):
    __tablename__ = "sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    outline: Mapped[str] = mapped_column(Text, nullable=False, default="")
    topics_source: Mapped[str] = mapped_column(String(20), nullable=False, default="generated")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("topics_source IN ('generated', 'manual')", name="sessions_topics_source_check"),
    )

    themes = relationship("Theme", back_populates="session", cascade="all, delete-orphan", order_by="Theme.sort_order")
    responses = relationship("Response", back_populates="session", cascade="all, delete-orphan")
