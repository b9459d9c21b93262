"""
Theme: one persisted topic of a session. text is the encoded topic block ("Title\\n- Sub1\\n- Sub2").
id is the only link to participant feedback: never reused, never hard-deleted by edits.
Removal moves status from active to archived; sort_order is unique among active themes of a session
(partial unique index), archived rows may keep any leftover value.
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import String, Integer, Text, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy import text as sa_text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from feedbacker.database import Base
from feedbacker.models.types import UuidType


class ThemeStatus(str, enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class Theme(Base):
    __tablename__ = "themes"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    session_id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ThemeStatus.ACTIVE.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("status IN ('active', 'archived')", name="themes_status_check"),
        Index(
            "themes_session_sort_active_unique",
            "session_id",
            "sort_order",
            unique=True,
            sqlite_where=sa_text("status = 'active'"),
            postgresql_where=sa_text("status = 'active'"),
        ),
    )

    session = relationship("TalkSession", back_populates="themes")
    selections = relationship("ThemeSelection", back_populates="theme")

    @property
    def is_active(self) -> bool:
        return self.status == ThemeStatus.ACTIVE.value
