"""
Persistence seam for the topic engine.

The reconciler and aggregates only talk to a TopicStore:
  read_active_topics(session_id), write_topic(write), read_selections(session_id).
SqlAlchemyTopicStore flushes every write so the partial unique index on active sort_order is checked
statement by statement; the caller commits once (single transaction per save).
InMemoryTopicStore enforces the same invariant and backs the unit tests.
"""
import logging
import uuid
from dataclasses import dataclass, replace
from typing import Literal, Protocol

from sqlalchemy.orm import Session

from feedbacker.models.response import Response, ThemeSelection
from feedbacker.models.theme import Theme, ThemeStatus
from feedbacker.services.errors import StoreConstraintError

logger = logging.getLogger(__name__)

WriteKind = Literal["insert", "update", "archive"]


@dataclass(frozen=True)
class StoredTopic:
    id: uuid.UUID
    session_id: uuid.UUID
    text: str
    sort_order: int
    status: str = ThemeStatus.ACTIVE.value

    @property
    def is_active(self) -> bool:
        return self.status == ThemeStatus.ACTIVE.value


@dataclass(frozen=True)
class TopicWrite:
    """One storage operation. None for text/sort_order on an update means "leave as is"."""
    kind: WriteKind
    topic_id: uuid.UUID
    session_id: uuid.UUID
    text: str | None = None
    sort_order: int | None = None


@dataclass(frozen=True)
class SelectionRecord:
    response_id: uuid.UUID
    theme_id: uuid.UUID
    selection: Literal["more", "less"]


class TopicStore(Protocol):
    def read_active_topics(self, session_id: uuid.UUID) -> list[StoredTopic]: ...

    def write_topic(self, write: TopicWrite) -> None: ...

    def read_selections(self, session_id: uuid.UUID) -> list[SelectionRecord]: ...


class InMemoryTopicStore:
    """Dict-backed store. Rejects writes that would give two active topics of a session the same sort_order."""

    def __init__(self):
        self.topics: dict[uuid.UUID, StoredTopic] = {}
        self.selections: list[SelectionRecord] = []
        self.writes: list[TopicWrite] = []

    def read_active_topics(self, session_id):
        active = [t for t in self.topics.values() if t.session_id == session_id and t.is_active]
        return sorted(active, key=lambda t: t.sort_order)

    def read_selections(self, session_id):
        ids = {t.id for t in self.topics.values() if t.session_id == session_id}
        return [s for s in self.selections if s.theme_id in ids]

    def write_topic(self, write: TopicWrite) -> None:
        if write.kind == "insert":
            if write.topic_id in self.topics:
                raise StoreConstraintError(f"topic {write.topic_id} already exists")
            row = StoredTopic(write.topic_id, write.session_id, write.text or "", write.sort_order or 0)
        else:
            current = self.topics.get(write.topic_id)
            if current is None:
                raise StoreConstraintError(f"topic {write.topic_id} not found")
            if write.kind == "archive":
                row = replace(current, status=ThemeStatus.ARCHIVED.value)
            else:
                row = replace(
                    current,
                    text=current.text if write.text is None else write.text,
                    sort_order=current.sort_order if write.sort_order is None else write.sort_order,
                )
        if row.is_active:
            for other in self.topics.values():
                if (
                    other.id != row.id
                    and other.session_id == row.session_id
                    and other.is_active
                    and other.sort_order == row.sort_order
                ):
                    raise StoreConstraintError(
                        f"sort_order {row.sort_order} already used by active topic {other.id}"
                    )
        self.topics[row.id] = row
        self.writes.append(write)

    def add_selection(self, response_id, theme_id, selection) -> None:
        self.selections.append(SelectionRecord(response_id, theme_id, selection))


def _to_stored(t: Theme) -> StoredTopic:
    return StoredTopic(id=t.id, session_id=t.session_id, text=t.text, sort_order=t.sort_order, status=t.status)


class SqlAlchemyTopicStore:
    """TopicStore over a SQLAlchemy session. Does not commit; call commit()/rollback() per save attempt."""

    def __init__(self, db: Session):
        self.db = db

    def read_active_topics(self, session_id):
        rows = (
            self.db.query(Theme)
            .filter(Theme.session_id == session_id, Theme.status == ThemeStatus.ACTIVE.value)
            .order_by(Theme.sort_order)
            .all()
        )
        return [_to_stored(t) for t in rows]

    def read_selections(self, session_id):
        rows = (
            self.db.query(ThemeSelection)
            .join(Response, ThemeSelection.response_id == Response.id)
            .filter(Response.session_id == session_id)
            .all()
        )
        return [SelectionRecord(s.response_id, s.theme_id, s.selection) for s in rows]

    def write_topic(self, write: TopicWrite) -> None:
        if write.kind == "insert":
            self.db.add(
                Theme(
                    id=write.topic_id,
                    session_id=write.session_id,
                    text=write.text or "",
                    sort_order=write.sort_order,
                    status=ThemeStatus.ACTIVE.value,
                )
            )
        else:
            theme = (
                self.db.query(Theme)
                .filter(Theme.id == write.topic_id, Theme.session_id == write.session_id)
                .first()
            )
            if theme is None:
                raise StoreConstraintError(f"topic {write.topic_id} not found in session {write.session_id}")
            if write.kind == "archive":
                theme.status = ThemeStatus.ARCHIVED.value
            else:
                if write.text is not None:
                    theme.text = write.text
                if write.sort_order is not None:
                    theme.sort_order = write.sort_order
        self.db.flush()

    def topic_ids_in_use(self, ids) -> set[uuid.UUID]:
        """Which of ids already exist as theme rows (any session, any status)."""
        ids = list(ids)
        if not ids:
            return set()
        return {row[0] for row in self.db.query(Theme.id).filter(Theme.id.in_(ids)).all()}

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
