"""
SQLAlchemy store tests on SQLite: the partial unique index on active sort_order is real, and the
full edit scenario preserves feedback through reconcile_with_retry.
"""
import uuid

import pytest
from sqlalchemy import Text
from sqlalchemy.exc import IntegrityError

from feedbacker.models import Response, TalkSession, Theme, ThemeSelection, ThemeStatus
from feedbacker.services.aggregates import aggregate_for_topic, compute_aggregates
from feedbacker.services.errors import PersistenceFailure
from feedbacker.services.reconciler import EditedTopic, reconcile_with_retry
from feedbacker.services.topic_store import SqlAlchemyTopicStore


def _make_session_with_feedback(db):
    talk = TalkSession(title="Feedback Survival Test", outline="")
    db.add(talk)
    db.flush()
    themes = [
        Theme(session_id=talk.id, text=f"Theme {name}", sort_order=i)
        for i, name in enumerate(["Alpha", "Beta", "Charlie", "Delta"], start=1)
    ]
    db.add_all(themes)
    db.flush()
    a, b, c, d = themes
    r1, r2, r3 = (Response(session_id=talk.id, participant_email=f"p{i}@test.local") for i in (1, 2, 3))
    r1.selections = [
        ThemeSelection(theme_id=a.id, selection="more"),
        ThemeSelection(theme_id=b.id, selection="more"),
        ThemeSelection(theme_id=d.id, selection="more"),
    ]
    r2.selections = [
        ThemeSelection(theme_id=a.id, selection="more"),
        ThemeSelection(theme_id=c.id, selection="less"),
        ThemeSelection(theme_id=d.id, selection="more"),
    ]
    r3.selections = [
        ThemeSelection(theme_id=a.id, selection="less"),
        ThemeSelection(theme_id=c.id, selection="less"),
        ThemeSelection(theme_id=d.id, selection="more"),
    ]
    db.add_all([r1, r2, r3])
    db.commit()
    return talk.id, a.id, b.id, c.id, d.id


def test_partial_unique_index_only_covers_active_topics(db):
    talk = TalkSession(title="t")
    db.add(talk)
    db.flush()
    db.add(Theme(session_id=talk.id, text="A", sort_order=1))
    db.add(Theme(session_id=talk.id, text="Old", sort_order=1, status=ThemeStatus.ARCHIVED.value))
    db.commit()

    db.add(Theme(session_id=talk.id, text="Clash", sort_order=1))
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


def test_active_sort_order_index_is_partial():
    index = next(i for i in Theme.__table__.indexes if i.name == "themes_session_sort_active_unique")
    assert index.unique
    assert [c.name for c in index.columns] == ["session_id", "sort_order"]
    assert str(index.dialect_options["sqlite"]["where"]) == "status = 'active'"
    assert str(index.dialect_options["postgresql"]["where"]) == "status = 'active'"
    assert isinstance(Theme.__table__.c.text.type, Text)


def test_direct_swap_without_parking_violates_index(db):
    sid, a, b, c, d = _make_session_with_feedback(db)
    theme_a = db.get(Theme, a)
    theme_a.sort_order = 2
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


def test_edit_scenario_preserves_feedback(db):
    sid, a, b, c, d = _make_session_with_feedback(db)
    store = SqlAlchemyTopicStore(db)
    before = compute_aggregates(store.read_active_topics(sid), store.read_selections(sid))
    before_counts = {x.topic_id: (x.more, x.less) for x in before}
    assert before_counts == {a: (2, 1), b: (1, 0), c: (0, 2), d: (3, 0)}

    e = uuid.uuid4()
    result = reconcile_with_retry(
        store,
        sid,
        [
            EditedTopic("Theme Alpha Renamed", a),
            EditedTopic("Theme Beta", b),
            EditedTopic("Theme Echo", e),
            EditedTopic("Theme Charlie", c),
        ],
    )
    db.expire_all()

    active = store.read_active_topics(sid)
    assert [t.id for t in active] == [a, b, e, c]
    assert [t.sort_order for t in active] == [1, 2, 3, 4]
    assert active[0].text == "Theme Alpha Renamed"
    after = {x.topic_id: (x.more, x.less) for x in compute_aggregates(active, store.read_selections(sid))}
    assert after[a] == (2, 1) and after[b] == (1, 0) and after[c] == (0, 2) and after[e] == (0, 0)

    assert db.get(Theme, d).status == ThemeStatus.ARCHIVED.value
    assert aggregate_for_topic(d, store.read_selections(sid)) == (3, 0)
    assert db.query(ThemeSelection).count() == 9
    assert result.archived == [d]


def test_failed_flush_is_rolled_back_and_retried(db, monkeypatch):
    sid, a, b, c, d = _make_session_with_feedback(db)
    store = SqlAlchemyTopicStore(db)
    original = store.write_topic
    calls = {"n": 0}

    def flaky(write):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("connection reset")
        original(write)

    monkeypatch.setattr(store, "write_topic", flaky)
    result = reconcile_with_retry(
        store, sid, [EditedTopic("Theme Delta", d), EditedTopic("Theme Alpha", a)], max_attempts=3
    )
    db.expire_all()
    assert result.attempts == 2
    assert [t.id for t in store.read_active_topics(sid)] == [d, a]
    assert sorted(result.archived) == sorted([b, c])


def test_retries_exhausted_leave_committed_state_untouched(db, monkeypatch):
    sid, a, b, c, d = _make_session_with_feedback(db)
    store = SqlAlchemyTopicStore(db)

    def broken(write):
        raise RuntimeError("store down")

    monkeypatch.setattr(store, "write_topic", broken)
    with pytest.raises(PersistenceFailure):
        reconcile_with_retry(store, sid, [EditedTopic("Only Alpha", a)], max_attempts=2)
    db.expire_all()
    assert [t.id for t in store.read_active_topics(sid)] == [a, b, c, d]
