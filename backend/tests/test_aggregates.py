"""Unit tests for interest aggregates, ordering, generator payload and title matching."""
import uuid

from feedbacker.services.aggregates import (
    compute_aggregates,
    interest_label,
    match_interest,
    outline_payload,
    titles_match,
)
from feedbacker.services.topic_store import SelectionRecord, StoredTopic

SESSION = uuid.uuid4()


def _topic(text, order):
    return StoredTopic(uuid.uuid4(), SESSION, text, order)


def _votes(topic, more=0, less=0):
    return [SelectionRecord(uuid.uuid4(), topic.id, "more") for _ in range(more)] + [
        SelectionRecord(uuid.uuid4(), topic.id, "less") for _ in range(less)
    ]


def test_counts_and_derived_values():
    t = _topic("Caching\n- Redis patterns", 1)
    (agg,) = compute_aggregates([t], _votes(t, more=3, less=1))
    assert (agg.more, agg.less, agg.total, agg.net) == (3, 1, 4, 2)
    assert agg.title == "Caching"
    assert agg.label == "high"


def test_order_net_then_total_then_sort_order():
    a, b, c, d = _topic("A", 1), _topic("B", 2), _topic("C", 3), _topic("D", 4)
    selections = (
        _votes(a, more=1)            # net 1, total 1
        + _votes(b, more=2, less=1)  # net 1, total 3
        + _votes(c)                  # net 0, total 0
        + _votes(d, more=1)          # net 1, total 1 (ties with A, later sort_order)
    )
    ordered = compute_aggregates([a, b, c, d], selections)
    assert [x.topic_id for x in ordered] == [b.id, a.id, d.id, c.id]


def test_order_is_total_when_everything_ties():
    topics = [_topic(f"T{i}", order) for i, order in enumerate([3, 1, 2])]
    assert [x.sort_order for x in compute_aggregates(topics, [])] == [1, 2, 3]


def test_selections_for_other_topics_are_ignored():
    active = _topic("Active", 1)
    archived = _topic("Archived", 2)
    (agg,) = compute_aggregates([active], _votes(active, less=2) + _votes(archived, more=5))
    assert (agg.more, agg.less) == (0, 2)


def test_interest_labels():
    assert interest_label(2) == "high"
    assert interest_label(0) == "neutral"
    assert interest_label(-1) == "low"


def test_outline_payload_uses_decoded_title():
    t = _topic("Market context\n- why now", 1)
    payload = outline_payload(compute_aggregates([t], _votes(t, more=2, less=1)))
    assert payload == [{"text": "Market context", "more": 2, "less": 1, "net": 1}]


def test_titles_match_substring_and_overlap():
    assert titles_match("Advanced Caching Strategies", "caching strategies")
    assert titles_match("Scaling the database layer", "Database scaling tips")
    assert not titles_match("Team hiring", "Database scaling tips")
    assert not titles_match("", "Anything")


def test_match_interest_prefers_priority_order():
    low = _topic("Legacy migration", 1)
    high = _topic("Migration tooling", 2)
    aggs = compute_aggregates([low, high], _votes(low, less=3) + _votes(high, more=2))
    assert match_interest("Migration", aggs).topic_id == high.id
    assert match_interest("Unrelated slide", aggs) is None
