"""
Interest aggregates: per-topic more/less counts and the display/priority order.

Order: net desc, then total desc, then sort_order asc. sort_order is unique among active topics,
so the order is total.
"""
import re
import uuid
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Literal

from feedbacker.services.topic_blocks import topic_title
from feedbacker.services.topic_store import SelectionRecord, StoredTopic

InterestLabel = Literal["high", "neutral", "low"]

# Downstream title matching: words longer than this count toward overlap.
MATCH_MIN_WORD_LENGTH = 4
MATCH_MIN_OVERLAP = 0.5

_WORD_RE = re.compile(r"[a-z0-9']+")


@dataclass(frozen=True)
class TopicAggregate:
    topic_id: uuid.UUID
    text: str
    title: str
    sort_order: int
    more: int
    less: int

    @property
    def total(self) -> int:
        return self.more + self.less

    @property
    def net(self) -> int:
        return self.more - self.less

    @property
    def label(self) -> InterestLabel:
        return interest_label(self.net)

    def sort_key(self) -> tuple[int, int, int]:
        return (-self.net, -self.total, self.sort_order)


def interest_label(net: int) -> InterestLabel:
    if net > 0:
        return "high"
    if net < 0:
        return "low"
    return "neutral"


def _count(selections: Iterable[SelectionRecord]) -> dict[uuid.UUID, Counter]:
    counts: dict[uuid.UUID, Counter] = {}
    for s in selections:
        counts.setdefault(s.theme_id, Counter())[s.selection] += 1
    return counts


def aggregate_for_topic(topic_id: uuid.UUID, selections: Iterable[SelectionRecord]) -> tuple[int, int]:
    """(more, less) for one topic id, active or archived."""
    c = _count(s for s in selections if s.theme_id == topic_id).get(topic_id, Counter())
    return c["more"], c["less"]


def compute_aggregates(
    topics: list[StoredTopic], selections: Iterable[SelectionRecord]
) -> list[TopicAggregate]:
    """Aggregates for the given (active) topics, sorted by interest. Selections on other ids are ignored."""
    counts = _count(selections)
    out = []
    for t in topics:
        c = counts.get(t.id, Counter())
        out.append(
            TopicAggregate(
                topic_id=t.id,
                text=t.text,
                title=topic_title(t.text),
                sort_order=t.sort_order,
                more=c["more"],
                less=c["less"],
            )
        )
    out.sort(key=TopicAggregate.sort_key)
    return out


def outline_payload(aggregates: list[TopicAggregate]) -> list[dict]:
    """Shape handed to the outline generator: decoded title, never the encoded text."""
    return [{"text": a.title, "more": a.more, "less": a.less, "net": a.net} for a in aggregates]


def _significant_words(text: str) -> set[str]:
    return {w for w in _WORD_RE.findall(text.lower()) if len(w) >= MATCH_MIN_WORD_LENGTH}


def titles_match(generated: str, topic: str) -> bool:
    """Substring either way (case-insensitive), or >= 50% overlap of words longer than 3 chars."""
    g = (generated or "").strip().lower()
    t = (topic or "").strip().lower()
    if not g or not t:
        return False
    if g in t or t in g:
        return True
    gw, tw = _significant_words(g), _significant_words(t)
    if not gw or not tw:
        return False
    return len(gw & tw) / min(len(gw), len(tw)) >= MATCH_MIN_OVERLAP


def match_interest(title: str, aggregates: list[TopicAggregate]) -> TopicAggregate | None:
    """First aggregate (in priority order) whose title matches a generated slide/section title."""
    for a in aggregates:
        if titles_match(title, a.title):
            return a
    return None
