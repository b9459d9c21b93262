"""
Outline parsing: presenter free text -> ordered topic blocks (title + subtopics).

Line-level heuristics only. Which lines attach as subtopics is decided by an ordered table of
named predicates held on ParserPolicy, so the active policy is one object that tests can pin.

Decided policy:
  - a short line directly under a title (no blank line between) is a subtopic unless it looks
    like a header (section keyword, 3+ words, or trailing colon);
  - consecutive fragment titles (single word, or <= 20 chars with no colon/dash/bullet, and not a
    section keyword) with no subtopics are concatenated while the result stays within 20 chars.

parse_outline is total and deterministic: it never raises and returns [] for blank input.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, NamedTuple

from feedbacker.services.topic_blocks import TopicBlock, encode_topic_block

logger = logging.getLogger(__name__)

SECTION_KEYWORDS = frozenset({
    "introduction", "intro", "conclusion", "overview", "summary", "background", "agenda",
    "methodology", "methods", "results", "discussion", "references", "appendix",
    "objectives", "goals", "takeaways", "key takeaways", "next steps",
    "questions", "q&a", "q & a", "case study", "wrap up", "wrap-up",
})

_BULLET_RE = re.compile(r"^[-*•—–]")
_BULLET_PREFIX_RE = re.compile(r"^[-*•—–]\s*")
_NUMBER_PREFIX_RE = re.compile(r"^\d+[.)]\s*")
_LABEL_PREFIX_RE = re.compile(r"^topic\s*:\s*", re.IGNORECASE)
_TRAILING_PUNCT_RE = re.compile(r"[.,;:]+$")
_INDENT_RE = re.compile(r"^(?:\t| {2,})")
_DELIMITER_RE = re.compile(r"[:—–]|\s-\s|^[-*•]")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_DEDUPE_KEY_RE = re.compile(r"[^\w\s]+")

FALLBACK_MAX_SENTENCES = 5


class OutlineLine(NamedTuple):
    raw: str
    stripped: str
    normalized: str
    after_blank: bool


SubtopicRule = Callable[[OutlineLine, "ParserPolicy"], bool]


def normalize_line(stripped: str) -> str:
    """Strip bullet / numbering / "Topic:" markers and trailing punctuation."""
    s = _BULLET_PREFIX_RE.sub("", stripped, count=1)
    s = _NUMBER_PREFIX_RE.sub("", s, count=1)
    s = _LABEL_PREFIX_RE.sub("", s, count=1).strip()
    return _TRAILING_PUNCT_RE.sub("", s).strip()


def _word_count(text: str) -> int:
    return len(text.split())


def _is_indented(line: OutlineLine, policy: "ParserPolicy") -> bool:
    return bool(_INDENT_RE.match(line.raw))


def _has_bullet_prefix(line: OutlineLine, policy: "ParserPolicy") -> bool:
    return bool(_BULLET_RE.match(line.stripped))


def _is_short_continuation(line: OutlineLine, policy: "ParserPolicy") -> bool:
    return (
        not line.after_blank
        and policy.is_short(line.normalized)
        and not policy.looks_like_header(line)
    )


SUBTOPIC_RULES: dict[str, SubtopicRule] = {
    "indented": _is_indented,
    "bullet_prefix": _has_bullet_prefix,
    "short_continuation": _is_short_continuation,
}


@dataclass(frozen=True)
class ParserPolicy:
    """Limits and heuristics for one parsing run."""

    max_topics: int = 12
    max_subtopics: int = 6
    max_topic_length: int = 120
    short_max_chars: int = 25
    short_max_words: int = 4
    header_min_words: int = 3
    fragment_max_chars: int = 20
    merge_fragments: bool = True
    section_keywords: frozenset = SECTION_KEYWORDS
    subtopic_rules: tuple[str, ...] = ("indented", "bullet_prefix", "short_continuation")

    def is_short(self, text: str) -> bool:
        return len(text) <= self.short_max_chars and _word_count(text) <= self.short_max_words

    def is_section_keyword(self, text: str) -> bool:
        return text.strip().lower() in self.section_keywords

    def looks_like_header(self, line: OutlineLine) -> bool:
        if self.is_section_keyword(line.normalized):
            return True
        if _word_count(line.normalized) >= self.header_min_words:
            return True
        return line.stripped.endswith(":")

    def attaches_as_subtopic(self, line: OutlineLine) -> bool:
        return any(SUBTOPIC_RULES[name](line, self) for name in self.subtopic_rules)

    def is_fragment(self, title: str, raw: str) -> bool:
        if self.is_section_keyword(title) or _DELIMITER_RE.search(raw.strip()):
            return False
        return _word_count(title) == 1 or len(title) <= self.fragment_max_chars


def default_policy() -> ParserPolicy:
    """Policy from settings (read at call time so env/test overrides apply)."""
    from feedbacker.config import settings
    return ParserPolicy(
        max_topics=settings.outline_max_topics,
        max_subtopics=settings.outline_max_subtopics,
        max_topic_length=settings.outline_max_topic_length,
        merge_fragments=settings.outline_merge_fragments,
    )


class _Draft:
    __slots__ = ("title", "subtopics", "fragment")

    def __init__(self, title: str, fragment: bool):
        self.title = title
        self.subtopics: list[str] = []
        self.fragment = fragment

    def add_subtopic(self, text: str, limit: int) -> None:
        if len(self.subtopics) >= limit:
            return
        low = text.lower()
        if any(s.lower() == low for s in self.subtopics):
            return
        self.subtopics.append(text)


def _segment(outline: str, policy: ParserPolicy) -> list[_Draft]:
    drafts: list[_Draft] = []
    current: _Draft | None = None
    last_blank = True
    for raw in outline.splitlines():
        stripped = raw.strip()
        if not stripped:
            last_blank = True
            continue
        normalized = normalize_line(stripped)
        if not normalized or len(normalized) > policy.max_topic_length:
            last_blank = False
            continue
        line = OutlineLine(raw, stripped, normalized, last_blank)
        if current is not None and policy.attaches_as_subtopic(line):
            current.add_subtopic(normalized, policy.max_subtopics)
        else:
            current = _Draft(normalized, policy.is_fragment(normalized, stripped))
            drafts.append(current)
        last_blank = False
    return drafts


def _merge_fragments(drafts: list[_Draft], policy: ParserPolicy) -> list[_Draft]:
    merged: list[_Draft] = []
    for d in drafts:
        prev = merged[-1] if merged else None
        if (
            prev is not None
            and prev.fragment
            and d.fragment
            and not prev.subtopics
            and not d.subtopics
        ):
            combined = f"{prev.title} {d.title}"
            if len(combined) <= policy.fragment_max_chars:
                prev.title = combined
                continue
        merged.append(d)
    return merged


def _dedupe_key(title: str) -> str:
    return " ".join(_DEDUPE_KEY_RE.sub(" ", title.lower()).split())


def _sentence_fallback(outline: str, policy: ParserPolicy) -> list[TopicBlock]:
    limit = min(policy.max_topics, FALLBACK_MAX_SENTENCES)
    blocks: list[TopicBlock] = []
    seen: set[str] = set()
    for sentence in _SENTENCE_SPLIT_RE.split(" ".join(outline.split())):
        title = normalize_line(sentence.strip())
        if len(title) > policy.max_topic_length:
            title = title[: policy.max_topic_length].rsplit(" ", 1)[0].strip()
        key = _dedupe_key(title)
        if not key or key in seen:
            continue
        seen.add(key)
        blocks.append(TopicBlock(title, []))
        if len(blocks) >= limit:
            break
    return blocks


def parse_outline(outline: str | None, policy: ParserPolicy | None = None) -> list[TopicBlock]:
    """Segment an outline into at most policy.max_topics blocks, in first-occurrence order."""
    if not outline or not isinstance(outline, str) or not outline.strip():
        return []
    policy = policy or default_policy()
    drafts = _segment(outline, policy)
    if policy.merge_fragments:
        drafts = _merge_fragments(drafts, policy)

    blocks: list[TopicBlock] = []
    seen: set[str] = set()
    for d in drafts:
        if len(blocks) >= policy.max_topics:
            break
        key = _dedupe_key(d.title)
        if not key or key in seen:
            continue
        seen.add(key)
        blocks.append(TopicBlock(d.title, list(d.subtopics)))

    if not blocks:
        blocks = _sentence_fallback(outline, policy)
        logger.debug("Outline produced no line blocks; sentence fallback gave %s", len(blocks))
    return blocks


def parse_outline_to_topic_blocks(outline: str | None, policy: ParserPolicy | None = None) -> list[str]:
    """parse_outline, encoded for storage."""
    return [encode_topic_block(b.title, b.subtopics) for b in parse_outline(outline, policy)]
