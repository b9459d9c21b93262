"""
Audience topic suggestions stored inside a response's free-form text.

Stored shape:
    [SUGGESTED_TOPICS]
    topic one
    topic two
    [/SUGGESTED_TOPICS]

    any free-form comment
Legacy free text is mined for bullet lines and "Topic:"/"Idea -" style labels.
"""
import re
from dataclasses import dataclass

SUGGESTED_START = "[SUGGESTED_TOPICS]"
SUGGESTED_END = "[/SUGGESTED_TOPICS]"
MAX_BARE_SUGGESTION_CHARS = 120

_BULLET_RE = re.compile(r"^[-•]\s+")
_LABELED_RE = re.compile(r"^(topic|suggestion|cover|idea)\s*[:-]\s*", re.IGNORECASE)
_EDGE_PUNCT_RE = re.compile(r"^[\s•.,;:!?()\"'-]+|[\s•.,;:!?()\"'-]+$")
_BLOCK_RE = re.compile(r"\[SUGGESTED_TOPICS\](.*?)\[/SUGGESTED_TOPICS\]", re.IGNORECASE | re.DOTALL)


@dataclass
class SuggestionGroup:
    label: str
    count: int
    normalized: str


def normalize_suggestion(text: str) -> str:
    return " ".join(_EDGE_PUNCT_RE.sub("", (text or "").lower()).split())


def _lines(text: str | None) -> list[str]:
    return [ln.strip() for ln in (text or "").strip().splitlines() if ln.strip()]


def extract_suggestions(text: str | None) -> list[str]:
    """Bullet or labeled lines from legacy free text; a short bare comment counts as one suggestion."""
    raw = (text or "").strip()
    if not raw:
        return []
    out = []
    for line in _lines(raw):
        for pattern in (_BULLET_RE, _LABELED_RE):
            if pattern.match(line):
                cleaned = pattern.sub("", line, count=1).strip()
                if cleaned:
                    out.append(cleaned)
                break
    if out:
        return out
    return [raw] if len(raw) <= MAX_BARE_SUGGESTION_CHARS else []


def extract_suggestions_from_block(text: str | None) -> list[str]:
    """Lines inside a [SUGGESTED_TOPICS] block; bullet lines there are commentary and skipped."""
    return [ln for ln in _lines(text) if not _BULLET_RE.match(ln)]


def serialize_suggestions_and_freeform(suggested: str | None, freeform: str | None) -> str | None:
    suggested = (suggested or "").strip()
    freeform = (freeform or "").strip()
    if not suggested:
        return freeform or None
    block = f"{SUGGESTED_START}\n{suggested}\n{SUGGESTED_END}"
    return f"{block}\n\n{freeform}" if freeform else block


def parse_suggestions_and_freeform(stored: str | None) -> tuple[str | None, str | None]:
    """-> (suggested block body or None, remaining free text or None)."""
    raw = (stored or "").strip()
    if not raw:
        return None, None
    m = _BLOCK_RE.search(raw)
    if not m:
        return None, raw
    suggested = m.group(1).strip() or None
    rest = _BLOCK_RE.sub("", raw, count=1).strip()
    return suggested, rest or None


def group_suggestions(items: list[str]) -> list[SuggestionGroup]:
    """Group by normalized text; label is the first spelling seen. Sorted by count desc, then label."""
    groups: dict[str, SuggestionGroup] = {}
    for item in items:
        key = normalize_suggestion(item)
        if not key:
            continue
        if key in groups:
            groups[key].count += 1
        else:
            groups[key] = SuggestionGroup(label=item.strip(), count=1, normalized=key)
    return sorted(groups.values(), key=lambda g: (-g.count, g.label.lower()))


def build_suggestion_groups(free_form_texts: list[str | None]) -> tuple[list[SuggestionGroup], list[str]]:
    raw: list[str] = []
    for stored in free_form_texts:
        suggested, freeform = parse_suggestions_and_freeform(stored)
        if suggested:
            raw.extend(extract_suggestions_from_block(suggested))
        else:
            raw.extend(extract_suggestions(freeform))
    return group_suggestions(raw), raw
