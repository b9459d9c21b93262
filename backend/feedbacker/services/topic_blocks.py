"""
Topic block encoding: a title with ordered subtopics stored as one text value.

    Title
    - Subtopic 1
    - Subtopic 2

Keeps the themes table a single text column. Decoding is total: legacy single-line rows
and malformed values degrade to a title-only block.
"""
import re
from typing import NamedTuple

SUBTOPIC_BULLET = "- "

# One leading bullet (-, *, •, em/en dash) or "1." / "1)" numbering
_PREFIX_RE = re.compile(r"^(?:[-*•—–]|\d+[.)])\s*")


class TopicBlock(NamedTuple):
    title: str
    subtopics: list[str]


def strip_prefix(line: str) -> str:
    """Remove a single bullet or numbering marker and surrounding whitespace."""
    return _PREFIX_RE.sub("", line.strip(), count=1).strip()


def encode_topic_block(title: str, subtopics: list[str] | tuple[str, ...] = ()) -> str:
    """Encode (title, subtopics) as "Title\\n- Sub1\\n- Sub2". Empty title encodes to ""."""
    t = (title or "").strip()
    if not t:
        return ""
    lines = [t]
    for s in subtopics or ():
        s = (s or "").strip()
        if s:
            lines.append(f"{SUBTOPIC_BULLET}{s}")
    return "\n".join(lines)


def decode_topic_block(text: str | None) -> TopicBlock:
    """
    Decode a stored value. First non-blank line, trimmed, is the title as written; each following
    non-blank line is a subtopic with one bullet/numbering prefix removed. Never raises.
    """
    if not text or not isinstance(text, str):
        return TopicBlock("", [])
    lines = [ln for ln in text.splitlines() if ln.strip()]
    if not lines:
        return TopicBlock("", [])
    title = lines[0].strip()
    subtopics = []
    for line in lines[1:]:
        s = strip_prefix(line)
        if s:
            subtopics.append(s)
    return TopicBlock(title, subtopics)


def topic_title(text: str | None) -> str:
    """Decoded title of a stored value (what participants and the outline generator see)."""
    return decode_topic_block(text).title


def normalize_topic_blocks(texts: list[str]) -> list[str]:
    """Decode, drop empty titles, dedupe by lowercase title (first wins), re-encode. Order preserved."""
    seen: set[str] = set()
    out: list[str] = []
    for raw in texts or []:
        block = decode_topic_block(raw)
        if not block.title:
            continue
        key = block.title.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(encode_topic_block(block.title, block.subtopics))
    return out
