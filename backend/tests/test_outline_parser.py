"""Unit tests for outline parsing: segmentation rules, limits, fragment merging, fallback."""
from dataclasses import replace

from feedbacker.services.outline_parser import (
    ParserPolicy,
    normalize_line,
    parse_outline,
    parse_outline_to_topic_blocks,
)
from feedbacker.services.topic_blocks import TopicBlock

POLICY = ParserPolicy()


def test_empty_outline_yields_nothing():
    assert parse_outline("", POLICY) == []
    assert parse_outline("   \n\n\t\n", POLICY) == []
    assert parse_outline(None, POLICY) == []


def test_bullets_blank_lines_and_titles():
    outline = "Market context\n— why now\n— why later\n\nAnalysis\n\nCase study"
    assert parse_outline(outline, POLICY) == [
        TopicBlock("Market context", ["why now", "why later"]),
        TopicBlock("Analysis", []),
        TopicBlock("Case study", []),
    ]


def test_fragment_titles_merge():
    assert parse_outline("\nNew\n\nDemo\n", POLICY) == [TopicBlock("New Demo", [])]


def test_fragment_merge_can_be_switched_off():
    policy = replace(POLICY, merge_fragments=False)
    assert parse_outline("\nNew\n\nDemo\n", policy) == [TopicBlock("New", []), TopicBlock("Demo", [])]


def test_fragments_stop_merging_once_title_is_no_longer_short():
    outline = "Pricing\n\nSecurity\n\nRoadmap\n\nHiring"
    blocks = parse_outline(outline, POLICY)
    assert [b.title for b in blocks] == ["Pricing Security", "Roadmap Hiring"]


def test_section_keywords_are_not_fragments():
    outline = "Introduction\n\nConclusion"
    assert [b.title for b in parse_outline(outline, POLICY)] == ["Introduction", "Conclusion"]


def test_parse_is_deterministic():
    outline = "Intro to caching\n  local caches\n  distributed caches\n\nEviction:\n- LRU\n- LFU\n\nWrap up"
    assert parse_outline(outline, POLICY) == parse_outline(outline, POLICY)
    assert parse_outline_to_topic_blocks(outline, POLICY) == parse_outline_to_topic_blocks(outline, POLICY)


def test_prefixes_and_trailing_punctuation_are_stripped():
    assert normalize_line("1. Pricing strategy today.") == "Pricing strategy today"
    assert normalize_line("Topic: Pricing;") == "Pricing"
    assert normalize_line("• Why now") == "Why now"
    assert normalize_line("—") == ""


def test_numbered_three_word_lines_are_separate_topics():
    outline = "1. Pricing strategy today\n2. Security model overview"
    assert [b.title for b in parse_outline(outline, POLICY)] == [
        "Pricing strategy today",
        "Security model overview",
    ]


def test_indented_line_is_subtopic_even_when_long():
    outline = "Roadmap planning\n  first quarter goals and the hiring plan for it"
    assert parse_outline(outline, POLICY) == [
        TopicBlock("Roadmap planning", ["first quarter goals and the hiring plan for it"]),
    ]


def test_short_continuation_lines_attach():
    assert parse_outline("Market sizing\nTAM\nSAM", POLICY) == [TopicBlock("Market sizing", ["TAM", "SAM"])]


def test_header_like_continuation_starts_new_block():
    assert [b.title for b in parse_outline("Getting started\nIntroduction", POLICY)] == [
        "Getting started",
        "Introduction",
    ]
    assert [b.title for b in parse_outline("Architecture deep dive\nData:", POLICY)] == [
        "Architecture deep dive",
        "Data",
    ]


def test_short_line_after_blank_starts_new_block():
    assert [b.title for b in parse_outline("Observability stack\n\nTracing basics", POLICY)] == [
        "Observability stack",
        "Tracing basics",
    ]


def test_overlong_lines_are_discarded():
    outline = "x" * 121 + "\nReal topic here"
    assert parse_outline(outline, POLICY) == [TopicBlock("Real topic here", [])]


def test_leading_bullet_without_title_starts_block():
    assert parse_outline("- lonely bullet point", POLICY) == [TopicBlock("lonely bullet point", [])]


def test_topic_cap():
    outline = "\n\n".join(f"Section {i} details here" for i in range(20))
    assert len(parse_outline(outline, POLICY)) == 12
    assert len(parse_outline(outline, replace(POLICY, max_topics=3))) == 3


def test_subtopic_cap_and_dedupe():
    outline = "Testing strategy\n" + "\n".join(f"- case {i}" for i in range(8))
    blocks = parse_outline(outline, POLICY)
    assert blocks[0].subtopics == [f"case {i}" for i in range(6)]
    assert parse_outline("Testing strategy\n- Mocks\n- mocks", POLICY)[0].subtopics == ["Mocks"]


def test_titles_deduped_ignoring_case_and_punctuation():
    outline = "Pricing model review\n\npricing model review!\n\nSecurity model review"
    assert [b.title for b in parse_outline(outline, POLICY)] == [
        "Pricing model review",
        "Security model review",
    ]


def test_sentence_fallback_for_one_long_paragraph():
    outline = (
        "First we cover the market and why it matters right now for everyone in the room today. "
        "Then we analyse three competitors in depth. "
        "Finally we close with pricing."
    )
    blocks = parse_outline(outline, POLICY)
    assert [b.title for b in blocks] == [
        "First we cover the market and why it matters right now for everyone in the room today",
        "Then we analyse three competitors in depth",
        "Finally we close with pricing",
    ]


def test_encoded_output():
    outline = "Market context\n- why now\n\nAnalysis"
    assert parse_outline_to_topic_blocks(outline, POLICY) == ["Market context\n- why now", "Analysis"]
