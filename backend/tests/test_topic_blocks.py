"""Unit tests for topic block encoding/decoding."""
import pytest

from feedbacker.services.topic_blocks import (
    TopicBlock,
    decode_topic_block,
    encode_topic_block,
    normalize_topic_blocks,
    topic_title,
)


def test_encode_title_and_subtopics():
    assert encode_topic_block("Market context", ["why now", "why later"]) == "Market context\n- why now\n- why later"


def test_encode_title_only_and_trims():
    assert encode_topic_block("  Analysis  ", []) == "Analysis"
    assert encode_topic_block("Analysis", ["  ", ""]) == "Analysis"


def test_encode_empty_title():
    assert encode_topic_block("", ["orphan"]) == ""
    assert encode_topic_block("   ") == ""


@pytest.mark.parametrize(
    "title,subtopics",
    [
        ("Case study", []),
        ("Market context", ["why now", "why later"]),
        ("Q&A", ["- dashed subtopic", "1. numbered subtopic"]),
        ("Pricing: tiers & bundles", ["Free tier", "Enterprise (annual)"]),
        ("1. Intro", ["x"]),
        ("3) Deploy", []),
        ("-5 degrees", ["- below zero"]),
        ("• Roadmap", ["2) next quarter"]),
    ],
)
def test_round_trip(title, subtopics):
    assert decode_topic_block(encode_topic_block(title, subtopics)) == TopicBlock(title, subtopics)
    assert decode_topic_block(encode_topic_block(title, subtopics)) == (title, subtopics)


def test_decode_legacy_single_line():
    assert decode_topic_block("Theme Alpha") == TopicBlock("Theme Alpha", [])


def test_decode_never_raises_on_bad_input():
    assert decode_topic_block(None) == TopicBlock("", [])
    assert decode_topic_block("") == TopicBlock("", [])
    assert decode_topic_block("\n \n\t") == TopicBlock("", [])
    assert decode_topic_block(42) == TopicBlock("", [])  # type: ignore[arg-type]


def test_decode_strips_subtopic_bullets_and_blank_lines():
    text = "\n  Title  \n\n• one\n* two\n— three\n2) four\n- \n"
    assert decode_topic_block(text) == TopicBlock("Title", ["one", "two", "three", "four"])


def test_decode_keeps_title_markers_as_written():
    assert decode_topic_block("  1. Intro  \n- agenda") == TopicBlock("1. Intro", ["agenda"])
    assert topic_title("-5 degrees") == "-5 degrees"


def test_topic_title():
    assert topic_title("Security\n- threat model") == "Security"
    assert topic_title(None) == ""


def test_normalize_topic_blocks_dedupes_and_reencodes():
    blocks = ["Alpha\n• x", "alpha", "", "Beta"]
    assert normalize_topic_blocks(blocks) == ["Alpha\n- x", "Beta"]
