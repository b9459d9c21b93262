#!/usr/bin/env python3
"""
Pre-push / production readiness checks.
Run from backend dir with project venv active: python scripts/pre_push_checks.py
"""
import sys
import uuid
from pathlib import Path

BACKEND = Path(__file__).resolve().parent.parent
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))


def check_imports():
    from feedbacker.main import app  # noqa: F401
    from feedbacker.config import settings
    assert settings.reorder_offset >= 1
    assert settings.reconcile_max_attempts >= 1
    return "imports"


def check_parser_policy():
    from feedbacker.services.outline_parser import ParserPolicy, parse_outline
    blocks = parse_outline("Market context\n— why now\n— why later\n\nAnalysis\n\nCase study", ParserPolicy())
    assert [b.title for b in blocks] == ["Market context", "Analysis", "Case study"]
    assert parse_outline("\nNew\n\nDemo\n", ParserPolicy())[0].title == "New Demo"
    return "parser_policy"


def check_reconcile_in_memory():
    from feedbacker.services.reconciler import EditedTopic, reconcile_topics, seed_topics
    from feedbacker.services.topic_blocks import TopicBlock
    from feedbacker.services.topic_store import InMemoryTopicStore
    store = InMemoryTopicStore()
    sid = uuid.uuid4()
    a, b = seed_topics(store, sid, [TopicBlock("A", []), TopicBlock("B", [])])
    reconcile_topics(store, sid, [EditedTopic("B", b), EditedTopic("A", a)])
    assert [t.id for t in store.read_active_topics(sid)] == [b, a]
    return "reconcile_in_memory"


def check_init_db():
    from feedbacker.database import init_sqlite_db
    init_sqlite_db()
    return "init_sqlite_db"


def main():
    checks = [check_imports, check_parser_policy, check_reconcile_in_memory, check_init_db]
    for fn in checks:
        try:
            name = fn()
            print(f"OK {name}")
        except Exception as e:
            print(f"FAIL {fn.__name__}: {e}")
            return 1
    print("All pre-push checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
