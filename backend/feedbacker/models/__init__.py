"""
SQLAlchemy models. Import here so Alembic and app can use them.
"""
from feedbacker.models.talk_session import TalkSession
from feedbacker.models.theme import Theme, ThemeStatus
from feedbacker.models.response import Response, ThemeSelection

__all__ = ["TalkSession", "Theme", "ThemeStatus", "Response", "ThemeSelection"]
