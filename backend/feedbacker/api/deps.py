"""
Shared dependencies: resolve the session from the path, 404 if missing.
Authentication is handled in front of this API; routes here only scope by session id.
"""
import logging
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from feedbacker.database import get_db
from feedbacker.models.talk_session import TalkSession

logger = logging.getLogger(__name__)


def parse_uuid(value: str, what: str = "id") -> UUID:
    """Parse a path/body id or raise 422."""
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid {what}: {value}",
        )


def get_talk_session(session_id: str, db: Session = Depends(get_db)) -> TalkSession:
    """Load the session named in the path or 404."""
    sid = parse_uuid(session_id, "session id")
    talk = db.query(TalkSession).filter(TalkSession.id == sid).first()
    if not talk:
        logger.debug("Session %s not found", sid)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return talk
