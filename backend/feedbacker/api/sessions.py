"""
Sessions API: create a session (optionally seeding topics from its outline), collect participant
responses, list grouped audience suggestions.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from feedbacker.api.deps import get_talk_session, parse_uuid
from feedbacker.database import get_db
from feedbacker.models.response import Response, ThemeSelection
from feedbacker.models.talk_session import TalkSession
from feedbacker.schemas.session import (
    ParticipantResponseRequest,
    ParticipantResponseResponse,
    SelectionPayload,
    SessionCreateRequest,
    SessionResponse,
    SuggestionGroupResponse,
    SuggestionListResponse,
)
from feedbacker.services.errors import PersistenceFailure
from feedbacker.services.outline_parser import parse_outline
from feedbacker.services.reconciler import seed_topics
from feedbacker.services.suggestions import build_suggestion_groups, serialize_suggestions_and_freeform
from feedbacker.services.topic_store import SqlAlchemyTopicStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _session_to_response(t: TalkSession) -> SessionResponse:
    return SessionResponse(
        id=str(t.id),
        title=t.title,
        outline=t.outline,
        topics_source=t.topics_source,
        created_at=t.created_at,
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(data: SessionCreateRequest, db: Session = Depends(get_db)):
    """Create a session; a non-empty outline seeds its first topic set."""
    talk = TalkSession(title=data.title.strip(), outline=data.outline, topics_source="generated")
    db.add(talk)
    try:
        db.flush()
        if data.outline.strip():
            seed_topics(SqlAlchemyTopicStore(db), talk.id, parse_outline(data.outline))
        db.commit()
    except PersistenceFailure as e:
        db.rollback()
        logger.error("Create session: seeding topics failed: %s", e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    db.refresh(talk)
    return _session_to_response(talk)


@router.get("/{session_id}", response_model=SessionResponse)
def get_session(talk: TalkSession = Depends(get_talk_session)):
    return _session_to_response(talk)


@router.post("/{session_id}/responses", response_model=ParticipantResponseResponse, status_code=status.HTTP_201_CREATED)
def submit_response(
    data: ParticipantResponseRequest,
    talk: TalkSession = Depends(get_talk_session),
    db: Session = Depends(get_db),
):
    """
    Record a participant's more/less selections on active topics.
    A repeat submission from the same email replaces the earlier response (its selections go with it).
    """
    active_ids = {t.id for t in SqlAlchemyTopicStore(db).read_active_topics(talk.id)}
    chosen: dict = {}
    for s in data.selections:
        tid = parse_uuid(s.theme_id, "theme id")
        if tid not in active_ids:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Theme {tid} is not an active topic of this session",
            )
        chosen[tid] = s.selection

    previous = (
        db.query(Response)
        .filter(Response.session_id == talk.id, Response.participant_email == data.participant_email)
        .first()
    )
    if previous:
        db.delete(previous)
        db.flush()

    resp = Response(
        session_id=talk.id,
        participant_email=data.participant_email,
        name=(data.name or "").strip() or None,
        free_form_text=serialize_suggestions_and_freeform(data.suggested_topics, data.free_form_text),
    )
    resp.selections = [ThemeSelection(theme_id=tid, selection=sel) for tid, sel in chosen.items()]
    db.add(resp)
    db.commit()
    db.refresh(resp)
    logger.info("Session %s: response %s with %s selection(s)", talk.id, resp.id, len(chosen))
    return ParticipantResponseResponse(
        id=str(resp.id),
        session_id=str(talk.id),
        participant_email=resp.participant_email,
        selections=[SelectionPayload(theme_id=str(s.theme_id), selection=s.selection) for s in resp.selections],
    )


@router.get("/{session_id}/suggestions", response_model=SuggestionListResponse)
def list_suggestions(talk: TalkSession = Depends(get_talk_session), db: Session = Depends(get_db)):
    """Audience topic suggestions grouped by normalized text, most requested first."""
    texts = [r[0] for r in db.query(Response.free_form_text).filter(Response.session_id == talk.id).all()]
    groups, raw = build_suggestion_groups(texts)
    return SuggestionListResponse(
        items=[SuggestionGroupResponse(label=g.label, count=g.count, normalized=g.normalized) for g in groups],
        raw=raw,
    )
