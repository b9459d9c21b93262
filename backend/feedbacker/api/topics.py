"""
Topics API: outline parsing, topic listing, first-time seeding, edit saves (reconciliation), aggregates.
Every write to themes goes through the reconciler; rows are archived, never deleted.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from feedbacker import metrics
from feedbacker.api.deps import get_talk_session, parse_uuid
from feedbacker.database import get_db
from feedbacker.models.talk_session import TalkSession
from feedbacker.models.theme import Theme
from feedbacker.schemas.topic import (
    AggregateListResponse,
    EditedTopicPayload,
    OutlineParseRequest,
    OutlineParseResponse,
    OutlineTopicResult,
    SingleTopicAggregateResponse,
    TopicAggregateResponse,
    TopicBlockResponse,
    TopicListResponse,
    TopicResponse,
    TopicSaveRequest,
    TopicSaveResponse,
    TopicSeedRequest,
)
from feedbacker.services.aggregates import aggregate_for_topic, compute_aggregates, outline_payload
from feedbacker.services.errors import PersistenceFailure, ReconciliationInputError
from feedbacker.services.outline_parser import parse_outline
from feedbacker.services.reconciler import EditedTopic, reconcile_with_retry, seed_topics
from feedbacker.services.topic_blocks import decode_topic_block, encode_topic_block
from feedbacker.services.topic_store import SqlAlchemyTopicStore, StoredTopic

logger = logging.getLogger(__name__)

router = APIRouter(tags=["topics"])


def _topic_to_response(t: Theme | StoredTopic) -> TopicResponse:
    block = decode_topic_block(t.text)
    return TopicResponse(
        id=str(t.id),
        session_id=str(t.session_id),
        text=t.text,
        title=block.title,
        subtopics=block.subtopics,
        sort_order=t.sort_order,
        status=t.status,
    )


def _active_topics(store: SqlAlchemyTopicStore, talk: TalkSession) -> list[TopicResponse]:
    return [_topic_to_response(t) for t in store.read_active_topics(talk.id)]


def _payload_text(p: EditedTopicPayload) -> str:
    if p.title is not None:
        return encode_topic_block(p.title, p.subtopics)
    block = decode_topic_block(p.text or "")
    return encode_topic_block(block.title, block.subtopics)


@router.post("/outline/parse", response_model=OutlineParseResponse)
def parse_outline_preview(data: OutlineParseRequest):
    """Parse outline text into topic blocks without storing anything (editor preview)."""
    blocks = parse_outline(data.outline)
    return OutlineParseResponse(
        items=[
            TopicBlockResponse(title=b.title, subtopics=b.subtopics, text=encode_topic_block(b.title, b.subtopics))
            for b in blocks
        ]
    )


@router.get("/sessions/{session_id}/topics", response_model=TopicListResponse)
def list_topics(talk: TalkSession = Depends(get_talk_session), db: Session = Depends(get_db)):
    """Active topics in sort_order."""
    return TopicListResponse(items=_active_topics(SqlAlchemyTopicStore(db), talk))


@router.post("/sessions/{session_id}/topics/seed", response_model=TopicListResponse, status_code=status.HTTP_201_CREATED)
def seed_session_topics(
    data: TopicSeedRequest,
    talk: TalkSession = Depends(get_talk_session),
    db: Session = Depends(get_db),
):
    """First-time topic creation from an outline. 409 if the session already has topics."""
    store = SqlAlchemyTopicStore(db)
    try:
        seed_topics(store, talk.id, parse_outline(data.outline))
        talk.outline = data.outline
        talk.topics_source = "generated"
        db.commit()
    except ReconciliationInputError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PersistenceFailure as e:
        db.rollback()
        logger.error("Seeding topics for session %s failed: %s", talk.id, e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return TopicListResponse(items=_active_topics(store, talk))


@router.put("/sessions/{session_id}/topics", response_model=TopicSaveResponse)
def save_topics(
    data: TopicSaveRequest,
    talk: TalkSession = Depends(get_talk_session),
    db: Session = Depends(get_db),
):
    """
    Save an edited topic set. Entries with an existing id are kept (renamed/reordered), entries without id
    are inserted, missing ids are archived. Retried as a whole on storage failure; 503 when retries run out
    so the editor can keep its local copy and offer a retry.
    """
    store = SqlAlchemyTopicStore(db)
    active_ids = {t.id for t in store.read_active_topics(talk.id)}
    edited: list[EditedTopic] = []
    for i, p in enumerate(data.topics, start=1):
        text = _payload_text(p)
        if not text:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Topic {i} has no title")
        edited.append(EditedTopic(text=text, id=parse_uuid(p.id, "topic id") if p.id else None))

    # An id the client sends must be one of this session's active topics or brand new.
    foreign = store.topic_ids_in_use(e.id for e in edited if e.id is not None and e.id not in active_ids)
    if foreign:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Topic id(s) not active in this session: {', '.join(sorted(str(i) for i in foreign))}",
        )

    try:
        result = reconcile_with_retry(store, talk.id, edited)
    except ReconciliationInputError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except PersistenceFailure as e:
        logger.error(
            "Saving topics for session %s failed after retries: %s (reconcile failures so far: %s)",
            talk.id,
            e,
            metrics.reconcile_failures_total,
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": "Topics could not be saved; retry the save.", "phase": e.phase},
        )

    if talk.topics_source != "manual":
        talk.topics_source = "manual"
        db.commit()
    return TopicSaveResponse(
        inserted=[str(i) for i in result.inserted],
        updated=[str(i) for i in result.updated],
        archived=[str(i) for i in result.archived],
        items=_active_topics(store, talk),
        attempts=result.attempts,
    )


@router.get("/sessions/{session_id}/aggregates", response_model=AggregateListResponse)
def list_aggregates(talk: TalkSession = Depends(get_talk_session), db: Session = Depends(get_db)):
    """Per-topic interest for active topics, highest net interest first."""
    store = SqlAlchemyTopicStore(db)
    aggregates = compute_aggregates(store.read_active_topics(talk.id), store.read_selections(talk.id))
    return AggregateListResponse(
        items=[
            TopicAggregateResponse(
                topic_id=str(a.topic_id),
                title=a.title,
                text=a.text,
                sort_order=a.sort_order,
                more=a.more,
                less=a.less,
                total=a.total,
                net=a.net,
                label=a.label,
            )
            for a in aggregates
        ]
    )


@router.get("/sessions/{session_id}/aggregates/outline", response_model=list[OutlineTopicResult])
def outline_results(talk: TalkSession = Depends(get_talk_session), db: Session = Depends(get_db)):
    """Payload for the outline generator: decoded titles with more/less/net, in priority order."""
    store = SqlAlchemyTopicStore(db)
    aggregates = compute_aggregates(store.read_active_topics(talk.id), store.read_selections(talk.id))
    return [OutlineTopicResult(**row) for row in outline_payload(aggregates)]


@router.get("/sessions/{session_id}/topics/{topic_id}/aggregate", response_model=SingleTopicAggregateResponse)
def topic_aggregate(
    topic_id: str,
    talk: TalkSession = Depends(get_talk_session),
    db: Session = Depends(get_db),
):
    """Direct aggregate for one topic, including archived ones."""
    tid = parse_uuid(topic_id, "topic id")
    theme = db.query(Theme).filter(Theme.id == tid, Theme.session_id == talk.id).first()
    if not theme:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Topic not found")
    more, less = aggregate_for_topic(tid, SqlAlchemyTopicStore(db).read_selections(talk.id))
    return SingleTopicAggregateResponse(
        topic_id=str(tid), status=theme.status, more=more, less=less, total=more + less, net=more - less
    )
