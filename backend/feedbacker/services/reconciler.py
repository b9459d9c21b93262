"""
Topic reconciliation: turn an edited topic set into the storage writes that keep feedback attached.

Theme ids are the only link to participant selections, so an edit never deletes or re-creates a
kept topic. Given the persisted active topics and the edited list (existing id = keep, possibly
renamed/reordered; new id or no id = insert; missing id = remove), the plan is applied as:

  1. archive  - removed topics go to status=archived (never hard-deleted)
  2. park     - kept topics whose position changes move to a negative temporary sort_order
  3. finalize - kept topics get their final text and sort_order
  4. insert   - new topics are created at their final sort_order

Archiving first frees the positions of removed topics; parking frees the positions of moved ones,
so no write ever makes two active topics share a sort_order.

The plan is recomputed from the persisted state on each attempt, so a failed save is retried as a
whole (reconcile_with_retry) and a rerun after a partial write converges to the same final state.
"""
import logging
import uuid
from dataclasses import dataclass, field

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from feedbacker.metrics import increment_reconcile_failures_total
from feedbacker.services.errors import PersistenceFailure, ReconciliationInputError
from feedbacker.services.topic_blocks import TopicBlock, encode_topic_block
from feedbacker.services.topic_store import StoredTopic, TopicStore, TopicWrite

logger = logging.getLogger(__name__)

PHASES = ("archive", "park", "finalize", "insert")


@dataclass(frozen=True)
class EditedTopic:
    """One entry of the edited list. id=None means a brand-new topic."""
    text: str
    id: uuid.UUID | None = None


@dataclass
class ReconcilePlan:
    session_id: uuid.UUID
    archives: list[TopicWrite] = field(default_factory=list)
    parks: list[TopicWrite] = field(default_factory=list)
    finals: list[TopicWrite] = field(default_factory=list)
    inserts: list[TopicWrite] = field(default_factory=list)
    final_order: list[uuid.UUID] = field(default_factory=list)

    def phases(self) -> list[tuple[str, list[TopicWrite]]]:
        return list(zip(PHASES, (self.archives, self.parks, self.finals, self.inserts)))

    def operations(self) -> list[TopicWrite]:
        return [w for _, writes in self.phases() for w in writes]

    @property
    def is_noop(self) -> bool:
        return not self.operations()

    @property
    def updated_ids(self) -> list[uuid.UUID]:
        return [w.topic_id for w in self.finals]


@dataclass
class ReconcileResult:
    session_id: uuid.UUID
    inserted: list[uuid.UUID]
    updated: list[uuid.UUID]
    archived: list[uuid.UUID]
    active_order: list[uuid.UUID]
    attempts: int = 1


def _as_uuid(value) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError) as e:
        raise ReconciliationInputError(f"invalid topic id: {value!r}") from e


def temp_sort_order(final_order: int, base: int) -> int:
    return -(final_order + base)


def plan_reconciliation(
    session_id: uuid.UUID,
    previous: list[StoredTopic],
    edited: list[EditedTopic],
    offset: int = 1000,
) -> ReconcilePlan:
    """
    Pure diff of previous active topics against the edited list. Final sort_order = 1-based position.
    Raises ReconciliationInputError for duplicate ids or empty text.
    """
    prev_by_id = {t.id: t for t in previous}
    # Park below every value currently held, including leftovers of an interrupted earlier save.
    base = max([offset] + [abs(t.sort_order) for t in previous])

    plan = ReconcilePlan(session_id=session_id)
    seen: set[uuid.UUID] = set()
    for position, entry in enumerate(edited, start=1):
        text = (entry.text or "").strip()
        if not text:
            raise ReconciliationInputError(f"topic at position {position} has empty text")
        topic_id = _as_uuid(entry.id) if entry.id is not None else uuid.uuid4()
        if topic_id in seen:
            raise ReconciliationInputError(f"topic {topic_id} appears more than once")
        seen.add(topic_id)
        plan.final_order.append(topic_id)

        current = prev_by_id.get(topic_id)
        if current is None:
            plan.inserts.append(TopicWrite("insert", topic_id, session_id, text=text, sort_order=position))
            continue
        moved = current.sort_order != position
        renamed = current.text != text
        if moved:
            plan.parks.append(
                TopicWrite("update", topic_id, session_id, sort_order=temp_sort_order(position, base))
            )
        if moved or renamed:
            plan.finals.append(
                TopicWrite(
                    "update",
                    topic_id,
                    session_id,
                    text=text if renamed else None,
                    sort_order=position if moved else None,
                )
            )

    for t in previous:
        if t.id not in seen:
            plan.archives.append(TopicWrite("archive", t.id, session_id))
    return plan


def apply_plan(store: TopicStore, plan: ReconcilePlan) -> None:
    """Issue the plan's writes in phase order. The first failing write aborts with PersistenceFailure."""
    for phase, writes in plan.phases():
        if not writes:
            continue
        logger.info("Reconcile session %s: %s %s topic(s)", plan.session_id, phase, len(writes))
        for write in writes:
            try:
                store.write_topic(write)
            except Exception as e:
                increment_reconcile_failures_total()
                logger.warning(
                    "Reconcile session %s: %s failed on topic %s: %s", plan.session_id, phase, write.topic_id, e
                )
                raise PersistenceFailure(phase, write, e) from e


def reconcile_topics(
    store: TopicStore,
    session_id: uuid.UUID,
    edited: list[EditedTopic],
    offset: int | None = None,
) -> ReconcileResult:
    """Read the persisted active set, diff it against edited, apply. One attempt."""
    if offset is None:
        from feedbacker.config import settings
        offset = settings.reorder_offset
    try:
        previous = store.read_active_topics(session_id)
    except Exception as e:
        raise PersistenceFailure("read", None, e) from e
    plan = plan_reconciliation(session_id, previous, edited, offset=offset)
    if plan.is_noop:
        logger.debug("Reconcile session %s: nothing to write", session_id)
    else:
        apply_plan(store, plan)
    return ReconcileResult(
        session_id=session_id,
        inserted=[w.topic_id for w in plan.inserts],
        updated=plan.updated_ids,
        archived=[w.topic_id for w in plan.archives],
        active_order=list(plan.final_order),
    )


def reconcile_with_retry(
    store: TopicStore,
    session_id: uuid.UUID,
    edited: list[EditedTopic],
    max_attempts: int | None = None,
    offset: int | None = None,
) -> ReconcileResult:
    """
    reconcile_topics with whole-diff retries on PersistenceFailure (tenacity).
    Stores with commit()/rollback() get one commit per successful attempt and a rollback per failed one.
    Ids are fixed before the first attempt so a retried insert reuses the same id.
    """
    if max_attempts is None:
        from feedbacker.config import settings
        max_attempts = settings.reconcile_max_attempts
    edited = [EditedTopic(e.text, _as_uuid(e.id) if e.id is not None else uuid.uuid4()) for e in edited]
    commit = getattr(store, "commit", None)
    rollback = getattr(store, "rollback", None)
    attempts = 0

    @retry(
        retry=retry_if_exception_type(PersistenceFailure),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=0.1, min=0, max=2),
        reraise=True,
    )
    def _attempt() -> ReconcileResult:
        nonlocal attempts
        attempts += 1
        try:
            result = reconcile_topics(store, session_id, edited, offset=offset)
            if commit is not None:
                commit()
            return result
        except PersistenceFailure:
            if rollback is not None:
                rollback()
            logger.warning("Reconcile session %s: attempt %s failed", session_id, attempts)
            raise
        except Exception as e:
            if rollback is not None:
                rollback()
            if isinstance(e, ReconciliationInputError):
                raise
            raise PersistenceFailure("commit", None, e) from e

    result = _attempt()
    result.attempts = attempts
    return result


def seed_topics(store: TopicStore, session_id: uuid.UUID, blocks: list[TopicBlock]) -> list[uuid.UUID]:
    """
    First-time creation of a session's topics from parser output, sort_order 1..n.
    Sessions that already have active topics must go through reconcile_topics instead.
    """
    if store.read_active_topics(session_id):
        raise ReconciliationInputError("session already has topics; save edits through reconciliation")
    ids: list[uuid.UUID] = []
    position = 0
    for block in blocks:
        text = encode_topic_block(block.title, block.subtopics)
        if not text:
            continue
        position += 1
        write = TopicWrite("insert", uuid.uuid4(), session_id, text=text, sort_order=position)
        try:
            store.write_topic(write)
        except Exception as e:
            increment_reconcile_failures_total()
            raise PersistenceFailure("insert", write, e) from e
        ids.append(write.topic_id)
    logger.info("Seeded %s topic(s) for session %s", len(ids), session_id)
    return ids
