"""
Topic engine errors. Codec and outline parser never raise; these come from reconciliation and stores.
"""


class TopicEngineError(Exception):
    """Base for topic engine errors."""


class ReconciliationInputError(TopicEngineError, ValueError):
    """Edited topic set is unusable (duplicate ids, empty text, foreign or archived id)."""


class StoreConstraintError(TopicEngineError):
    """A store write would break a store invariant (e.g. two active topics sharing a sort_order)."""


class PersistenceFailure(TopicEngineError):
    """
    A store call failed partway through a reconciliation. Earlier writes are not rolled back here;
    the caller retries the whole diff from the persisted state instead of resuming.
    """

    def __init__(self, phase: str, operation=None, cause: BaseException | None = None):
        self.phase = phase
        self.operation = operation
        self.cause = cause
        target = f" on topic {operation.topic_id}" if operation is not None else ""
        super().__init__(f"Topic save failed in phase '{phase}'{target}: {cause}")
