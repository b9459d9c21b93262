"""
In-process counters for observability. Process-local; for multi-worker use external metrics (e.g. Prometheus).
"""
import threading

# Reconciliation attempts that ended in PersistenceFailure (each retry attempt counts).
reconcile_failures_total: int = 0
_reconcile_failures_lock = threading.Lock()


def increment_reconcile_failures_total() -> int:
    """Increment reconcile_failures_total; return new value. Thread-safe."""
    global reconcile_failures_total
    with _reconcile_failures_lock:
        reconcile_failures_total += 1
        return reconcile_failures_total
