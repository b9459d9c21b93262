"""
FastAPI application entrypoint.
Run with: uvicorn feedbacker.main:app --reload --port 8000

Routes are mounted at root (no /api/v1 prefix).
  - Outline: POST /outline/parse
  - Sessions: POST /sessions, GET /sessions/{id}, POST /sessions/{id}/responses, GET /sessions/{id}/suggestions
  - Topics: GET|PUT /sessions/{id}/topics, POST /sessions/{id}/topics/seed
  - Aggregates: GET /sessions/{id}/aggregates, GET /sessions/{id}/aggregates/outline,
                GET /sessions/{id}/topics/{topic_id}/aggregate

Topic saves are retried as a whole on storage failure (tenacity, see feedbacker.services.reconciler).
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feedbacker import metrics
from feedbacker.config import settings
from feedbacker.api.sessions import router as sessions_router
from feedbacker.api.topics import router as topics_router

app = FastAPI(
    title="Feedbacker Topic API",
    description="Presenter outlines to topics, with audience more/less interest that survives topic edits.",
    version="0.1.0",
)

_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins if _origins else ["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sessions_router)
app.include_router(topics_router)


@app.on_event("startup")
def startup():
    """Configure logging and create SQLite tables for local runs."""
    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    _log = logging.getLogger("feedbacker.main")
    from feedbacker.database import init_sqlite_db
    init_sqlite_db()
    _log.info(
        "Outline policy: max_topics=%s max_subtopics=%s merge_fragments=%s; reconcile attempts=%s",
        settings.outline_max_topics,
        settings.outline_max_subtopics,
        settings.outline_merge_fragments,
        settings.reconcile_max_attempts,
    )


@app.get("/health")
def health():
    """Health check (JSON) with the process-local reconcile failure count."""
    return {
        "status": "ok",
        "message": "Feedbacker Topic API",
        "reconcile_failures_total": metrics.reconcile_failures_total,
    }
