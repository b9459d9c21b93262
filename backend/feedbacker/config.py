"""
Application configuration from environment variables.
Loads .env from the backend directory so settings are found regardless of cwd.
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env next to backend/ (parent of feedbacker/): load explicitly so values are set even when run from repo root
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    from dotenv import load_dotenv
    load_dotenv(_ENV_FILE, override=False)
else:
    # Fallback: try backend/.env relative to cwd (e.g. when running from repo root)
    import os
    _cwd_env = Path(os.getcwd()) / "backend" / ".env"
    if _cwd_env.exists():
        from dotenv import load_dotenv
        load_dotenv(_cwd_env, override=False)


class Settings(BaseSettings):
    """Load and validate config from env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database: sqlite for local dev and tests, postgresql for production
    database_url: str = "sqlite:///./feedbacker_dev.db"

    # Outline parsing. Env: OUTLINE_MAX_TOPICS, OUTLINE_MAX_SUBTOPICS, OUTLINE_MAX_TOPIC_LENGTH.
    outline_max_topics: int = 12
    outline_max_subtopics: int = 6
    outline_max_topic_length: int = 120
    # Collapse consecutive one-word / bare short titles ("New", "Demo") into one topic.
    outline_merge_fragments: bool = True

    # Reconciliation: survivors are parked at -(final_order + REORDER_OFFSET) before their final write.
    reorder_offset: int = 1000
    # Whole-diff attempts on a storage failure (each attempt re-reads the persisted state).
    reconcile_max_attempts: int = 3

    # CORS: comma-separated origins
    cors_origins: str = "http://localhost:5173"

    debug: bool = False

    @field_validator(
        "outline_max_topics",
        "outline_max_subtopics",
        "outline_max_topic_length",
        "reorder_offset",
        "reconcile_max_attempts",
        mode="after",
    )
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        return max(1, v)


settings = Settings()
