"""
Session and participant response schemas.
"""
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, field_validator


class SessionCreateRequest(BaseModel):
    title: str = ""
    outline: str = ""  # when set, topics are seeded from it


class SessionResponse(BaseModel):
    id: str
    title: str
    outline: str
    topics_source: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class SelectionPayload(BaseModel):
    theme_id: str
    selection: Literal["more", "less"]


class ParticipantResponseRequest(BaseModel):
    participant_email: str
    name: str | None = None
    free_form_text: str | None = None
    # One suggested topic per line; stored with free_form_text as a [SUGGESTED_TOPICS] block
    suggested_topics: str | None = None
    selections: list[SelectionPayload] = []

    @field_validator("participant_email")
    @classmethod
    def email_present(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if not v or "@" not in v:
            raise ValueError("participant_email must be an email address")
        return v


class ParticipantResponseResponse(BaseModel):
    id: str
    session_id: str
    participant_email: str
    selections: list[SelectionPayload]


class SuggestionGroupResponse(BaseModel):
    label: str
    count: int
    normalized: str


class SuggestionListResponse(BaseModel):
    items: list[SuggestionGroupResponse]
    raw: list[str]
