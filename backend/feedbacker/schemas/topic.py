"""
Topic, outline and aggregate request/response schemas.
"""
from typing import Literal
from pydantic import BaseModel, field_validator


class OutlineParseRequest(BaseModel):
    outline: str = ""


class TopicBlockResponse(BaseModel):
    title: str
    subtopics: list[str]
    text: str  # encoded form, what gets stored


class OutlineParseResponse(BaseModel):
    items: list[TopicBlockResponse]


class TopicResponse(BaseModel):
    id: str
    session_id: str
    text: str
    title: str
    subtopics: list[str]
    sort_order: int
    status: str

    class Config:
        from_attributes = True


class TopicListResponse(BaseModel):
    items: list[TopicResponse]


class EditedTopicPayload(BaseModel):
    id: str | None = None  # existing theme id to keep; omit for a new topic
    text: str | None = None  # encoded block; or give title/subtopics
    title: str | None = None
    subtopics: list[str] = []

    @field_validator("id")
    @classmethod
    def id_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v


class TopicSaveRequest(BaseModel):
    topics: list[EditedTopicPayload]


class TopicSeedRequest(BaseModel):
    outline: str


class TopicSaveResponse(BaseModel):
    inserted: list[str]
    updated: list[str]
    archived: list[str]
    items: list[TopicResponse]
    attempts: int = 1


class TopicAggregateResponse(BaseModel):
    topic_id: str
    title: str
    text: str
    sort_order: int
    more: int
    less: int
    total: int
    net: int
    label: Literal["high", "neutral", "low"]


class AggregateListResponse(BaseModel):
    items: list[TopicAggregateResponse]


class OutlineTopicResult(BaseModel):
    text: str  # decoded title
    more: int
    less: int
    net: int


class SingleTopicAggregateResponse(BaseModel):
    topic_id: str
    status: str
    more: int
    less: int
    total: int
    net: int
