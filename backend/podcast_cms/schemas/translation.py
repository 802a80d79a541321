"""Pydantic schemas for translation coverage and translation jobs."""
import enum
import uuid

from pydantic import BaseModel, Field


class ContentType(str, enum.Enum):
    episode = "episode"
    insight = "insight"


class LanguageStats(BaseModel):
    language_code: str
    language_name: str
    insights_total: int
    insights_translated: int
    insights_completion_pct: int
    episodes_total: int
    episodes_translated: int
    episodes_completion_pct: int


class TranslateRequest(BaseModel):
    target_language: str
    fields: list[str] | None = None


class BatchTranslateRequest(BaseModel):
    content_type: ContentType
    target_language: str
    content_ids: list[uuid.UUID] | None = None
    fields: list[str] | None = None
    max_items: int = Field(default=10, ge=1, le=100)


class TranslationJobResponse(BaseModel):
    queued: bool
    task_id: str | None = None
