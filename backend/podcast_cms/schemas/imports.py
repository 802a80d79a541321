"""Pydantic schemas for the episode bulk import / merge workflow."""
import enum
import uuid
from datetime import datetime
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field

from podcast_cms.models.episode import EpisodeSeries, EpisodeStatus


class ImportMode(str, enum.Enum):
    create = "create"
    update = "update"
    upsert = "upsert"


class MatchStrategy(str, enum.Enum):
    slug = "slug"
    title = "title"
    season_episode = "season_episode"


class RowState(str, enum.Enum):
    """Lifecycle of an upload row. ``submitted`` covers the write in flight;
    outcomes report only succeeded, failed or skipped."""

    parsed = "parsed"
    validated = "validated"
    matched = "matched"
    unmatched = "unmatched"
    submitted = "submitted"
    succeeded = "succeeded"
    failed = "failed"
    skipped = "skipped"  # rejected by validation, never written


UpdatableField = Literal[
    "title",
    "description",
    "content",
    "summary",
    "series",
    "season",
    "episode_number",
    "status",
    "publish_date",
    "duration",
    "image_url",
    "audio_url",
]

UPDATABLE_FIELDS: tuple[str, ...] = get_args(UpdatableField)
COMMON_FIELDS: tuple[str, ...] = ("title", "description", "content", "summary")
DIFF_FIELDS: tuple[str, ...] = COMMON_FIELDS + ("series", "season", "episode_number", "status")


# ─── Rows ───

class ExistingEpisode(BaseModel):
    """Read-only snapshot of a stored episode, used for matching and diffs."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: uuid.UUID
    title: str
    slug: str
    description: str | None = None
    content: str | None = None
    summary: str | None = None
    series: str
    season: int
    episode_number: int
    status: str
    publish_date: datetime | None = None
    duration: str | None = None
    image_url: str | None = None
    audio_url: str | None = None


class UploadRow(BaseModel):
    id: uuid.UUID | None = None  # existing episode for update/upsert
    mode: ImportMode = ImportMode.create
    title: str = ""
    description: str = ""
    content: str = ""
    summary: str = ""
    series: EpisodeSeries = EpisodeSeries.wtf
    season: int = 1
    episode_number: int = 1
    status: EpisodeStatus = EpisodeStatus.draft
    publish_date: str | None = None
    duration: str | None = None
    image_url: str | None = None
    audio_url: str | None = None
    spotify: str | None = None
    apple: str | None = None
    google: str | None = None
    youtube: str | None = None
    fields_to_update: list[UpdatableField] = Field(default_factory=list)
    existing: ExistingEpisode | None = None
    state: RowState = RowState.parsed


class ImportRowError(BaseModel):
    row: int
    field: str
    message: str


class ContentMetadata(BaseModel):
    date: str | None = None
    author: str | None = None
    category: str | None = None
    duration: str | None = None
    word_count: int = 0


# ─── Diff ───

class FieldDiff(BaseModel):
    field: str
    current: Any = None
    new: Any = None
    changed: bool
    selected: bool


class RowDiff(BaseModel):
    row: int
    title: str
    mode: ImportMode
    episode_id: uuid.UUID | None
    fields: list[FieldDiff]


# ─── Requests / responses ───

class ParsedRowsResponse(BaseModel):
    rows: list[UploadRow]
    errors: list[ImportRowError]


class ParseTextRequest(BaseModel):
    text: str = Field(min_length=1)
    series: EpisodeSeries | None = None
    season: int | None = Field(default=None, ge=1)
    episode_number: int | None = Field(default=None, ge=1)


class ParsedTextResponse(BaseModel):
    row: UploadRow
    metadata: ContentMetadata


class MatchRequest(BaseModel):
    rows: list[UploadRow]
    strategy: MatchStrategy = MatchStrategy.slug
    mode: ImportMode = ImportMode.update


class MatchResponse(BaseModel):
    rows: list[UploadRow]
    diffs: list[RowDiff]
    matched: int
    existing_count: int


class RowsRequest(BaseModel):
    rows: list[UploadRow]


class ValidationResponse(BaseModel):
    valid: bool
    errors: list[ImportRowError]
    rows: list[UploadRow] = []


class SelectFieldsRequest(BaseModel):
    """Either an explicit field list or a preset; ``common`` selects the
    text fields, ``none`` clears the selection."""

    rows: list[UploadRow]
    fields: list[UpdatableField] | None = None
    preset: Literal["common", "none"] | None = None


class SubmitRequest(BaseModel):
    rows: list[UploadRow]
    auto_translate: bool = False
    target_language: str | None = None


class RowOutcome(BaseModel):
    row: int
    title: str
    mode: ImportMode
    state: RowState
    episode_id: uuid.UUID | None = None
    error: str | None = None


class ImportResult(BaseModel):
    created: int
    updated: int
    failed: int
    skipped: int = 0
    errors: list[ImportRowError] = []
    warnings: list[str] = []
    rows: list[RowOutcome] = []
