"""Pydantic schemas for episode listing."""
import uuid

from pydantic import BaseModel, ConfigDict

from podcast_cms.schemas.imports import ExistingEpisode


class PlatformLinkOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    platform_name: str
    platform_url: str


class EpisodeListResponse(BaseModel):
    items: list[ExistingEpisode]
    total: int
