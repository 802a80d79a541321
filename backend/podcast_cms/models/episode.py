import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from podcast_cms.db.base import Base, TimestampMixin, UUIDMixin


class EpisodeSeries(str, enum.Enum):
    wtf = "wtf"
    finance_transformers = "finance_transformers"
    cfo_memo = "cfo_memo"


class EpisodeStatus(str, enum.Enum):
    draft = "draft"
    published = "published"
    scheduled = "scheduled"
    archived = "archived"


class Episode(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "episodes"
    __table_args__ = (Index("ix_episodes_series_season_episode", "series", "season", "episode_number"),)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    series: Mapped[str] = mapped_column(String(50), nullable=False, default=EpisodeSeries.wtf.value, index=True)
    season: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    episode_number: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=EpisodeStatus.draft.value, index=True)
    publish_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration: Mapped[str | None] = mapped_column(String(20), nullable=True)  # "45:30"
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    platforms: Mapped[list["EpisodePlatform"]] = relationship(
        "EpisodePlatform", back_populates="episode", cascade="all, delete-orphan"
    )


class EpisodePlatform(Base, UUIDMixin):
    """External listen-on links (Spotify, Apple Podcasts, ...) for an episode."""

    __tablename__ = "episode_platforms"
    __table_args__ = (UniqueConstraint("episode_id", "platform_name"),)

    episode_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    platform_name: Mapped[str] = mapped_column(String(50), nullable=False)
    platform_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )

    episode: Mapped["Episode"] = relationship("Episode", back_populates="platforms")
