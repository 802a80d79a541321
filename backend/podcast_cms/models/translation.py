import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from podcast_cms.db.base import Base, TimestampMixin, UUIDMixin


class TranslationStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    review_needed = "review_needed"
    approved = "approved"
    rejected = "rejected"


class Language(Base, TimestampMixin):
    __tablename__ = "languages"

    code: Mapped[str] = mapped_column(String(5), primary_key=True)  # ISO code: 'en', 'de', 'es-MX'
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    native_name: Mapped[str] = mapped_column(String(50), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class _TranslationColumns(UUIDMixin, TimestampMixin):
    language_code: Mapped[str] = mapped_column(
        String(5), ForeignKey("languages.code", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    translation_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TranslationStatus.pending.value, index=True
    )
    translation_method: Mapped[str] = mapped_column(String(20), nullable=False, default="manual")  # manual, ai
    translation_quality_score: Mapped[Decimal | None] = mapped_column(Numeric(3, 2), nullable=True)
    translated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ai_model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    prompt_tokens: Mapped[int | None] = mapped_column(Integer, nullable=True)
    completion_tokens: Mapped[int | None] = mapped_column(Integer, nullable=True)


class EpisodeTranslation(Base, _TranslationColumns):
    __tablename__ = "episodes_translations"
    __table_args__ = (UniqueConstraint("episode_id", "language_code"),)

    episode_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False, index=True
    )


class InsightTranslation(Base, _TranslationColumns):
    __tablename__ = "insights_translations"
    __table_args__ = (UniqueConstraint("insight_id", "language_code"),)

    insight_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("insights.id", ondelete="CASCADE"), nullable=False, index=True
    )
