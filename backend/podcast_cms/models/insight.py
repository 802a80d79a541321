from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from podcast_cms.db.base import Base, TimestampMixin, UUIDMixin


class Insight(Base, UUIDMixin, TimestampMixin):
    """Written article, book summary or guide."""

    __tablename__ = "insights"

    title: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft", index=True)
