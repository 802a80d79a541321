"""Translation coverage stats and fire-and-forget job dispatch."""
import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from podcast_cms.models.episode import Episode, EpisodeStatus
from podcast_cms.models.insight import Insight
from podcast_cms.models.translation import EpisodeTranslation, InsightTranslation, Language, TranslationStatus
from podcast_cms.schemas.translation import ContentType, LanguageStats

logger = logging.getLogger(__name__)

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "it": "Italian",
    "pt": "Portuguese",
    "nl": "Dutch",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
}

TRANSLATABLE_FIELDS: tuple[str, ...] = ("title", "description", "content", "summary")

# content type -> (source model, translation model, foreign key column)
CONTENT_MODELS = {
    ContentType.episode: (Episode, EpisodeTranslation, "episode_id"),
    ContentType.insight: (Insight, InsightTranslation, "insight_id"),
}


def resolve_fields(fields: list[str] | None) -> list[str]:
    """Default to every translatable field; raise ValueError for unknown ones."""
    if not fields:
        return list(TRANSLATABLE_FIELDS)
    unknown = [f for f in fields if f not in TRANSLATABLE_FIELDS]
    if unknown:
        raise ValueError(f"Fields cannot be translated: {', '.join(unknown)}")
    return list(fields)


def check_language(code: str) -> str:
    if code not in LANGUAGE_NAMES:
        raise ValueError(f"Unsupported target language: {code}")
    return code


def completion_pct(translated: int, total: int) -> int:
    if total <= 0:
        return 0
    # half-up rounding
    return int(translated * 100 / total + 0.5)


# ─── Stats ───

async def _count_published(db: AsyncSession, model) -> int:
    result = await db.execute(
        select(func.count()).select_from(model).where(model.status == EpisodeStatus.published.value)
    )
    return result.scalar_one() or 0


async def _completed_by_language(db: AsyncSession, model) -> dict[str, int]:
    result = await db.execute(
        select(model.language_code, func.count())
        .where(model.translation_status == TranslationStatus.completed.value)
        .group_by(model.language_code)
    )
    return {code: count for code, count in result.all()}


async def get_translation_stats(db: AsyncSession) -> list[LanguageStats]:
    """Per active language: published totals and completed translation counts."""
    languages = (
        await db.execute(select(Language).where(Language.is_active.is_(True)).order_by(Language.sort_order))
    ).scalars().all()

    episodes_total = await _count_published(db, Episode)
    insights_total = await _count_published(db, Insight)
    episodes_done = await _completed_by_language(db, EpisodeTranslation)
    insights_done = await _completed_by_language(db, InsightTranslation)

    stats = []
    for lang in languages:
        ep_done = episodes_done.get(lang.code, 0)
        in_done = insights_done.get(lang.code, 0)
        stats.append(
            LanguageStats(
                language_code=lang.code,
                language_name=lang.name,
                insights_total=insights_total,
                insights_translated=in_done,
                insights_completion_pct=completion_pct(in_done, insights_total),
                episodes_total=episodes_total,
                episodes_translated=ep_done,
                episodes_completion_pct=completion_pct(ep_done, episodes_total),
            )
        )
    return stats


# ─── Dispatch ───

def enqueue_translation(
    content_type: ContentType,
    content_id: uuid.UUID,
    target_language: str,
    fields: list[str] | None = None,
) -> bool:
    """Queue a translate_content job. Never raises; returns False on failure."""
    try:
        from podcast_cms.workers.translation_tasks import translate_content  # noqa: PLC0415
        translate_content.delay(content_type.value, str(content_id), target_language, resolve_fields(fields))
    except Exception as exc:
        logger.warning(
            "Failed to enqueue translation of %s %s to %s: %s", content_type.value, content_id, target_language, exc
        )
        return False
    return True


def episode_translation_dispatch(target_language: str):
    """Bind enqueue_translation for the bulk importer's per-episode callback."""
    def dispatch(episode_id: uuid.UUID) -> bool:
        return enqueue_translation(ContentType.episode, episode_id, target_language)
    return dispatch
