from podcast_cms.models.user import User
from podcast_cms.models.episode import Episode, EpisodePlatform, EpisodeSeries, EpisodeStatus
from podcast_cms.models.insight import Insight
from podcast_cms.models.translation import Language, EpisodeTranslation, InsightTranslation, TranslationStatus
from podcast_cms.models.audit import AuditLog, AICallLog

__all__ = [
    "User",
    "Episode", "EpisodePlatform", "EpisodeSeries", "EpisodeStatus",
    "Insight",
    "Language", "EpisodeTranslation", "InsightTranslation", "TranslationStatus",
    "AuditLog", "AICallLog",
]
