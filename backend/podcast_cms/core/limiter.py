"""Rate limiter singleton, keyed by client address. Import from here to avoid circular deps."""
from slowapi import Limiter
from slowapi.util import get_remote_address

from podcast_cms.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
