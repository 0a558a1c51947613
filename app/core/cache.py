import logging
from datetime import datetime
from typing import Optional
from app.core.redis_cache import RedisCache

logger = logging.getLogger(__name__)


# Global lock store instance
_cache_instance: Optional[RedisCache] = None


def get_cache() -> RedisCache:
    """Get global Redis lock store instance"""
    global _cache_instance
    if _cache_instance is None:
        _cache_instance = RedisCache()
    return _cache_instance


def review_request_quota_lock_key(business_id: str, now: datetime) -> str:
    """Lock key serialising monthly quota checks for one business."""
    return f"review_request_quota:{business_id}:{now.strftime('%Y-%m')}"
