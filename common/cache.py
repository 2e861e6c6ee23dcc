"""
TTL cache helper for expensive aggregate results.

Wraps Django's configured cache backend (locmem or Redis) with the
graceful-degradation rules used across the services:

    - If cache.get() fails: log warning, continue with the loader
    - If cache.set() fails: log warning, return the loaded value anyway
    - Result: the API always responds, even without cache
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from django.core.cache import cache

logger = logging.getLogger(__name__)

T = TypeVar('T')


def build_cache_key(prefix: str, *parts: Any) -> str:
    """Deterministic key from a prefix and positional parts.

    ``None`` parts render as empty strings so optional filters keep their slot.

    Example:
        >>> build_cache_key('tat_report', 'LAB1', 'uploadDate', None, 1)
        'tat_report_LAB1_uploadDate__1'
    """
    rendered = ['' if part is None else str(part) for part in parts]
    return '_'.join([prefix, *rendered]).replace(' ', '-')


def cached(key: str, ttl: int, loader: Callable[[], T]) -> tuple[T, bool]:
    """Get a value from cache, or compute it with ``loader`` and store it.

    Args:
        key: Cache key
        ttl: Time-to-live in seconds
        loader: Zero-argument callable producing the value on a miss

    Returns:
        Tuple of (value, from_cache)
    """
    try:
        value = cache.get(key)
        if value is not None:
            logger.debug(f'Cache hit: {key}')
            return value, True
    except Exception as e:
        logger.warning(f'Cache unavailable for {key}: {str(e)}')

    logger.debug(f'Cache miss: {key}')
    value = loader()

    try:
        cache.set(key, value, ttl)
    except Exception as e:
        logger.warning(f'Failed to cache {key}: {str(e)}')

    return value, False
