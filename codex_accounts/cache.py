"""Staleness policy for cached rate limit snapshots"""

import time
from typing import Optional

from settings import RATE_LIMIT_CACHE_SECONDS

CACHE_MAX_AGE_SECONDS = 180


def now_seconds() -> int:
    """Wall-clock time truncated to whole seconds"""
    return int(time.time())


def is_stale(
    last_updated: Optional[int],
    max_age_seconds: int = CACHE_MAX_AGE_SECONDS,
    now: Optional[int] = None,
) -> bool:
    """Check whether a cached value must be re-fetched

    Args:
        last_updated: Epoch seconds of the last sync; 0 or None means never
        max_age_seconds: Maximum trusted age (inclusive boundary)
        now: Current epoch seconds, defaults to the wall clock

    Returns:
        True if the value is missing or at least max_age_seconds old
    """
    if not last_updated:
        return True
    if now is None:
        now = now_seconds()
    return now - last_updated >= max_age_seconds


def should_update_rate_limit(last_updated: Optional[int]) -> bool:
    """is_stale with the configured rate limit cache age"""
    return is_stale(last_updated, RATE_LIMIT_CACHE_SECONDS)
