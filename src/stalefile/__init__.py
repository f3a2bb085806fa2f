"""Time-based staleness wrapper for a single on-disk file."""

from stalefile.cache import (
    DEFAULT_MAX_AGE_SECONDS,
    CacheSettings,
    RefreshFunc,
    StaleFileCache,
)
from stalefile.refreshers import command_refresher, http_refresher, write_atomic

__all__ = [
    "DEFAULT_MAX_AGE_SECONDS",
    "CacheSettings",
    "RefreshFunc",
    "StaleFileCache",
    "command_refresher",
    "http_refresher",
    "write_atomic",
]
