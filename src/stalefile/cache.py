"""Time-based staleness wrapper for a single on-disk file.

A StaleFileCache compares the file's modification time plus a maximum age
against the current time. When the file is stale (or cannot be stat'd at
all) the configured refresh function is called before the file is opened.

Nothing here is locked. Concurrent callers may run the refresh function more
than once, and readers can observe a half-written file unless the refresh
function replaces it atomically (see ``stalefile.refreshers.write_atomic``).
Callers that need cross-thread or cross-process safety must add their own
mutual exclusion.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import timedelta
import os
from pathlib import Path
import time
from typing import BinaryIO

from stalefile.util.logging import get_logger

LOG = get_logger(__name__)

DEFAULT_MAX_AGE_SECONDS = 24.0

RefreshFunc = Callable[[Path], None]


def _seconds(max_age: float | timedelta) -> float:
    if isinstance(max_age, timedelta):
        return max_age.total_seconds()
    return float(max_age)


@dataclass(frozen=True)
class CacheSettings:
    path: Path
    max_age: float = DEFAULT_MAX_AGE_SECONDS
    refresh: RefreshFunc | None = None

    @classmethod
    def build(
        cls,
        path: str | os.PathLike[str],
        max_age: float | timedelta = DEFAULT_MAX_AGE_SECONDS,
        refresh: RefreshFunc | None = None,
    ) -> CacheSettings:
        return cls(path=Path(path), max_age=_seconds(max_age), refresh=refresh)


class StaleFileCache:
    def __init__(
        self,
        settings: CacheSettings,
        *,
        now: Callable[[], float] | None = None,
    ) -> None:
        self._settings = settings
        self._now = now or time.time

    @classmethod
    def with_defaults(cls, path: str | os.PathLike[str]) -> StaleFileCache:
        """Cache with ``DEFAULT_MAX_AGE_SECONDS`` and no refresh function."""
        return cls(CacheSettings.build(path))

    @classmethod
    def with_policy(
        cls,
        path: str | os.PathLike[str],
        max_age: float | timedelta,
        refresh: RefreshFunc | None = None,
    ) -> StaleFileCache:
        return cls(CacheSettings.build(path, max_age, refresh))

    @property
    def settings(self) -> CacheSettings:
        return self._settings

    @property
    def path(self) -> Path:
        return self._settings.path

    @property
    def max_age(self) -> float:
        return self._settings.max_age

    @property
    def refresh_func(self) -> RefreshFunc | None:
        return self._settings.refresh

    def set_path(self, path: str | os.PathLike[str]) -> None:
        self._settings = replace(self._settings, path=Path(path))

    def set_max_age(self, max_age: float | timedelta) -> None:
        self._settings = replace(self._settings, max_age=_seconds(max_age))

    def set_refresh(self, refresh: RefreshFunc | None) -> None:
        self._settings = replace(self._settings, refresh=refresh)

    def age(self) -> float | None:
        """Seconds since the last modification, or None if the file can't be stat'd."""
        try:
            mtime = self.path.stat().st_mtime
        except (OSError, ValueError):
            return None
        return self._now() - mtime

    def is_expired(self) -> bool:
        try:
            mtime = self.path.stat().st_mtime
        except (OSError, ValueError) as exc:
            LOG.debug("Stat failed for %s (%s); treating as expired", self.path, exc)
            return True
        return self._now() > mtime + self.max_age

    def refresh(self) -> None:
        func = self._settings.refresh
        if func is None:
            return
        LOG.debug("Refreshing %s", self.path)
        func(self.path)

    def get(self) -> BinaryIO:
        """Return a binary read handle, refreshing the file first if it is stale.

        Errors raised by the refresh function propagate unchanged and the file
        is not opened. The caller owns the returned handle.
        """
        if self.is_expired():
            self.refresh()
        return open(self.path, "rb")

    # Names matching the two documented convenience constructors.
    new_with_defaults = with_defaults
    new_with_policy = with_policy
