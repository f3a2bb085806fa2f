from __future__ import annotations

from collections.abc import Callable
import time
from typing import TypeVar

T = TypeVar("T")


def retry(
    func: Callable[[], T],
    attempts: int = 3,
    delay_seconds: float = 1.0,
    backoff: float = 1.0,
    on_error: Callable[[Exception, int], None] | None = None,
) -> T:
    """Call ``func`` until it succeeds, waiting ``delay_seconds * backoff**(n-1)`` between tries."""
    if attempts < 1:
        raise ValueError("attempts must be >= 1")
    if backoff < 1.0:
        raise ValueError("backoff must be >= 1")
    last_error: Exception | None = None
    wait = delay_seconds
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except Exception as exc:  # noqa: BLE001
            last_error = exc
            if on_error:
                on_error(exc, attempt)
            if attempt == attempts:
                break
            if wait > 0:
                time.sleep(wait)
            wait *= backoff
    raise RuntimeError(f"retry failed after {attempts} attempt(s)") from last_error
