from __future__ import annotations

from collections.abc import Callable, Sequence
import os
from pathlib import Path
import stat
import subprocess

import requests

from stalefile.util.logging import get_logger
from stalefile.util.retry import retry

LOG = get_logger(__name__)


def write_atomic(path: Path, data: bytes) -> None:
    """Write ``data`` to a sibling temp file and rename it over ``path``.

    The replacement keeps the permission bits of the file it replaces; a new
    file gets the usual umask-derived mode.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        with open(tmp_path, "wb") as handle:
            handle.write(data)
        try:
            mode = stat.S_IMODE(path.stat().st_mode)
        except FileNotFoundError:
            mode = None
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def http_refresher(
    url: str,
    *,
    user_agent: str,
    timeout: float = 30,
    max_retries: int = 3,
    retry_delay_seconds: float = 1.0,
    session: requests.Session | None = None,
) -> Callable[[Path], None]:
    """Build a refresh function that downloads ``url`` into the cached path."""
    http = session or requests.Session()
    headers = {"User-Agent": user_agent}

    def _fetch_once() -> bytes:
        LOG.info("Fetching: %s", url)
        resp = http.get(url, headers=headers, timeout=timeout)
        resp.raise_for_status()
        return resp.content

    def _on_error(exc: Exception, attempt: int) -> None:
        LOG.warning("Fetch failed (attempt %s): %s", attempt, exc)

    def _refresh(path: Path) -> None:
        try:
            content = retry(
                _fetch_once,
                attempts=max_retries,
                delay_seconds=retry_delay_seconds,
                backoff=2.0,
                on_error=_on_error,
            )
        except RuntimeError as exc:
            raise RuntimeError(f"Failed to fetch {url}") from exc.__cause__
        write_atomic(path, content)

    return _refresh


def command_refresher(args: Sequence[str], timeout: float | None = None) -> Callable[[Path], None]:
    """Build a refresh function whose stdout becomes the new file content."""
    argv = list(args)

    def _refresh(path: Path) -> None:
        LOG.info("Running: %s", " ".join(argv))
        proc = subprocess.run(argv, capture_output=True, check=True, timeout=timeout)
        write_atomic(path, proc.stdout)

    return _refresh
