import os
from datetime import timedelta

import pytest

from stalefile import cache as cache_module
from stalefile.cache import DEFAULT_MAX_AGE_SECONDS, CacheSettings, StaleFileCache


def _age(path, seconds: float) -> None:
    stale_time = path.stat().st_mtime - seconds
    os.utime(path, (stale_time, stale_time))


def _write_one(path) -> None:
    path.write_bytes(b"\x01")


def test_fresh_file_is_not_expired(tmp_path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"\x00")
    cache = StaleFileCache.with_policy(path, 60)
    assert cache.is_expired() is False


def test_missing_file_is_expired_regardless_of_max_age(tmp_path) -> None:
    for max_age in (0, 1, 10**9):
        cache = StaleFileCache.with_policy(tmp_path / "no-such-file", max_age)
        assert cache.is_expired() is True


def test_expired_after_max_age_elapses(tmp_path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"\x00")
    cache = StaleFileCache.with_policy(path, 10)
    _age(path, 11)
    assert cache.is_expired() is True


def test_expiry_uses_injected_clock(tmp_path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"\x00")
    mtime = path.stat().st_mtime
    now = mtime + 5

    cache = StaleFileCache(CacheSettings.build(path, 5), now=lambda: now)
    assert cache.is_expired() is False

    now = mtime + 5.5
    assert cache.is_expired() is True


def test_zero_and_negative_max_age_force_stale(tmp_path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"\x00")
    mtime = path.stat().st_mtime

    cache = StaleFileCache(CacheSettings.build(path, 0), now=lambda: mtime + 0.001)
    assert cache.is_expired() is True

    cache.set_max_age(-1)
    assert cache.is_expired() is True


def test_get_fresh_file_skips_refresh(tmp_path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"cached")
    calls = {"count": 0}

    def refresh(_path) -> None:
        calls["count"] += 1

    cache = StaleFileCache.with_policy(path, 60, refresh)
    with cache.get() as handle:
        assert handle.read() == b"cached"
    assert calls["count"] == 0


def test_get_expired_file_refreshes(tmp_path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"old")
    _age(path, 120)

    def refresh(target) -> None:
        target.write_bytes(b"new")

    cache = StaleFileCache.with_policy(path, 60, refresh)
    with cache.get() as handle:
        assert handle.read() == b"new"


def test_get_expired_without_refresh_returns_existing_content(tmp_path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"\x00")
    _age(path, 120)

    cache = StaleFileCache.with_policy(path, 1)
    assert cache.is_expired() is True
    with cache.get() as handle:
        assert handle.read() == b"\x00"


def test_get_propagates_refresh_error_without_opening(tmp_path, monkeypatch) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"\x00")
    _age(path, 120)
    error = ValueError("test error")

    def refresh(_path) -> None:
        raise error

    def fail_open(*_args, **_kwargs):
        raise AssertionError("file should not be opened after a failed refresh")

    cache = StaleFileCache.with_policy(path, 1, refresh)
    monkeypatch.setattr(cache_module, "open", fail_open, raising=False)
    with pytest.raises(ValueError) as excinfo:
        cache.get()
    assert excinfo.value is error


def test_get_missing_file_populates_through_refresh(tmp_path) -> None:
    path = tmp_path / "data.bin"
    cache = StaleFileCache.with_policy(path, 60, _write_one)
    with cache.get() as handle:
        assert handle.read() == b"\x01"


def test_get_missing_file_without_refresh_raises_open_error(tmp_path) -> None:
    cache = StaleFileCache.with_defaults(tmp_path / "missing.bin")
    with pytest.raises(FileNotFoundError):
        cache.get()


def test_refresh_without_function_is_noop(tmp_path) -> None:
    cache = StaleFileCache.with_defaults(tmp_path / "missing.bin")
    assert cache.refresh() is None
    assert not (tmp_path / "missing.bin").exists()


def test_refresh_passes_path(tmp_path) -> None:
    seen = []
    cache = StaleFileCache.with_policy(str(tmp_path / "a.bin"), 1, seen.append)
    cache.refresh()
    assert seen == [tmp_path / "a.bin"]


def test_stale_then_refreshed_scenario(tmp_path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"\x00")
    cache = StaleFileCache.with_policy(path, timedelta(seconds=1), _write_one)

    with cache.get() as handle:
        assert handle.read() == b"\x00"

    _age(path, 1.5)

    with cache.get() as handle:
        assert handle.read() == b"\x01"


def test_defaults_and_setters(tmp_path) -> None:
    cache = StaleFileCache.with_defaults(tmp_path / "a.bin")
    assert cache.max_age == DEFAULT_MAX_AGE_SECONDS
    assert cache.refresh_func is None

    cache.set_path(tmp_path / "b.bin")
    cache.set_max_age(timedelta(minutes=2))
    cache.set_refresh(_write_one)

    assert cache.path == tmp_path / "b.bin"
    assert cache.max_age == 120.0
    assert cache.refresh_func is _write_one
    assert cache.settings == CacheSettings(tmp_path / "b.bin", 120.0, _write_one)


def test_convenience_constructor_aliases(tmp_path) -> None:
    cache = StaleFileCache.new_with_policy(tmp_path / "a.bin", 5, None)
    assert cache.max_age == 5.0
    assert StaleFileCache.new_with_defaults(tmp_path / "a.bin").max_age == DEFAULT_MAX_AGE_SECONDS


def test_age_reports_none_for_missing_file(tmp_path) -> None:
    assert StaleFileCache.with_defaults(tmp_path / "missing").age() is None


def test_unstatable_path_is_expired() -> None:
    assert StaleFileCache.with_policy("a\0b", 60).is_expired() is True
