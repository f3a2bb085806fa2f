from dataclasses import dataclass, field
from pathlib import Path
import tomllib

from stalefile.cache import DEFAULT_MAX_AGE_SECONDS


@dataclass(frozen=True)
class AppConfig:
    user_agent: str = "stalefile/0.1"
    verbose: bool = False


@dataclass(frozen=True)
class CacheConfig:
    max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS


@dataclass(frozen=True)
class FetchConfig:
    timeout_seconds: float = 30.0
    max_retries: int = 3
    retry_delay_seconds: float = 1.0


@dataclass(frozen=True)
class Config:
    app: AppConfig = field(default_factory=AppConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)

    @property
    def max_age_seconds(self) -> float:
        return self.cache.max_age_seconds


DEFAULT_CONFIG_PATH = Path("stalefile.toml")


def load_config(path: Path | None = None) -> Config:
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return Config()
        path = DEFAULT_CONFIG_PATH
    elif not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")

    raw = tomllib.loads(path.read_text(encoding="utf-8"))

    return Config(
        app=AppConfig(**raw.get("app", {})),
        cache=CacheConfig(**raw.get("cache", {})),
        fetch=FetchConfig(**raw.get("fetch", {})),
    )
