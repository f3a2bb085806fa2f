from pathlib import Path
import shlex

import typer
from rich.console import Console

from stalefile.cache import RefreshFunc, StaleFileCache
from stalefile.config import Config, load_config
from stalefile.refreshers import command_refresher, http_refresher
from stalefile.util.logging import configure_logging

app = typer.Typer(add_completion=False)
console = Console()
err_console = Console(stderr=True)


def _load(config: Path | None, verbose: bool) -> Config:
    cfg = load_config(config)
    configure_logging(verbose or cfg.app.verbose)
    return cfg


def _refresher(cfg: Config, url: str | None, command: str | None) -> RefreshFunc | None:
    if url and command:
        err_console.print("[red]Use either --url or --command, not both.[/red]")
        raise typer.Exit(code=2)
    if url:
        return http_refresher(
            url,
            user_agent=cfg.app.user_agent,
            timeout=cfg.fetch.timeout_seconds,
            max_retries=cfg.fetch.max_retries,
            retry_delay_seconds=cfg.fetch.retry_delay_seconds,
        )
    if command:
        return command_refresher(shlex.split(command))
    return None


@app.command()
def status(
    path: Path,
    max_age: float | None = None,
    config: Path | None = None,
    verbose: bool = False,
) -> None:
    """Report whether a cached file is fresh or stale."""
    cfg = _load(config, verbose)
    cache = StaleFileCache.with_policy(path, max_age if max_age is not None else cfg.max_age_seconds)
    age = cache.age()
    state = "[red]stale[/red]" if cache.is_expired() else "[green]fresh[/green]"
    age_str = "missing" if age is None else f"{age:.1f}s"
    console.print(f"{path}: {state} age={age_str} max_age={cache.max_age:.1f}s")


@app.command()
def get(
    path: Path,
    max_age: float | None = None,
    url: str | None = None,
    command: str | None = None,
    config: Path | None = None,
    verbose: bool = False,
) -> None:
    """Print a cached file, refreshing it first if it is stale."""
    cfg = _load(config, verbose)
    refresh = _refresher(cfg, url, command)
    cache = StaleFileCache.with_policy(
        path, max_age if max_age is not None else cfg.max_age_seconds, refresh
    )
    try:
        with cache.get() as handle:
            content = handle.read()
    except Exception as exc:  # noqa: BLE001
        err_console.print(f"[red]Failed to get {path}: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    typer.echo(content, nl=False)


@app.command()
def refresh(
    path: Path,
    url: str | None = None,
    command: str | None = None,
    config: Path | None = None,
    verbose: bool = False,
) -> None:
    """Refresh a cached file regardless of its age."""
    cfg = _load(config, verbose)
    func = _refresher(cfg, url, command)
    if func is None:
        err_console.print("[red]Nothing to refresh with; pass --url or --command.[/red]")
        raise typer.Exit(code=2)
    cache = StaleFileCache.with_policy(path, cfg.max_age_seconds, func)
    try:
        cache.refresh()
    except Exception as exc:  # noqa: BLE001
        err_console.print(f"[red]Refresh failed for {path}: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    console.print(f"Refreshed: {path}")


if __name__ == "__main__":
    app()
