"""Typer CLI for yamap-reactor workflows."""

from __future__ import annotations

import json

import typer

from . import __version__
from .config import (
    config_to_dict,
    init_default_config,
    load_runtime_config,
    resolve_config_path,
)
from .errors import ConfigError, SessionGuardError, YamapReactorError
from .feed.targets import VALID_SNAPSHOT_MODES
from .logging import configure_logging, get_logger
from .models import CrawlAction, RunResult
from .report import format_run_summary, render_run_json
from .runner import run_crawl
from .settings import DEFAULT_ENV_FILE, load_settings, resolve_credentials

app = typer.Typer(help="React to unreacted YAMAP feed posts through a real browser session.")

config_app = typer.Typer(help="Config commands.")

app.add_typer(config_app, name="config")

logger = get_logger(__name__)


@app.command("run")
def run(
    ctx: typer.Context,
    action: str | None = typer.Option(
        None,
        "--action",
        "-a",
        help="Crawl to run: react-timeline|react-activities.",
    ),
    path: str | None = typer.Option(
        None, "--path", help="Optional config TOML path (defaults to platform config dir)."
    ),
    env_file: str = typer.Option(
        DEFAULT_ENV_FILE,
        "--env-file",
        help="Env file holding YAMAP_EMAIL, YAMAP_PASSWORD and POST_COUNT_TO_PROCESS.",
    ),
    snapshot_mode: str = typer.Option(
        "direct",
        "--snapshot-mode",
        help="Timeline state extraction: direct (evaluate state object) or embedded (parse script tag).",
    ),
    headful: bool | None = typer.Option(
        None,
        "--headful/--headless",
        help="Override browser.headless from config.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Render run result as JSON."),
) -> None:
    try:
        crawl_action = _parse_action(action)
        if snapshot_mode not in VALID_SNAPSHOT_MODES:
            choices = "|".join(sorted(VALID_SNAPSHOT_MODES))
            raise ConfigError(f"Invalid --snapshot-mode '{snapshot_mode}'. Expected {choices}.")
        config = load_runtime_config(path, allow_missing=True)
        configure_logging(debug=_resolve_debug(ctx) or config.app.debug)
        credentials = resolve_credentials(crawl_action, load_settings(env_file))
    except ConfigError as exc:
        typer.secho(f"Run failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    headless = None if headful is None else not headful
    try:
        result = run_crawl(
            crawl_action,
            config,
            credentials,
            headless=headless,
            snapshot_mode=snapshot_mode,
        )
    except SessionGuardError as exc:
        logger.error("%s aborted: %s", crawl_action.value, exc)
        if exc.partial_result is not None:
            _echo_result(exc.partial_result, as_json=as_json)
        typer.secho(f"Run failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc
    except YamapReactorError as exc:
        logger.error("%s aborted: %s", crawl_action.value, exc)
        typer.secho(f"Run failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    _echo_result(result, as_json=as_json)


@config_app.command("init")
def config_init(
    path: str | None = typer.Option(
        None, "--path", help="Optional config TOML path (defaults to platform config dir)."
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite existing config file."),
) -> None:
    try:
        written_path = init_default_config(path, force=force)
    except ConfigError as exc:
        typer.secho(f"Config init failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    typer.echo(f"Wrote default config to {written_path}")


@config_app.command("show")
def config_show(
    path: str | None = typer.Option(
        None, "--path", help="Optional config TOML path (defaults to platform config dir)."
    ),
    as_json: bool = typer.Option(False, "--json", help="Render resolved config as JSON."),
) -> None:
    resolved_path = resolve_config_path(path)
    try:
        config = load_runtime_config(path)
    except ConfigError as exc:
        typer.secho(f"Config show failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    payload = {
        "path": str(resolved_path),
        "config": config_to_dict(config),
    }
    if as_json:
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    typer.echo(f"Resolved config path: {payload['path']}")
    typer.echo(f"Browser: {config.browser.engine} (headless={config.browser.headless})")
    typer.echo(f"Guard placement: {config.crawl.guard_placement}")
    typer.echo(
        "Stagnation rounds: "
        f"timeline={config.crawl.timeline_stagnation_rounds} "
        f"activities={config.crawl.activities_stagnation_rounds}"
    )
    typer.echo(f"Run timeout: {config.crawl.run_timeout_seconds:g}s")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show yamap-reactor version and exit."),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
) -> None:
    ctx.obj = {"debug": debug}
    if version:
        typer.echo(__version__)
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _echo_result(result: RunResult, *, as_json: bool) -> None:
    if as_json:
        typer.echo(render_run_json(result))
    else:
        typer.echo(format_run_summary(result))


def _parse_action(raw: str | None) -> CrawlAction:
    choices = "|".join(action.value for action in CrawlAction)
    if not raw:
        raise ConfigError(f"Missing --action. Expected {choices}.")
    try:
        return CrawlAction(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"Invalid --action '{raw}'. Expected {choices}.") from exc


def _resolve_debug(ctx: typer.Context | None) -> bool:
    if ctx is None or not isinstance(ctx.obj, dict):
        return False
    return bool(ctx.obj.get("debug", False))
