"""nit-dashboard CLI: operator views over the nit platform."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from nit_dashboard import __version__
from nit_dashboard.alerts.controller import AlertConfigController
from nit_dashboard.config import load_config, validate_config
from nit_dashboard.lifecycle import LoadScope, LoadState, LoadStatus
from nit_dashboard.memory.baselines import BaselineStore
from nit_dashboard.memory.loader import load_memory_state
from nit_dashboard.memory.navigation import THEMES, NavigationState, ThemePreference
from nit_dashboard.memory.store import JsonFileStore
from nit_dashboard.reporters.terminal import DashboardReporter
from nit_dashboard.telemetry.sentry_integration import init_sentry
from nit_dashboard.utils.platform_client import DEFAULT_WINDOW_DAYS, PlatformApiClient
from nit_dashboard.views import (
    load_bug_summary,
    load_coverage_view,
    load_drift_view,
    load_overview,
    load_pr_groups,
    load_runs_view,
    load_security_view,
    load_usage_view,
)

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from nit_dashboard.config import NitDashboardConfig
    from nit_dashboard.memory.store import KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")
console = Console()
reporter = DashboardReporter(console)

_MIN_MASKED_VALUE_LENGTH = 8
_SENSITIVE_KEYS = {"api_key", "session_cookie", "dsn"}


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _mask_sensitive_values(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Recursively mask sensitive values in configuration dict."""
    result = copy.deepcopy(config_dict)

    def _mask_dict(data: dict[str, Any]) -> None:
        for key, value in data.items():
            if key in _SENSITIVE_KEYS and isinstance(value, str) and value:
                if len(value) > _MIN_MASKED_VALUE_LENGTH:
                    data[key] = f"{value[:4]}...{value[-4:]}"
                else:
                    data[key] = "***"
            elif isinstance(value, dict):
                _mask_dict(value)

    _mask_dict(result)
    return result


# ── Context helpers ──────────────────────────────────────────────────


def _config(ctx: click.Context) -> NitDashboardConfig:
    config: NitDashboardConfig = ctx.obj["config"]
    return config


def _client(ctx: click.Context) -> PlatformApiClient:
    platform = _config(ctx).platform
    if not platform.is_configured:
        reporter.print_error(
            "Platform is not configured. Set platform.url and platform.api_key "
            "(or NIT_PLATFORM_URL / NIT_PLATFORM_API_KEY)."
        )
        raise click.Abort
    return PlatformApiClient.from_config(platform)


def _store(ctx: click.Context) -> KeyValueStore:
    state_file = _config(ctx).dashboard.state_file
    return JsonFileStore(Path(state_file).expanduser()) if state_file else JsonFileStore.default()


def _project_id(ctx: click.Context, project_id: str | None) -> str:
    """Resolve the project argument, falling back to ``platform.project_id``."""
    resolved = project_id or _config(ctx).platform.project_id
    if not resolved:
        reporter.print_error("No project given and platform.project_id is not set.")
        raise click.Abort
    NavigationState(_store(ctx)).add_recent_project(resolved)
    return resolved


def _load(work: Coroutine[Any, Any, T]) -> T:
    """Run one view load to completion and abort the command on failure."""
    state: LoadState[T] = LoadState()
    asyncio.run(LoadScope().run(state, work))

    if state.status is LoadStatus.ERROR or state.data is None:
        if state.unauthorized:
            reporter.print_error("The platform rejected the credentials (HTTP 401).")
        else:
            reporter.print_error(f"Failed to load from the platform: {state.error}")
        raise click.Abort
    return state.data


def _emit_json(data: Any) -> None:
    click.echo(json.dumps(asdict(data), indent=2, default=str))


json_option = click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of tables.",
)
project_argument = click.argument("project_id", required=False)


# ── Command group ────────────────────────────────────────────────────


@click.group()
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Directory containing .nit.yml.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="nit-dashboard")
@click.pass_context
def cli(ctx: click.Context, path: str, *, verbose: bool) -> None:
    """nit-dashboard: coverage, runs, bugs and drift for nit projects."""
    _configure_logging(verbose=verbose)
    ctx.ensure_object(dict)

    try:
        config = load_config(path)
    except (OSError, TypeError, ValueError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    ctx.obj["config"] = config
    init_sentry(config.sentry)


@cli.command()
@json_option
@click.pass_context
def projects(ctx: click.Context, *, as_json: bool) -> None:
    """List projects with their latest run and health."""
    view = _load(load_overview(_client(ctx)))
    if as_json:
        _emit_json(view)
        return

    reporter.print_header("Projects")
    reporter.print_overview(view)


@cli.command()
@click.pass_context
def recent(ctx: click.Context) -> None:
    """Show recently viewed projects."""
    recent_projects = NavigationState(_store(ctx)).recent_projects
    if not recent_projects:
        reporter.print_info("No recently viewed projects.")
        return

    for project_id in recent_projects:
        console.print(f"  {project_id}")


@cli.command()
@project_argument
@click.option("--limit", type=int, default=None, help="Number of reports to fetch.")
@json_option
@click.pass_context
def coverage(
    ctx: click.Context, project_id: str | None, limit: int | None, *, as_json: bool
) -> None:
    """Show coverage trend, package breakdown and least covered files."""
    resolved = _project_id(ctx, project_id)
    report_limit = limit or _config(ctx).dashboard.report_limit
    view = _load(load_coverage_view(_client(ctx), resolved, limit=report_limit))
    if as_json:
        _emit_json(view)
        return

    reporter.print_header(f"Coverage: {resolved}")
    reporter.print_coverage(view)


@cli.command()
@project_argument
@click.option("--package", "package_id", default=None, help="Only show runs of this package.")
@json_option
@click.pass_context
def runs(
    ctx: click.Context, project_id: str | None, package_id: str | None, *, as_json: bool
) -> None:
    """Show generation runs grouped by run id."""
    resolved = _project_id(ctx, project_id)
    view = _load(
        load_runs_view(
            _client(ctx),
            resolved,
            package_id=package_id,
            limit=_config(ctx).dashboard.report_limit,
        )
    )
    if as_json:
        _emit_json(view)
        return

    reporter.print_header(f"Runs: {resolved}")
    reporter.print_runs(view)


@cli.command()
@project_argument
@json_option
@click.pass_context
def prs(ctx: click.Context, project_id: str | None, *, as_json: bool) -> None:
    """Show coverage reports grouped by pull request."""
    resolved = _project_id(ctx, project_id)
    groups = _load(load_pr_groups(_client(ctx), resolved))
    if as_json:
        click.echo(json.dumps([asdict(group) for group in groups], indent=2, default=str))
        return

    reporter.print_header(f"Pull requests: {resolved}")
    reporter.print_prs(groups)


@cli.command()
@project_argument
@json_option
@click.pass_context
def bugs(ctx: click.Context, project_id: str | None, *, as_json: bool) -> None:
    """Show detected bugs by severity."""
    resolved = _project_id(ctx, project_id)
    summary = _load(load_bug_summary(_client(ctx), resolved))
    if as_json:
        _emit_json(summary)
        return

    reporter.print_header(f"Bugs: {resolved}")
    reporter.print_bugs(summary)


@cli.group("drift")
def drift_group() -> None:
    """Inspect drift checks and accept baselines."""


@drift_group.command("show")
@project_argument
@json_option
@click.pass_context
def drift_show(ctx: click.Context, project_id: str | None, *, as_json: bool) -> None:
    """Show the latest drift result per test."""
    resolved = _project_id(ctx, project_id)
    baselines = BaselineStore(_store(ctx), resolved)
    view = _load(load_drift_view(_client(ctx), resolved, baselines))
    if as_json:
        _emit_json(view)
        return

    reporter.print_header(f"Drift: {resolved}")
    reporter.print_drift(view)


@drift_group.command("accept-baseline")
@click.argument("test_name")
@click.option("--project", "project_id", default=None, help="Project id.")
@click.pass_context
def drift_accept_baseline(ctx: click.Context, test_name: str, project_id: str | None) -> None:
    """Accept the current output of TEST_NAME as its baseline (stored locally)."""
    resolved = _project_id(ctx, project_id)
    accepted_at = BaselineStore(_store(ctx), resolved).accept(test_name)
    reporter.print_success(f"Accepted baseline for {test_name} at {accepted_at}")


@cli.command()
@project_argument
@json_option
@click.pass_context
def security(ctx: click.Context, project_id: str | None, *, as_json: bool) -> None:
    """Show security findings by severity and the riskiest files."""
    resolved = _project_id(ctx, project_id)
    view = _load(load_security_view(_client(ctx), resolved))
    if as_json:
        _emit_json(view)
        return

    reporter.print_header(f"Security: {resolved}")
    reporter.print_security(view)


@cli.command()
@project_argument
@json_option
@click.pass_context
def memory(ctx: click.Context, project_id: str | None, *, as_json: bool) -> None:
    """Show learned patterns and failed approaches."""
    resolved = _project_id(ctx, project_id)
    state = _load(load_memory_state(_client(ctx), resolved))
    if as_json:
        _emit_json(state)
        return

    reporter.print_header(f"Memory: {resolved}")
    reporter.print_memory(state)
    if state.error:
        raise click.Abort


@cli.command()
@click.option("--project", "project_id", default=None, help="Limit to one project.")
@click.option("--days", type=int, default=DEFAULT_WINDOW_DAYS, show_default=True)
@json_option
@click.pass_context
def usage(ctx: click.Context, project_id: str | None, days: int, *, as_json: bool) -> None:
    """Show LLM usage and spend."""
    view = _load(load_usage_view(_client(ctx), project_id, days=days))
    if as_json:
        _emit_json(view)
        return

    reporter.print_header(f"LLM usage: last {days} days")
    reporter.print_usage(view)


# ── Alerts ───────────────────────────────────────────────────────────


@cli.group("alerts")
def alerts_group() -> None:
    """View and change project alert settings."""


@alerts_group.command("show")
@project_argument
@json_option
@click.pass_context
def alerts_show(ctx: click.Context, project_id: str | None, *, as_json: bool) -> None:
    """Show the alert settings of a project."""
    resolved = _project_id(ctx, project_id)
    controller = AlertConfigController(_client(ctx), resolved)
    config = asyncio.run(controller.load())
    controller.close()
    if as_json:
        _emit_json(config)
        return

    reporter.print_header(f"Alerts: {resolved}")
    reporter.print_alert_config(config)


async def _apply_alert_changes(
    controller: AlertConfigController, changes: dict[str, str]
) -> str | None:
    await controller.load()
    error = controller.update(**changes)
    if error is None:
        await controller.flush()
    controller.close()
    return error


@alerts_group.command("set")
@project_argument
@click.option("--slack-webhook", default=None, help="Slack incoming webhook URL.")
@click.option("--email-threshold", "email_threshold_usd", default=None, help="USD spend alert.")
@click.option("--budget-percent", "budget_alert_percent", default=None, help="Budget percent.")
@click.option("--recipients", "email_recipients", default=None, help="Comma-separated emails.")
@click.option("--resend-api-key", default=None, help="Resend API key.")
@click.option("--from-address", "email_from_address", default=None, help="Sender address.")
@click.pass_context
def alerts_set(ctx: click.Context, project_id: str | None, **options: str | None) -> None:
    """Change alert settings; pass an empty string to clear a value.

    Example:
      nit-dashboard alerts set my-project --budget-percent 90
    """
    changes = {key: value for key, value in options.items() if value is not None}
    if not changes:
        reporter.print_warning("Nothing to change.")
        return

    resolved = _project_id(ctx, project_id)
    debounce_seconds = _config(ctx).dashboard.alert_debounce_ms / 1000
    controller = AlertConfigController(
        _client(ctx), resolved, debounce_seconds=debounce_seconds
    )
    error = asyncio.run(_apply_alert_changes(controller, changes))

    if error is not None:
        reporter.print_error(error)
        raise click.Abort
    if controller.last_save_error is not None:
        reporter.print_error(f"Failed to save alert settings: {controller.last_save_error}")
        raise click.Abort

    reporter.print_success(f"Saved alert settings for {resolved}")


# ── Local preferences ────────────────────────────────────────────────


@cli.command()
@click.argument("value", required=False, type=click.Choice(THEMES))
@click.pass_context
def theme(ctx: click.Context, value: str | None) -> None:
    """Show or set the preferred colour theme."""
    preference = ThemePreference(_store(ctx))
    if value is None:
        console.print(preference.theme)
        return

    preference.set_theme(value)
    reporter.print_success(f"Theme set to {value}")


# ── Config ───────────────────────────────────────────────────────────


@cli.group("config")
def config_group() -> None:
    """Inspect `.nit.yml` configuration."""


@config_group.command("show")
@click.option("--json-output", "as_json", is_flag=True, help="Output as JSON instead of YAML.")
@click.option(
    "--no-mask",
    is_flag=True,
    help="Show sensitive values unmasked (use with caution).",
)
@click.pass_context
def config_show(ctx: click.Context, *, as_json: bool, no_mask: bool) -> None:
    """Display resolved configuration with masked sensitive values."""
    config_dict = asdict(_config(ctx))
    config_dict.pop("raw", None)

    if not no_mask:
        config_dict = _mask_sensitive_values(config_dict)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        console.print()
        console.print("[bold cyan]Configuration:[/bold cyan]")
        console.print()
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate `.nit.yml` for the dashboard."""
    errors = validate_config(_config(ctx))

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    console.print()
    raise click.Abort


if __name__ == "__main__":
    cli()
