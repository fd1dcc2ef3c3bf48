"""
Command-line interface for Keto Phase Tracker.

Provides commands for logging metrics, reviewing progress and phases, and
managing cloud sync. The commands are a thin front end over the services.
"""

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import typer

from keto_tracker.domain.metrics import DailyMetric, ratio_status
from keto_tracker.infrastructure.identity import LocalIdentityProvider
from keto_tracker.infrastructure.remote_store.base import InMemoryRemoteStore
from keto_tracker.services.container import TrackerServices, build_services
from keto_tracker.services.migration import MigrationReport
from keto_tracker.services.sample_data import generate_sample_data
from keto_tracker.utils.exceptions import KetoTrackerError, QuotaExceededError
from keto_tracker.utils.logging_config import get_logger, setup_logging
from keto_tracker.utils.parameters import ParameterLoader
from keto_tracker.utils.timezone_utils import parse_day

app = typer.Typer(help="Keto Phase Tracker - Dr. Boz ratio and fasting phase tracking")

logger = get_logger(__name__)

T = TypeVar("T")

CONFIG_OPTION = typer.Option("config/config.yaml", help="Path to configuration file")
USER_OPTION = typer.Option(None, envvar="KETO_USER_ID", help="Signed-in user id (omit for local only)")


def init_services(config_path: str, identity: LocalIdentityProvider) -> TrackerServices:
    """
    Load configuration, set up logging and wire the services.

    Args:
        config_path: Path to configuration file.
        identity: Identity for the session; signed out for local-only use.

    Returns:
        Wired services.
    """
    param_loader = ParameterLoader(config_path)
    setup_logging(param_loader.get_logging_config(), "keto_tracker")
    return build_services(param_loader.config, identity)


def require_durable_cloud(services: TrackerServices, action: str) -> None:
    """
    Refuse a cloud command when the remote backend lives only in memory.

    The in-memory backend is dropped when the command exits while the sync
    flag and migration marker persist, so the data would look lost.

    Raises:
        typer.Exit: With code 1 if the configured backend is "memory".
    """
    if isinstance(services.remote, InMemoryRemoteStore):
        message = f'{action} needs a persistent cloud backend; set remote.backend to "drive"'
        logger.error(message)
        typer.echo(f"Error: {message}", err=True)
        raise typer.Exit(code=1)


def run(command: Callable[[], Awaitable[T]], action: str) -> T:
    """Run an async command, turning tracker errors into a clean exit."""
    try:
        return asyncio.run(command())
    except QuotaExceededError as e:
        logger.error(f"{action} failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2) from e
    except KetoTrackerError as e:
        logger.error(f"{action} failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


def _format_metric(metric: DailyMetric) -> str:
    extras: list[str] = []
    if metric.weight is not None:
        extras.append(f"weight {metric.weight}")
    if metric.energy is not None:
        extras.append(f"energy {metric.energy}/10")
    if metric.clarity is not None:
        extras.append(f"clarity {metric.clarity}/10")
    line = (
        f"{metric.date}  glucose {metric.glucose}  ketones {metric.ketones}  "
        f"ratio {metric.ratio} ({ratio_status(metric.ratio).value})"
    )
    return f"{line}  {', '.join(extras)}" if extras else line


def _echo_report(report: MigrationReport | None) -> None:
    if report is None:
        return
    typer.echo(f"Migration: {report.status.value} ({report.migrated_count} metrics)")
    if report.failed_documents:
        typer.echo(f"  Not migrated: {', '.join(report.failed_documents)}")


@app.command()
def log(
    glucose: float = typer.Option(..., help="Blood glucose (mmol/L)"),
    ketones: float = typer.Option(..., help="Blood ketones (mmol/L)"),
    weight: float | None = typer.Option(None, help="Weight (kg)"),
    energy: int | None = typer.Option(None, min=1, max=10, help="Energy 1-10"),
    clarity: int | None = typer.Option(None, min=1, max=10, help="Mental clarity 1-10"),
    day: str | None = typer.Option(None, "--date", help="Day to log (default today)"),
    config_path: str = CONFIG_OPTION,
    user_id: str | None = USER_OPTION,
) -> None:
    """
    Log a day's readings.

    Replaces any entry already logged for the same day.
    """
    services = init_services(config_path, LocalIdentityProvider(user_id))
    metric = DailyMetric(
        date=parse_day(day) if day else None,
        glucose=glucose,
        ketones=ketones,
        weight=weight,
        energy=energy,
        clarity=clarity,
    )

    metrics = run(lambda: services.repository.save_daily_metric(metric), "Log")
    if not metrics:
        typer.echo("Warning: the metric may not have been saved", err=True)
        raise typer.Exit(code=1)

    saved = next(m for m in metrics if m.date == (metric.date or services.repository.today()))
    typer.echo(f"Saved: {_format_metric(saved)}")


@app.command()
def history(
    days: int | None = typer.Option(None, help="Only the last N days"),
    config_path: str = CONFIG_OPTION,
    user_id: str | None = USER_OPTION,
) -> None:
    """Show logged metrics, newest first."""
    services = init_services(config_path, LocalIdentityProvider(user_id))
    repository = services.repository

    if days is None:
        metrics = run(repository.get_daily_metrics, "History")
    else:
        metrics = list(reversed(run(lambda: repository.get_recent_metrics(days), "History")))

    if not metrics:
        typer.echo("No metrics logged yet")
        return
    for metric in metrics:
        typer.echo(_format_metric(metric))


@app.command()
def today(
    config_path: str = CONFIG_OPTION,
    user_id: str | None = USER_OPTION,
) -> None:
    """Show today's metric and the current phase."""
    services = init_services(config_path, LocalIdentityProvider(user_id))

    async def load() -> tuple[Any, Any]:
        profile = await services.phases.current_profile()
        metric = await services.repository.get_today_metric()
        return profile, metric

    profile, metric = run(load, "Today")
    phase = services.phases.current_phase(profile)
    typer.echo(f"Phase {phase.number}: {phase.name} - {phase.description}")
    typer.echo(_format_metric(metric) if metric else "Nothing logged today")


@app.command()
def phase(
    config_path: str = CONFIG_OPTION,
    user_id: str | None = USER_OPTION,
) -> None:
    """Check phase advancement and show phase details."""
    services = init_services(config_path, LocalIdentityProvider(user_id))
    profile = run(services.phases.current_profile, "Phase check")
    current = services.phases.current_phase(profile)
    remaining = services.phases.days_remaining(profile)

    typer.echo(f"Phase {current.number}: {current.name}")
    typer.echo(f"  {current.description}")
    typer.echo(f"  Requirements: {current.requirements}")
    typer.echo(f"  Started: {profile.phase_start_date}")
    if remaining is None:
        typer.echo("  Maintenance phase (no end date)")
    else:
        typer.echo(f"  Days remaining: {remaining}")
    typer.echo(f"  Target ratio: {profile.target_ratio}")


@app.command()
def stats(
    config_path: str = CONFIG_OPTION,
    user_id: str | None = USER_OPTION,
) -> None:
    """Show ratio statistics and the 30-day trend."""
    services = init_services(config_path, LocalIdentityProvider(user_id))
    metrics = run(services.repository.get_daily_metrics, "Stats")

    summary = services.analytics.summarize(metrics)
    if summary is None:
        typer.echo("No ratios logged yet")
        return

    typer.echo(
        f"Ratios: {summary.count}  avg {summary.average}  min {summary.minimum}  "
        f"max {summary.maximum}  latest {summary.latest} ({ratio_status(summary.latest).value})"
    )
    for label, ratio in services.analytics.chart_series(metrics, services.repository.today()):
        typer.echo(f"  {label}  {ratio:6.1f}")


@app.command("cloud-sync")
def cloud_sync(
    enable: bool = typer.Option(..., "--enable/--disable", help="Turn cloud sync on or off"),
    config_path: str = CONFIG_OPTION,
    user_id: str | None = USER_OPTION,
) -> None:
    """Turn cloud sync on or off; enabling migrates existing local data."""
    services = init_services(config_path, LocalIdentityProvider(user_id))
    if enable:
        require_durable_cloud(services, "Cloud sync")

    async def toggle() -> MigrationReport | None:
        await services.policy.set_cloud_sync(enable)
        return await services.policy.wait_for_migration()

    report = run(toggle, "Cloud sync")
    typer.echo(f"Cloud sync {'enabled' if enable else 'disabled'}")
    _echo_report(report)


@app.command("sign-in")
def sign_in(
    user_id: str = typer.Argument(..., help="User id reported by the auth service"),
    config_path: str = CONFIG_OPTION,
) -> None:
    """Sign in, enabling cloud sync and migrating local data."""
    identity = LocalIdentityProvider()
    services = init_services(config_path, identity)
    require_durable_cloud(services, "Sign in")

    async def do_sign_in() -> MigrationReport | None:
        await identity.sign_in(user_id)
        return await services.policy.wait_for_migration()

    report = run(do_sign_in, "Sign in")
    typer.echo(f"Signed in as {user_id}")
    _echo_report(report)


@app.command("sign-out")
def sign_out(
    config_path: str = CONFIG_OPTION,
    user_id: str | None = USER_OPTION,
) -> None:
    """Sign out, disabling cloud sync."""
    identity = LocalIdentityProvider(user_id)
    init_services(config_path, identity)

    run(identity.sign_out, "Sign out")
    typer.echo("Signed out; data will be stored locally")


@app.command()
def migrate(
    config_path: str = CONFIG_OPTION,
    user_id: str | None = USER_OPTION,
) -> None:
    """Migrate local data to the cloud now (no-op if already done)."""
    services = init_services(config_path, LocalIdentityProvider(user_id))
    require_durable_cloud(services, "Migration")
    report = run(services.migration.trigger_data_migration, "Migration")
    _echo_report(report)


@app.command("sample-data")
def sample_data(
    config_path: str = CONFIG_OPTION,
    user_id: str | None = USER_OPTION,
) -> None:
    """Generate fourteen days of sample metrics."""
    services = init_services(config_path, LocalIdentityProvider(user_id))
    result = run(lambda: generate_sample_data(services.repository), "Sample data")
    typer.echo(result.message)
    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def theme(
    name: str | None = typer.Argument(None, help="Theme to select; omit to show the current one"),
    config_path: str = CONFIG_OPTION,
) -> None:
    """Show or change the display theme."""
    services = init_services(config_path, LocalIdentityProvider())
    preferences = services.preferences

    async def apply() -> str:
        if name:
            await preferences.save_user_theme(name)
        return await preferences.get_user_theme()

    typer.echo(f"Theme: {run(apply, 'Theme')}")


if __name__ == "__main__":
    app()
