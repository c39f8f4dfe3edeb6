"""CLI entrypoints for Copilot line tracking."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live

from .config import ConfigError, TrackingConfig, load_config
from .paths import get_default_config_path, get_default_state_path
from .replay import ReplayClock, ReplayCounters, replay_events
from .session import SessionCounters, TrackingSession, restore_stats
from .stats.render import format_status_text, render_stats_summary
from .stats.repository import QuickReloadError, QuickReloadRepository
from .stats.schemas import LineStats, TrackingStats
from .stats.snapshot import WorkspaceSnapshot

LOGGER = logging.getLogger(__name__)

TYPER_APP = typer.Typer(help="Track the share of lines written with Copilot suggestions.")

WORKSPACE_ROOT_OPTION = typer.Option(
    Path("."),
    "--workspace-root",
    "-w",
    help="Workspace root whose .copilot-stats.json snapshot is read and written.",
)
STATE_PATH_OPTION = typer.Option(
    None,
    "--state-path",
    "-s",
    help=(
        "DuckDB file holding the quick-reload stats, one entry per workspace root. "
        "Defaults to the XDG data directory."
    ),
)
CONFIG_PATH_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="JSON settings file (copilotLineTracking.* keys). Defaults to the XDG config directory.",
)
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable info-level logging.")


@TYPER_APP.callback()
def main() -> None:
    """Root CLI callback."""


@TYPER_APP.command("replay")
def replay_command(
    events_file_path: Path = typer.Argument(
        ...,
        help="JSONL file of recorded editor events.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    workspace_root: Path = WORKSPACE_ROOT_OPTION,
    state_path: Path | None = STATE_PATH_OPTION,
    config_path: Path | None = CONFIG_PATH_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Replay recorded editor events and update the line statistics."""
    _configure_logging(verbose)
    config = _load_config(config_path)
    clock = ReplayClock()

    quick_reload = _open_quick_reload(state_path)
    try:
        session = TrackingSession.open(
            workspace_root.resolve(),
            quick_reload=quick_reload,
            config=config,
            clock=clock.monotonic,
            wall_clock=clock.now,
        )
        try:
            replay_counters = replay_events(session, events_file_path, clock=clock)
            LOGGER.info("Replayed %d events from %s.", replay_counters.events_replayed, events_file_path)
        finally:
            session.close()
    finally:
        quick_reload.close()

    _emit_summary(replay_counters, session.counters)
    typer.echo(session.status_text())
    if replay_counters.failed_lines:
        raise typer.Exit(code=1)


@TYPER_APP.command("show")
def show_command(
    workspace_root: Path = WORKSPACE_ROOT_OPTION,
    state_path: Path | None = STATE_PATH_OPTION,
    config_path: Path | None = CONFIG_PATH_OPTION,
    files: bool = typer.Option(False, "--files", "-f", help="Also list per-file statistics."),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show total lines, Copilot lines and the Copilot percentage."""
    _configure_logging(verbose)
    config = _load_config(config_path)
    stats = _read_stats(workspace_root, state_path, config)
    console = Console()
    if stats is None:
        console.print("No line statistics recorded yet.")
        return
    render_stats_summary(stats, console, show_files=files)


@TYPER_APP.command("status")
def status_command(
    workspace_root: Path = WORKSPACE_ROOT_OPTION,
    state_path: Path | None = STATE_PATH_OPTION,
    config_path: Path | None = CONFIG_PATH_OPTION,
    watch: bool = typer.Option(False, "--watch", help="Keep refreshing at the configured update interval."),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Print the live status string, e.g. `Copilot: 42.5%`."""
    _configure_logging(verbose)
    config = _load_config(config_path)
    if not config.show_status_bar:
        typer.echo("Status display is disabled by the showStatusBar setting.")
        return

    if not watch:
        typer.echo(_read_status_text(workspace_root, state_path, config))
        return

    console = Console()
    with Live(_read_status_text(workspace_root, state_path, config), console=console, auto_refresh=False) as live:
        try:
            while True:
                time.sleep(config.update_interval_seconds)
                live.update(_read_status_text(workspace_root, state_path, config), refresh=True)
        except KeyboardInterrupt:
            pass


@TYPER_APP.command("clear")
def clear_command(
    workspace_root: Path = WORKSPACE_ROOT_OPTION,
    state_path: Path | None = STATE_PATH_OPTION,
    config_path: Path | None = CONFIG_PATH_OPTION,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Reset all line statistics and write the empty state immediately."""
    _configure_logging(verbose)
    config = _load_config(config_path)
    if not yes and not typer.confirm("Clear all Copilot line statistics?", default=False):
        raise typer.Exit(code=1)

    quick_reload = _open_quick_reload(state_path)
    try:
        session = TrackingSession.open(workspace_root.resolve(), quick_reload=quick_reload, config=config)
        session.clear()
        session.close()
    finally:
        quick_reload.close()
    typer.echo("Copilot stats cleared.")


def _configure_logging(verbose: bool) -> None:
    """Initialize default logging for CLI usage."""
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="[%(asctime)s][%(levelname)s][%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )


def _load_config(config_path: Path | None) -> TrackingConfig:
    """Load settings, turning invalid files into CLI parameter errors."""
    try:
        return load_config(config_path if config_path is not None else get_default_config_path())
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _open_quick_reload(state_path: Path | None) -> QuickReloadRepository:
    """Open the quick-reload DuckDB file, creating its directory and table."""
    resolved_path = state_path if state_path is not None else get_default_state_path()
    resolved_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        repository = QuickReloadRepository(resolved_path)
    except QuickReloadError as exc:
        raise typer.BadParameter(str(exc), param_hint="--state-path") from exc
    try:
        repository.ensure_schema()
    except QuickReloadError as exc:
        repository.close()
        raise typer.BadParameter(str(exc), param_hint="--state-path") from exc
    return repository


def _read_stats(workspace_root: Path, state_path: Path | None, config: TrackingConfig) -> TrackingStats | None:
    """Load stats without creating or writing anything.

    The quick-reload state is opened read-only; when it is missing or locked by
    another process, the durable snapshot alone is used.
    """
    snapshot = WorkspaceSnapshot(workspace_root.resolve(), file_name=config.snapshot_file_name)
    resolved_path = state_path if state_path is not None else get_default_state_path()
    if not resolved_path.exists():
        return restore_stats(None, snapshot)

    try:
        quick_reload = QuickReloadRepository(resolved_path, read_only=True)
    except QuickReloadError as exc:
        LOGGER.warning("Reading the stats snapshot only: %s", exc)
        return restore_stats(None, snapshot)
    try:
        return restore_stats(quick_reload, snapshot)
    finally:
        quick_reload.close()


def _read_status_text(workspace_root: Path, state_path: Path | None, config: TrackingConfig) -> str:
    stats = _read_stats(workspace_root, state_path, config)
    return format_status_text(stats.totals if stats is not None else LineStats())


def _emit_summary(replay_counters: ReplayCounters, session_counters: SessionCounters) -> None:
    """Print replay counters to stdout."""
    summary_lines = [
        f"lines_read={replay_counters.lines_read}",
        f"events_replayed={replay_counters.events_replayed}",
        f"parse_errors={replay_counters.parse_errors}",
        f"edits_tracked={session_counters.edits_tracked}",
        f"edits_skipped_untracked={session_counters.edits_skipped_untracked}",
        f"opens_tracked={session_counters.opens_tracked}",
        f"opens_skipped_untracked={session_counters.opens_skipped_untracked}",
        f"suggestions_requested={session_counters.suggestions_requested}",
        f"configuration_changes={session_counters.configuration_changes}",
        f"ai_edits={session_counters.ai_edits}",
        f"ai_lines_classified={session_counters.ai_lines_classified}",
    ]
    for line in summary_lines:
        typer.echo(line)

    for line_number in replay_counters.failed_lines:
        typer.echo(f"failed_line={line_number}")


def module_cli_entry_point() -> None:
    """Console script entrypoint."""
    TYPER_APP()
