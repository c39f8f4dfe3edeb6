"""Rich rendering helpers for line statistics."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from .schemas import LineStats, TrackingStats

TABLE_ROW_STYLES = ["white", "yellow"]


def format_status_text(totals: LineStats) -> str:
    """Return the live display string, e.g. `Copilot: 42.5%`."""
    return f"Copilot: {totals.percentage:.1f}%"


def render_stats_summary(stats: TrackingStats, console: Console, show_files: bool = False) -> None:
    """Render aggregate totals and, optionally, the per-file breakdown."""
    summary_table = Table(title="Copilot Stats", title_justify="left", show_header=False)
    summary_table.add_column("Metric", justify="left")
    summary_table.add_column("Value", justify="right")
    summary_table.add_row("Total Lines", f"{stats.totals.total_lines:,}")
    summary_table.add_row("Copilot Lines", f"{stats.totals.copilot_lines:,}")
    summary_table.add_row("Percentage", f"{stats.totals.percentage:.2f}%")
    summary_table.add_row("Last Updated", stats.last_updated.astimezone().strftime("%Y-%m-%d %H:%M:%S"))
    console.print(summary_table)

    if not show_files:
        return
    if not stats.file_stats:
        console.print("No tracked files recorded.")
        return

    console.print("\n")
    file_table = Table(title="Per-File Stats", show_footer=True, footer_style="bold", title_justify="left")
    file_table.add_column("File", footer="Grand Total", justify="left")
    file_table.add_column("Total Lines", justify="right")
    file_table.add_column("Copilot Lines", justify="right")
    file_table.add_column("Percentage", justify="right")

    for index, path in enumerate(sorted(stats.file_stats)):
        record = stats.file_stats[path]
        style = TABLE_ROW_STYLES[index % len(TABLE_ROW_STYLES)]
        file_table.add_row(
            path,
            f"{record.total_lines:,}",
            f"{record.copilot_lines:,}",
            f"{record.percentage:.2f}%",
            style=style,
        )

    file_table.columns[1].footer = f"{stats.totals.total_lines:,}"
    file_table.columns[2].footer = f"{stats.totals.copilot_lines:,}"
    file_table.columns[3].footer = f"{stats.totals.percentage:.2f}%"
    console.print(file_table)
