"""
CoreGuard - Rich terminal view of scan results.

Layout: Scan Summary panel (counts, status) followed by a Findings table.
"""

from typing import Any

from rich import box as rich_box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from coreguard.core.models import ErrorCode, ScanRun, Severity


def _style_severity(s: Severity) -> str:
    if s is Severity.CRITICAL:
        return "red"
    if s is Severity.WARNING:
        return "yellow"
    return "green"


def scan_status(run: ScanRun) -> str:
    """CRITICAL if any file was modified, WARNING for unexpected files only, else OK."""
    if run.count(ErrorCode.MODIFIED_FILE):
        return "CRITICAL"
    if run.findings:
        return "WARNING"
    return "OK"


def _make_summary_panel(run: ScanRun, release_id: str) -> Panel:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()
    status = scan_status(run)
    style = {"CRITICAL": "bold red", "WARNING": "bold yellow"}.get(status, "bold green")
    table.add_row("Release", release_id)
    table.add_row("Files scanned", f"{run.total_scanned:,}")
    table.add_row("Unexpected", str(run.count(ErrorCode.UNEXPECTED_FILE)))
    table.add_row("Modified", str(run.count(ErrorCode.MODIFIED_FILE)))
    table.add_row("Unreadable", str(len(run.skipped)))
    table.add_row("Status", Text(status, style=style))
    return Panel(
        table,
        title="[bold] Scan Summary [/]",
        border_style="cyan",
        box=rich_box.ROUNDED,
        padding=(0, 1),
    )


def _make_findings_table(run: ScanRun) -> Table:
    table = Table(show_header=True, box=rich_box.SIMPLE, padding=(0, 1), title="Findings")
    table.add_column("Code", width=6)
    table.add_column("Severity", width=8)
    table.add_column("Message")
    table.add_column("File", overflow="fold")
    table.add_column("Size", justify="right")
    if not run.findings:
        table.add_row("-", Text("-", style="dim"), Text("No findings", style="dim"), "", "")
    for f in run.findings:
        table.add_row(
            f.error_code.value,
            Text(f.severity.value, style=_style_severity(f.severity)),
            f.message,
            f.relative_path,
            f"{f.observed_size:,}",
        )
    return table


def scan_renderable(run: ScanRun, release_id: str) -> RenderableType:
    """Single renderable for console.print()."""
    return Group(_make_summary_panel(run, release_id), _make_findings_table(run))


def print_scan(console: Any, run: ScanRun, release_id: str) -> None:
    console.print(scan_renderable(run, release_id))
