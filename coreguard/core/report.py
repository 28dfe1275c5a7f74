"""
CoreGuard - Scan summary report.

Writes a short plain-text summary of the last full scan.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

from coreguard.core.models import ErrorCode, ScanRun

logger = logging.getLogger(__name__)


def format_scan_report(run: ScanRun, release_id: str, root_dir: Path) -> str:
    """Build the report body for one scan."""
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    lines = [
        "=" * 60,
        "CoreGuard - Core Integrity Scan - Summary",
        "=" * 60,
        "",
        f"  Generated:          {generated}",
        f"  Release:            {release_id}",
        f"  Installation root:  {root_dir}",
        f"  Files scanned:      {run.total_scanned:,}",
        f"  Unexpected files:   {run.count(ErrorCode.UNEXPECTED_FILE)}",
        f"  Modified files:     {run.count(ErrorCode.MODIFIED_FILE)}",
        f"  Unreadable files:   {len(run.skipped)}",
        "",
    ]
    if run.findings:
        lines.append("  Findings:")
        for f in run.findings:
            lines.append(f"    {f.error_code.value}  {f.message:16s} {f.relative_path} ({f.observed_size} bytes)")
        lines.append("")
    if run.skipped:
        lines.append("  Unreadable:")
        lines.extend(f"    {p}" for p in run.skipped)
        lines.append("")
    lines.append("=" * 60)
    return "\n".join(lines) + "\n"


def write_scan_report(report_path: Path, run: ScanRun, release_id: str, root_dir: Path) -> None:
    """Write the scan summary to report_path; failures are logged, not raised."""
    report_path = Path(report_path)
    try:
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(format_scan_report(run, release_id, root_dir), encoding="utf-8")
        logger.info("Scan report saved to %s", report_path)
    except OSError as e:
        logger.warning("Failed to write scan report to %s: %s", report_path, e)
