"""
CoreGuard - Finding alerts and structured logging.

Uses colorama for cross-platform (Linux/Windows) colored console alerts.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from coreguard.core.models import Finding, Severity

logger = logging.getLogger(__name__)

# Lazy init of colorama (once per process)
_colorama_init_done = False

_SEVERITY_ORDER = (Severity.INFO, Severity.WARNING, Severity.CRITICAL)


def _ensure_colorama() -> None:
    global _colorama_init_done
    if not _colorama_init_done:
        import colorama

        colorama.init(autoreset=True)
        _colorama_init_done = True


def colored_alert(message: str, level: str) -> None:
    """
    Print an alert message in color to stderr.

    level: "CRITICAL" (red), "WARNING" (yellow), "INFO" or "OK" (green).
    """
    _ensure_colorama()
    from colorama import Fore

    level_upper = level.upper()
    if level_upper == "CRITICAL":
        prefix = Fore.RED
    elif level_upper == "WARNING":
        prefix = Fore.YELLOW
    else:
        prefix = Fore.GREEN
    print(f"{prefix}{message}", file=sys.stderr)


class AlertManager:
    """
    Receives findings from the scan engine. Writes one JSON line per finding
    to a log file and optionally prints colored alerts to console.
    """

    def __init__(
        self,
        log_path: Optional[Path],
        console_alerts: bool = True,
        min_severity: Severity = Severity.INFO,
    ) -> None:
        self.log_path = Path(log_path) if log_path else None
        self.console_alerts = console_alerts
        self._min_severity = min_severity
        if self.log_path is not None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def _should_log(self, severity: Severity) -> bool:
        return _SEVERITY_ORDER.index(severity) >= _SEVERITY_ORDER.index(self._min_severity)

    def _format_alert(self, finding: Finding) -> dict:
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **finding.to_dict(),
        }

    def emit(self, finding: Finding) -> None:
        """Write one finding as JSON to the log file and optionally to console."""
        if not self._should_log(finding.severity):
            return
        if self.log_path is not None:
            line = json.dumps(self._format_alert(finding)) + "\n"
            try:
                with open(self.log_path, "a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as e:
                logger.exception("Failed to write alert to %s: %s", self.log_path, e)
        if self.console_alerts:
            msg = f"[{finding.severity.value}] {finding.message}: {finding.relative_path} ({finding.observed_size} bytes)"
            colored_alert(msg, finding.severity.value)

    def emit_batch(self, findings: Iterable[Finding]) -> None:
        """Emit multiple findings in order."""
        for finding in findings:
            self.emit(finding)
