#!/usr/bin/env python3
"""
CoreGuard - CLI entry point.

Exposed as the 'coreguard' console command via pyproject.toml.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any


def setup_logging(verbose: bool = False) -> None:
    """Configure logging to stderr (no print-based logging)."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def get_config(args: argparse.Namespace) -> dict:
    """Load config from file; config path may be overridden by args."""
    from coreguard.core.config_loader import load_config

    config_path = Path(args.config)
    if not config_path.is_absolute():
        config_path = Path.cwd() / config_path
    config_path = config_path.resolve()
    project_root = Path(args.project_root).resolve() if args.project_root else None
    return load_config(config_path, project_root)


def _print_envelope(envelope: dict[str, Any]) -> None:
    print(json.dumps(envelope, indent=2, default=str))


def _exit_code(envelope: dict[str, Any]) -> int:
    return 0 if envelope.get("status") == "success" else 1


def _log_envelope(envelope: dict[str, Any]) -> None:
    log = logging.getLogger(__name__)
    payload = envelope.get("payload") or {}
    for line in payload.get("logs", envelope.get("logs", [])):
        log.info("%s", line)
    if envelope.get("status") != "success":
        log.error("%s", envelope.get("message"))


def cmd_update_manifest(service, args: argparse.Namespace) -> int:
    """Download (or reuse) the core files list for the configured release."""
    envelope = service.trigger_manifest_refresh(force=args.force)
    if args.json:
        _print_envelope(envelope)
    else:
        _log_envelope(envelope)
    return _exit_code(envelope)


def cmd_scan(service, config: dict, args: argparse.Namespace) -> int:
    """Run a full core scan and report findings."""
    from rich.console import Console

    from coreguard.core.report import write_scan_report
    from coreguard.core.rich_view import print_scan

    if not service.has_manifest():
        logging.getLogger(__name__).info(
            "No cached core files list for %s; downloading it first.", service.release_id
        )
    envelope = service.trigger_full_scan(args.root)
    if args.json:
        _print_envelope(envelope)
    else:
        _log_envelope(envelope)
        if service.last_run is not None and envelope["status"] == "success":
            print_scan(Console(), service.last_run, service.release_id)
    if args.report and service.last_run is not None and envelope["status"] == "success":
        write_scan_report(config["report_path"], service.last_run, service.release_id, Path(args.root or service.root_dir))
    return _exit_code(envelope)


def cmd_check(service, args: argparse.Namespace) -> int:
    """Re-check a single file."""
    envelope = service.trigger_check(args.path)
    _print_envelope(envelope)
    return _exit_code(envelope)


def cmd_diff(service, args: argparse.Namespace) -> int:
    """Compare a local file with the upstream release copy."""
    if args.format == "rich":
        from rich.console import Console

        from coreguard.core.errors import CoreGuardError

        try:
            result = service.compare_file(args.path)
        except CoreGuardError as e:
            logging.getLogger(__name__).error("%s", e)
            return 1
        Console().print(service.renderer.render_rich(result))
        return 0
    envelope = service.trigger_diff(args.path)
    if envelope["status"] != "success":
        _log_envelope(envelope)
        return 1
    sys.stdout.write(envelope["payload"][args.format])
    return 0


def cmd_plan(service, args: argparse.Namespace) -> int:
    """Run the full scan plan (manifest update, then core scan)."""
    from coreguard.core.plan import CoreScanner, ScanCoordinator

    coordinator = ScanCoordinator(service, [CoreScanner(service.release_id)])
    envelope = coordinator.run_plan()
    if args.json:
        _print_envelope(envelope)
    else:
        _log_envelope(envelope)
    return _exit_code(envelope)


def _add_common_args(parser: argparse.ArgumentParser, default_config: str) -> None:
    """Add --config and --json so they work after the subcommand too."""
    parser.add_argument(
        "--config",
        type=str,
        default=default_config,
        help="Path to config.yaml (default: package config; use CWD-relative or absolute)",
    )
    parser.add_argument(
        "--project-root",
        type=str,
        default=None,
        dest="project_root",
        help="Base directory for relative paths in the config (default: config file directory)",
    )
    parser.add_argument("--json", action="store_true", help="Print the result envelope as JSON")


def main(argv=None) -> int:
    """CLI logic."""
    _default_config = Path(__file__).resolve().parent / "config" / "config.yaml"
    _default_config_str = str(_default_config)
    parser = argparse.ArgumentParser(
        prog="coreguard",
        description="Verify a release installation against its expected file sizes.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_update = sub.add_parser("update-manifest", help="Download the core files list for the configured release")
    _add_common_args(p_update, _default_config_str)
    p_update.add_argument("--force", action="store_true", help="Rebuild even if a cached list exists")

    p_scan = sub.add_parser("scan", help="Scan the installation for unexpected and modified files")
    _add_common_args(p_scan, _default_config_str)
    p_scan.add_argument("--root", type=str, default=None, help="Installation root (overrides config)")
    p_scan.add_argument("--report", action="store_true", help="Write a text summary next to the findings log")

    p_check = sub.add_parser("check", help="Check a single file")
    _add_common_args(p_check, _default_config_str)
    p_check.add_argument("path", help="Path relative to the installation root")

    p_diff = sub.add_parser("diff", help="Diff a file against the upstream release copy")
    _add_common_args(p_diff, _default_config_str)
    p_diff.add_argument("path", help="Path relative to the installation root")
    p_diff.add_argument("--format", choices=("html", "text", "rich"), default="text")

    p_plan = sub.add_parser("plan", help="Run every scan step in order")
    _add_common_args(p_plan, _default_config_str)

    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose)

    from coreguard.core.errors import ConfigError
    from coreguard.core.service import build_service

    try:
        config = get_config(args)
        service = build_service(config)
    except (FileNotFoundError, ConfigError) as e:
        logging.getLogger(__name__).error("%s", e)
        return 1

    if args.command == "update-manifest":
        return cmd_update_manifest(service, args)
    if args.command == "scan":
        return cmd_scan(service, config, args)
    if args.command == "check":
        return cmd_check(service, args)
    if args.command == "diff":
        return cmd_diff(service, args)
    if args.command == "plan":
        return cmd_plan(service, args)
    parser.print_help()
    return 0


def cli() -> None:
    """Entry point for the coreguard console command."""
    sys.exit(main())
