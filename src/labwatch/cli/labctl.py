#!/usr/bin/env python3
"""
labctl - Labwatch operational CLI

A lightweight CLI for day-2 operations:
- Run the API server (labctl serve)
- Mark silent devices offline (labctl sweep)
- Print fleet statistics (labctl stats)
- Version info (labctl version)
"""

import argparse
import json
import logging
import sys

from labwatch import __version__
from labwatch.core.config import get_config
from labwatch.inventory.service import InventoryService


class Colors:
    """ANSI color codes for terminal output."""

    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    RESET = "\033[0m"
    BOLD = "\033[1m"


def colorize(text: str, color: str) -> str:
    """Colorize text if stdout is a TTY."""
    if sys.stdout.isatty():
        return f"{color}{text}{Colors.RESET}"
    return text


def setup_logging(log_level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _service(args) -> InventoryService:
    config = get_config()
    if args.db:
        config.database.path = args.db
    return InventoryService.from_config(config)


def cmd_serve(args) -> int:
    """Run the HTTP API server."""
    from labwatch.ui.http_server import main as serve

    config = get_config()
    if args.db:
        config.database.path = args.db
    if args.port:
        config.api.port = args.port
    serve()
    return 0


def cmd_sweep(args) -> int:
    """
    Mark active devices that stopped reporting as offline.

    Returns:
        Exit code (always 0)
    """
    demoted = _service(args).sweep()
    if demoted:
        print(colorize(f"Marked {len(demoted)} device(s) offline:", Colors.YELLOW))
        for hostname in demoted:
            print(f"  {hostname}")
    else:
        print(colorize("No stale devices", Colors.GREEN))
    return 0


def cmd_stats(args) -> int:
    """
    Print fleet statistics.

    Returns:
        Exit code (always 0)
    """
    stats = _service(args).get_stats()

    if args.json:
        print(json.dumps(stats.model_dump(mode="json"), indent=2))
        return 0

    print(colorize("\nLabwatch fleet", Colors.BOLD))
    print(colorize("=" * 60, Colors.BOLD))
    print(f"Total:        {stats.total_pcs}")
    print(f"Active:       {colorize(str(stats.active_pcs), Colors.GREEN)}")
    print(f"Maintenance:  {colorize(str(stats.maintenance_pcs), Colors.YELLOW)}")
    print(f"Offline:      {colorize(str(stats.offline_pcs), Colors.RED)}")

    if stats.os_breakdown:
        print("\nOperating systems:")
        for entry in stats.os_breakdown:
            print(f"  {entry.name:<30} {entry.count}")

    if stats.recent_changes:
        print("\nRecent changes:")
        for change in stats.recent_changes:
            color = Colors.RED if change["severity"] == "critical" else Colors.YELLOW
            label = colorize(f"[{change['severity'].upper()}]", color)
            print(f"  {label} {change['sub_message']}: {change['message']}")
    print()
    return 0


def cmd_version(args) -> int:
    """
    Print version information.

    Returns:
        Exit code (always 0)
    """
    print(f"labctl version {__version__}")
    print("Labwatch - lab computer inventory and hardware change tracking")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for labctl."""
    parser = argparse.ArgumentParser(
        description="Labwatch operational CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  labctl serve --port 8080           # Run the API server
  labctl sweep                       # Mark silent devices offline
  labctl stats --json                # Fleet statistics as JSON
  labctl version                     # Show version information

Environment variables:
  LABWATCH_DB_PATH                   # Inventory database (default: /data/labwatch.db)
  LABWATCH_STALE_AFTER_HOURS         # Offline threshold (default: 24)
  LOG_LEVEL                          # Logging level (default: INFO)
        """
    )
    parser.add_argument("--db", help="Path to the inventory database (overrides LABWATCH_DB_PATH)")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API server")
    serve_parser.add_argument("--port", type=int, help="Port to bind (overrides API_PORT)")

    subparsers.add_parser("sweep", help="Mark devices offline after the staleness window")

    stats_parser = subparsers.add_parser("stats", help="Print fleet statistics")
    stats_parser.add_argument("--json", action="store_true", help="Print raw JSON")

    subparsers.add_parser("version", help="Show version information")

    return parser


def main(argv=None):
    """Main entry point for labctl CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(get_config().log_level)

    if args.command == "serve":
        return cmd_serve(args)
    elif args.command == "sweep":
        return cmd_sweep(args)
    elif args.command == "stats":
        return cmd_stats(args)
    elif args.command == "version":
        return cmd_version(args)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
