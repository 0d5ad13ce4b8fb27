#!/usr/bin/env python3
"""Command-line interface for the migration engine.

Commands:
- execute: run a registered migration
- list: list registered migrations, optionally with their steps
- history: show runs recorded by the execution tracker

Usage:
    migration --registry myproject.migrations:build_registry list --with-tasks
    migration execute users_sync --yes
    migration history --migration users_sync
"""

import argparse
import sys
from typing import List, Optional, Sequence

from migration import config
from migration.exceptions import ConfigurationError
from migration.logging_config import create_logger
from migration.orchestrator import Orchestrator
from migration.progress import CompositeProgressReporter, LoggingProgressReporter
from migration.registry import MigrationRegistry, load_registry
from migration.tracking import ExecutionTracker
from migration.utils import describe

logger = create_logger(__name__, log_dir=config.LOG_DIR)


def resolve_registry(path: Optional[str]) -> MigrationRegistry:
    """Load the registry from ``path`` or the MIGRATION_REGISTRY setting."""
    path = path or config.MIGRATION_REGISTRY
    if not path:
        raise ConfigurationError(
            "No registry configured: pass --registry or set MIGRATION_REGISTRY"
        )
    return load_registry(path)


def confirm(question: str) -> bool:
    """Ask a yes/no question on the terminal, defaulting to no."""
    try:
        response = input(f"{question} (yes/no) [no]: ")
    except EOFError:
        return False
    return response.strip().lower() in ("y", "yes")


def print_table(items: Sequence[object], header: str) -> None:
    """Print a one-column table of component names."""
    names = [describe(item) for item in items]
    width = max([len(header)] + [len(name) for name in names])
    border = "-" * (width + 2)

    print(f"  +{border}+")
    print(f"  | {header.ljust(width)} |")
    print(f"  +{border}+")
    for name in names:
        print(f"  | {name.ljust(width)} |")
    print(f"  +{border}+")


def execute_migration(
    registry: MigrationRegistry,
    migration_name: str,
    interactive: bool = True,
    track: bool = False,
) -> int:
    """Run a migration and return the process exit code."""
    migration = registry.get(migration_name)
    if migration is None:
        logger.error(f'No migration registered with the name "{migration_name}".')
        return 1

    if interactive:
        if not confirm(f'Confirm execution of the "{migration_name}" migration ?'):
            logger.error("Aborting.")
            return 1

    reporter = LoggingProgressReporter(logger)
    tracker = None
    if track:
        tracker = ExecutionTracker(config.TRACKING_DB_PATH)
        reporter = CompositeProgressReporter([reporter, tracker])

    try:
        Orchestrator(registry, reporter=reporter).execute(migration, migration_name)
        return 0
    except KeyboardInterrupt:
        logger.error("Interrupted: the migration is partially applied.")
        return 130
    except Exception:
        # Already reported with the failing step
        return 1
    finally:
        if tracker is not None:
            tracker.disconnect()


def list_migrations(
    registry: MigrationRegistry,
    with_migrators: bool = False,
    with_tasks: bool = False,
) -> int:
    """Print every registered migration."""
    migrations = registry.get_all()
    print(f"Registered migrations: {len(migrations)}")

    for name, migration in migrations.items():
        print(name)

        if with_tasks:
            print_table(migration.before_tasks, "Before Task")
        if with_migrators:
            print_table(migration.migrators, "Migrator Name")
        if with_tasks:
            print_table(migration.after_tasks, "After Task")

    print()
    return 0


def show_history(migration_name: Optional[str] = None, limit: int = 20) -> int:
    """Print runs recorded in the tracking database."""
    tracker = ExecutionTracker(config.TRACKING_DB_PATH)
    try:
        runs = tracker.get_run_history(migration_name, limit=limit)
    finally:
        tracker.disconnect()

    if not runs:
        logger.info("No recorded runs found")
        return 0

    for run in runs:
        print(f"Run ID: {run['run_id']}")
        print(f"  Migration: {run['migration_name']}")
        print(f"  Status: {run['status']}")
        print(f"  Started: {run['start_time']}")
        print(f"  Duration: {run['duration_seconds'] or 0:.2f}s")
        print(f"  Items pushed: {run['items_pushed'] or 0}")
        if run["failed_step"]:
            print(f"  Failed step: {run['failed_step']}")
            print(f"  Error: {run['error_message']}")
        print()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="migration",
        description="Execute and inspect registered data migrations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List migrations with their migrators and tasks
  %(prog)s --registry myproject.migrations:build_registry list -m -t

  # Execute a migration without confirmation
  %(prog)s execute users_sync --yes

  # Show the last recorded runs
  %(prog)s history --limit 5
        """,
    )
    parser.add_argument(
        "--registry",
        help="Registry factory as 'package.module:callable' (default: MIGRATION_REGISTRY)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    execute_parser = subparsers.add_parser("execute", help="Execute a migration")
    execute_parser.add_argument("migration", help="The name of the migration")
    execute_parser.add_argument(
        "--yes", "-y", "--no-interaction",
        dest="yes",
        action="store_true",
        help="Skip the confirmation prompt",
    )
    execute_parser.add_argument(
        "--track",
        action="store_true",
        default=config.TRACKING_ENABLED,
        help="Record the run in the tracking database",
    )

    list_parser = subparsers.add_parser(
        "list", help="List all registered migrations with additional information"
    )
    list_parser.add_argument(
        "--with-migrators", "-m",
        action="store_true",
        help="List the migrators associated with each migration",
    )
    list_parser.add_argument(
        "--with-tasks", "-t",
        action="store_true",
        help="List the before and after tasks associated with each migration",
    )

    history_parser = subparsers.add_parser("history", help="Show recorded migration runs")
    history_parser.add_argument("--migration", help="Only show runs of this migration")
    history_parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Maximum number of runs (default: 20)",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config.validate_config()

        if args.command == "history":
            return show_history(args.migration, args.limit)

        registry = resolve_registry(args.registry)

        if args.command == "execute":
            interactive = not args.yes and sys.stdin.isatty()
            return execute_migration(registry, args.migration, interactive, args.track)

        if args.command == "list":
            return list_migrations(registry, args.with_migrators, args.with_tasks)

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
