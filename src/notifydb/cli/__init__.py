"""Command line interface for schema provisioning.

Usage:
    DB_ENV=production notifydb provision
    notifydb status
    notifydb check
    notifydb tables --sql
    notifydb profiles
    notifydb drop log_hits --confirm

Commands:
    provision - Create missing tables in dependency order
    status    - Show which registered tables exist
    check     - Report drift between live columns and the registry
    tables    - List registered tables (optionally with their DDL)
    profiles  - List profiles from db.toml
    drop      - Drop a table (requires --confirm)
"""

import argparse
import asyncio
import logging
import sys

from psycopg import OperationalError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from notifydb.config.loader import load_db_config
from notifydb.exceptions import DdlExecutionError
from notifydb.factory import ProfileNotFoundError, get_active_profile_name, resolve_settings
from notifydb.manager import DatabaseManager
from notifydb.schema.comparator import validate_schema
from notifydb.schema.introspector import SchemaIntrospector
from notifydb.schema.provisioner import ProvisionStatus
from notifydb.schema.registry import PROVISIONING_ORDER, definition_for

console = Console()

_STATUS_STYLE = {
    ProvisionStatus.CREATED: "[bold green]created[/bold green]",
    ProvisionStatus.ALREADY_EXISTS: "[dim]exists[/dim]",
    ProvisionStatus.NOT_REGISTERED: "[yellow]not registered[/yellow]",
    ProvisionStatus.FAILED: "[bold red]failed[/bold red]",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _open_manager(args: argparse.Namespace) -> DatabaseManager | None:
    """Build a manager for the active profile, printing config errors."""
    try:
        return DatabaseManager.from_config(env_prefix=args.env_prefix)
    except (ProfileNotFoundError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return None


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_provision(args: argparse.Namespace) -> int:
    db = _open_manager(args)
    if db is None:
        return 1

    async with db:
        report = await db.ensure_tables_exist()

    table = Table(title="Provisioning", show_header=True, header_style="bold")
    table.add_column("Table")
    table.add_column("Result")
    table.add_column("Error", style="red")
    for result in report.results:
        table.add_row(result.table, _STATUS_STYLE[result.status], result.error or "")
    console.print(table)

    if report.ok:
        console.print("[bold green]v[/bold green] All tables present")
        return 0
    console.print(f"[bold red]x[/bold red] Failed: {', '.join(report.failed)}")
    return 1


async def _async_status(args: argparse.Namespace) -> int:
    db = _open_manager(args)
    if db is None:
        return 1

    table = Table(title="Tables", show_header=True, header_style="bold")
    table.add_column("Table")
    table.add_column("Exists")

    missing = 0
    async with db:
        for name in PROVISIONING_ORDER:
            exists = await db.table_exists(name)
            missing += not exists
            table.add_row(name, "[green]yes[/green]" if exists else "[yellow]no[/yellow]")

    console.print(table)
    return 0 if missing == 0 else 1


async def _async_check(args: argparse.Namespace) -> int:
    try:
        settings = resolve_settings(env_prefix=args.env_prefix)
    except (ProfileNotFoundError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    console.print(
        f"Checking schema for profile: [bold cyan]{settings.profile_name}[/bold cyan]"
    )
    try:
        async with SchemaIntrospector(settings.url) as introspector:
            actual = await introspector.get_column_names(settings.schema_name)
    except OperationalError as e:
        console.print(f"[red]Error: could not connect to database: {e}[/red]")
        return 1

    result = validate_schema(actual)
    if result.valid:
        console.print("[bold green]v[/bold green] Schema is valid")
        if result.extra_tables:
            console.print(
                f"  Unregistered tables: [yellow]{', '.join(result.extra_tables)}[/yellow]"
            )
        return 0

    console.print(result.format_report())
    return 1


async def _async_drop(args: argparse.Namespace) -> int:
    if not args.confirm:
        console.print(
            f"[yellow]Would drop table[/yellow] [bold]{args.table}[/bold]. "
            "[dim]Add[/dim] [cyan]--confirm[/cyan] [dim]to proceed.[/dim]"
        )
        return 0

    db = _open_manager(args)
    if db is None:
        return 1

    try:
        async with db:
            await db.drop_table(args.table, cascade=args.cascade)
    except DdlExecutionError as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1

    console.print(f"[bold green]v[/bold green] Dropped [bold]{args.table}[/bold]")
    return 0


# ============================================================================
# Sync command wrappers
# ============================================================================


def cmd_provision(args: argparse.Namespace) -> int:
    """Create missing tables.  0 if every table exists afterwards."""
    return asyncio.run(_async_provision(args))


def cmd_status(args: argparse.Namespace) -> int:
    """Show which registered tables exist.  0 if all of them do."""
    return asyncio.run(_async_status(args))


def cmd_check(args: argparse.Namespace) -> int:
    """Report schema drift.  0 if no table or column is missing."""
    return asyncio.run(_async_check(args))


def cmd_drop(args: argparse.Namespace) -> int:
    """Drop one table."""
    return asyncio.run(_async_drop(args))


def cmd_tables(args: argparse.Namespace) -> int:
    """List registered tables in provisioning order.

    Reads only the registry -- no database calls.
    """
    if args.sql:
        for name in PROVISIONING_ORDER:
            for statement in definition_for(name).to_sql_statements():
                console.print(f"{statement};", highlight=False)
            console.print()
        return 0

    table = Table(title="Registered Tables", show_header=True, header_style="bold")
    table.add_column("#", style="dim")
    table.add_column("Table")
    table.add_column("Primary key")
    table.add_column("References")

    for position, name in enumerate(PROVISIONING_ORDER, start=1):
        definition = definition_for(name)
        table.add_row(
            str(position),
            name,
            ", ".join(definition.primary_key),
            ", ".join(sorted(definition.references)),
        )

    console.print(table)
    return 0


def cmd_profiles(args: argparse.Namespace) -> int:
    """List profiles from db.toml, marking the active one.

    Reads only local TOML config -- no database calls.
    """
    try:
        config = load_db_config()
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    current = get_active_profile_name(args.env_prefix)

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        table.add_row(marker, name, profile.description)

    console.print(table)
    console.print(f"\nTimezone: {config.timezone}  Schema: {config.schema_name}")
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notifydb",
        description="Schema provisioning for the notification database",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_ENV and APP_DATABASE_URL)"
        ),
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_provision = subparsers.add_parser("provision", help="Create missing tables")
    p_provision.set_defaults(func=cmd_provision)

    p_status = subparsers.add_parser("status", help="Show which tables exist")
    p_status.set_defaults(func=cmd_status)

    p_check = subparsers.add_parser("check", help="Report schema drift")
    p_check.set_defaults(func=cmd_check)

    p_tables = subparsers.add_parser("tables", help="List registered tables")
    p_tables.add_argument("--sql", action="store_true", help="Print CREATE statements")
    p_tables.set_defaults(func=cmd_tables)

    p_profiles = subparsers.add_parser("profiles", help="List profiles from db.toml")
    p_profiles.set_defaults(func=cmd_profiles)

    p_drop = subparsers.add_parser("drop", help="Drop a table")
    p_drop.add_argument("table", help="Table to drop")
    p_drop.add_argument(
        "--cascade",
        action="store_true",
        help="Also drop foreign keys referencing the table",
    )
    p_drop.add_argument("--confirm", action="store_true", help="Actually drop the table")
    p_drop.set_defaults(func=cmd_drop)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
