"""Main entry point for saferm."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm
from rich.table import Table

from .config import SafeRmConfig
from .dispatcher import Invocation, Operation, OperationDispatcher, OperationReport, RemoveOptions
from .errors import ConfigError, HoldingAreaUnavailableError
from .store import TrashEntry

COMMANDS: frozenset[str] = frozenset({op.value for op in Operation} | {"config"})


def _days(value: str) -> int:
    """Parse a non-negative day count."""
    try:
        days = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid day count: {value!r}") from None
    if days < 0:
        raise argparse.ArgumentTypeError(f"day count must not be negative: {days}")
    return days


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Returns:
        Parser with one subparser per command.

    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to configuration file",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Report every item handled",
    )

    parser = argparse.ArgumentParser(
        prog="saferm",
        description="Move files and directories to a recoverable trash instead of deleting them",
        epilog="Without a command, PATHs are moved to the trash (same as 'saferm rm PATH...').",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    rm_parser = subparsers.add_parser(
        "rm", parents=[common], help="Move paths to the trash (default)"
    )
    rm_parser.add_argument(
        "paths", nargs="*", metavar="PATH", help="Files or directories to remove"
    )
    rm_parser.add_argument(
        "--recursive",
        "-r",
        action="store_true",
        help="Remove directories and their contents",
    )
    rm_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Ignore nonexistent paths and skipped directories silently",
    )
    rm_parser.add_argument(
        "--dir",
        "-d",
        action="store_true",
        help="Remove empty directories directly",
    )
    rm_parser.add_argument(
        "--permanent",
        "-i",
        action="store_true",
        help="Delete permanently instead of moving to the trash",
    )

    list_parser = subparsers.add_parser("list", parents=[common], help="Show trash contents")
    list_parser.add_argument(
        "--time",
        "-t",
        type=_days,
        default=0,
        metavar="DAYS",
        help="Only items deleted within the last DAYS days (0 = all)",
    )

    recover_parser = subparsers.add_parser(
        "recover", parents=[common], help="Restore items by name"
    )
    recover_parser.add_argument("names", nargs="+", metavar="NAME", help="Trash names to restore")
    recover_parser.add_argument(
        "--rename",
        action="store_true",
        default=None,
        help="Restore under a new name when the original path is taken",
    )

    recover_all_parser = subparsers.add_parser(
        "recover-all", parents=[common], help="Restore all items"
    )
    recover_all_parser.add_argument(
        "--time",
        "-t",
        type=_days,
        default=0,
        metavar="DAYS",
        help="Only items deleted within the last DAYS days (0 = all)",
    )
    recover_all_parser.add_argument(
        "--rename",
        action="store_true",
        default=None,
        help="Restore under a new name when the original path is taken",
    )

    purge_parser = subparsers.add_parser(
        "purge", parents=[common], help="Permanently delete items by name"
    )
    purge_parser.add_argument("names", nargs="+", metavar="NAME", help="Trash names to delete")

    tidy_parser = subparsers.add_parser(
        "tidy", parents=[common], help="Permanently delete old items"
    )
    tidy_parser.add_argument(
        "--time",
        "-t",
        type=_days,
        default=None,
        metavar="DAYS",
        help="Delete items older than DAYS days (default from config, 30)",
    )

    config_parser = subparsers.add_parser(
        "config", parents=[common], help="Configuration management"
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        help="Create default configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        help="Show current configuration",
    )

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Anything that does not start with a command name is treated as
    ``rm`` arguments.

    Args:
        argv: Arguments without the program name. Uses sys.argv if None.

    Returns:
        Parsed arguments.

    """
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or (argv[0] not in COMMANDS and argv[0] not in ("-h", "--help")):
        argv.insert(0, "rm")

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "rm" and not args.paths:
        parser.error("missing operand: no PATH given")

    return args


def setup_logging(config: SafeRmConfig, *, verbose: bool = False) -> logging.Logger:
    """Set up logging for a CLI run.

    Diagnostics go to standard error through Rich; the optional log file
    records from the configured level; -v shows DEBUG on the console.

    Returns:
        Configured ``saferm`` logger.

    """
    logger = logging.getLogger("saferm")
    console_level = logging.DEBUG if verbose else logging.WARNING
    logger.setLevel(min(config.log_level_number, console_level))

    # Clear existing handlers to avoid duplicates when main() runs twice
    if logger.handlers:
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    console_handler.setLevel(console_level)
    logger.addHandler(console_handler)

    if config.log_file is not None:
        try:
            config.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        except OSError as e:
            logger.warning("Cannot open log file %s: %s", config.log_file, e)
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
            )
            logger.addHandler(file_handler)

    return logger


def _age(entry: TrashEntry, now: datetime) -> str:
    days = (now - entry.deleted_datetime).days
    if days <= 0:
        return "today"
    return f"{days}d"


def entries_table(entries: list[TrashEntry], title: str) -> Table:
    """Render trash entries as a table."""
    now = datetime.now()
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Original location", style="green")
    table.add_column("Deleted", style="dim")
    table.add_column("Age", style="dim", justify="right")
    table.add_column("Kind", style="dim")

    for entry in entries:
        table.add_row(
            entry.name,
            str(entry.original_path),
            entry.deleted_datetime.strftime("%Y-%m-%d %H:%M"),
            _age(entry, now),
            entry.kind,
        )

    return table


def confirm_tidy(entries: list[TrashEntry]) -> bool:
    """Ask before tidy deletes anything; anything but an explicit yes cancels."""
    console = Console()
    console.print(entries_table(entries, title=f"{len(entries)} items will be permanently deleted"))
    try:
        return Confirm.ask("Permanently delete these items?", default=False)
    except (EOFError, KeyboardInterrupt):
        return False


def _print_results(console: Console, report: OperationReport, verb: str) -> None:
    for result in report.results:
        if not result.success:
            continue
        if result.destination is not None:
            console.print(f"[green]{verb}: {result.target} -> {result.destination}[/green]")
        else:
            console.print(f"[green]{verb}: {result.target}[/green]")


def cmd_remove(dispatcher: OperationDispatcher, args: argparse.Namespace) -> int:
    """Execute the default remove command.

    Returns:
        Exit code.

    """
    options = RemoveOptions(
        recursive=args.recursive,
        force=args.force,
        dir=args.dir,
        permanent=args.permanent,
    )
    report = dispatcher.dispatch(Invocation(Operation.REMOVE, targets=args.paths, options=options))
    return 0 if report.ok else 1


def cmd_list(dispatcher: OperationDispatcher, args: argparse.Namespace) -> int:
    """Execute list command.

    Returns:
        Exit code.

    """
    console = Console()
    report = dispatcher.dispatch(Invocation(Operation.LIST, days=args.time))

    if not report.entries:
        if args.time:
            console.print("[yellow]No items found[/yellow]")
        else:
            console.print("[green]Trash is empty[/green]")
        return 0

    title = f"Trash ({len(report.entries)})"
    if args.time:
        title += f", deleted within {args.time} days"
    console.print(entries_table(report.entries, title=title))
    return 0


def cmd_recover(dispatcher: OperationDispatcher, args: argparse.Namespace) -> int:
    """Execute recover and recover-all commands.

    Returns:
        Exit code.

    """
    console = Console()
    if args.command == "recover":
        invocation = Invocation(
            Operation.RECOVER, targets=args.names, rename_on_conflict=args.rename
        )
    else:
        invocation = Invocation(
            Operation.RECOVER_ALL, days=args.time, rename_on_conflict=args.rename
        )

    report = dispatcher.dispatch(invocation)
    if not report.entries:
        console.print("[yellow]No items found[/yellow]")
        return 0

    _print_results(console, report, "Restored")
    return 0 if report.ok else 1


def cmd_purge(dispatcher: OperationDispatcher, args: argparse.Namespace) -> int:
    """Execute purge command.

    Returns:
        Exit code.

    """
    console = Console()
    report = dispatcher.dispatch(Invocation(Operation.PURGE, targets=args.names))
    if not report.entries:
        console.print("[yellow]No items found[/yellow]")
        return 0

    _print_results(console, report, "Purged")
    return 0 if report.ok else 1


def cmd_tidy(dispatcher: OperationDispatcher, args: argparse.Namespace) -> int:
    """Execute tidy command.

    Returns:
        Exit code.

    """
    console = Console()
    report = dispatcher.dispatch(Invocation(Operation.TIDY, days=args.time))
    if not report.entries:
        console.print("[green]Nothing to tidy[/green]")
        return 0
    if report.cancelled:
        console.print("[yellow]Cancelled, nothing was deleted[/yellow]")
        return 0

    purged = sum(1 for r in report.results if r.success)
    console.print(f"[green]Purged {purged} of {len(report.entries)} expired items[/green]")
    return 0 if report.ok else 1


def cmd_config(config: SafeRmConfig, args: argparse.Namespace) -> int:
    """Execute config command.

    Args:
        config: saferm configuration.
        args: Parsed arguments.

    Returns:
        Exit code.

    """
    console = Console()

    if args.init:
        config_path = args.config or SafeRmConfig.get_config_path()
        if config_path.exists():
            console.print(f"[yellow]Config already exists: {config_path}[/yellow]")
            return 1
        config.save(config_path)
        console.print(f"[green]Created config: {config_path}[/green]")
        return 0

    if args.show:
        table = Table(title="Current Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Backend", config.backend)
        table.add_row("Trash directory", str(config.trash_dir))
        table.add_row("Conflict style", config.conflict_style)
        table.add_row("Rename on restore", str(config.rename_on_restore))
        table.add_row("Tidy days", str(config.tidy_days))
        table.add_row("Log file", str(config.log_file) if config.log_file else "disabled")
        table.add_row("Log level", config.log_level)

        console.print(table)
        return 0

    console.print("[yellow]Use --init or --show[/yellow]")
    return 1


COMMAND_HANDLERS = {
    "rm": cmd_remove,
    "list": cmd_list,
    "recover": cmd_recover,
    "recover-all": cmd_recover,
    "purge": cmd_purge,
    "tidy": cmd_tidy,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code.

    """
    args = parse_args(argv)

    try:
        config = SafeRmConfig.load(args.config)
    except ConfigError as e:
        Console(stderr=True).print(f"[red]Configuration error: {e}[/red]")
        return 1

    logger = setup_logging(config, verbose=args.verbose)

    if args.command == "config":
        return cmd_config(config, args)

    try:
        dispatcher = OperationDispatcher.from_config(config, confirm=confirm_tidy)
        return COMMAND_HANDLERS[args.command](dispatcher, args)
    except HoldingAreaUnavailableError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
