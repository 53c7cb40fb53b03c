"""CLI entry point and argument parsing"""

import argparse
import asyncio
import logging
import sys

import settings
from codex_accounts import CotateError
from cli.commands import AccountCommands
from utils.debug_console import create_console, setup_debug_logger

__version__ = "0.1.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cotate",
        description="Manage multiple Codex CLI accounts and their rate limits",
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", "-d", action="store_true", help=f"Write debug log to {settings.DEBUG_LOG_FILE}")

    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True

    subparsers.add_parser("save", help="Save the current auth.json as an account")
    subparsers.add_parser("load", help="Switch auth.json to a saved account")
    subparsers.add_parser("list", aliases=["show", "ls"], help="List saved accounts with rate limits")
    subparsers.add_parser("delete", help="Delete a saved account")
    subparsers.add_parser("delete-all", help="Delete all saved accounts")

    note = subparsers.add_parser("note", help="Add or edit the note for an account")
    note.add_argument("email", nargs="?", default=None, help="Account email (prompted if omitted)")
    note.add_argument("-d", "--delete", action="store_true", help="Delete the note for the account")

    return parser


def configure_logging(debug: bool):
    """Route library logging to stderr, or to the debug log file with --debug"""
    if debug:
        return setup_debug_logger(settings.DEBUG_LOG_FILE)

    level = getattr(logging, str(settings.LOG_LEVEL).upper(), logging.ERROR)
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    return None


def run_command(commands: AccountCommands, args: argparse.Namespace) -> int:
    """Dispatch a parsed command line to its handler"""
    command = args.command
    if command == "save":
        return asyncio.run(commands.save())
    if command == "load":
        return asyncio.run(commands.load())
    if command in ("list", "show", "ls"):
        return asyncio.run(commands.list_accounts())
    if command == "delete":
        return commands.delete()
    if command == "delete-all":
        return commands.delete_all()
    if command == "note":
        return commands.note(args.email, delete=args.delete)
    raise ValueError(f"Unknown command: {command}")


def main(argv=None):
    """Entry point for the CLI"""
    parser = build_parser()
    args = parser.parse_args(argv)

    debug_logger = configure_logging(args.debug)
    console = create_console(debug_enabled=args.debug, debug_logger=debug_logger)
    if debug_logger:
        debug_logger.debug(f"[CLI] ===== cotate {args.command} =====")

    commands = AccountCommands(console=console)

    try:
        exit_code = run_command(commands, args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        exit_code = 130
    except CotateError as e:
        console.print(f"[red]Error:[/red] {e}")
        if args.debug:
            logging.getLogger(__name__).debug("Command failed", exc_info=True)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
