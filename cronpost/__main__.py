"""Entry point: python -m cronpost."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.table import Table

from cronpost.config import AppConfig, load_config
from cronpost.cron import (
    CronRunner,
    MinuteTicker,
    ScheduleRegistry,
    ScheduleSpec,
    split_schedule_command,
)
from cronpost.errors import CronPostError
from cronpost.log_context import set_log_context
from cronpost.logging_config import setup_logging
from cronpost.posting import Poster, build_poster
from cronpost.storage import JsonFileStore

logger = logging.getLogger(__name__)

_console = Console()

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_USAGE = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cronpost",
        description="Per-account minute schedules that post a command when they match.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="Show stored schedules for an account")
    p_list.add_argument("account")

    p_add = sub.add_parser("add", help="Store a new schedule")
    p_add.add_argument("account")
    p_add.add_argument("schedule", help='Five fields, e.g. "0 9 * * 1"')
    p_add.add_argument("text", nargs="+", help="Command text to post")

    p_author = sub.add_parser(
        "add-text", help='Store a schedule from "<verb> <sub> <x> m h d M w command..."'
    )
    p_author.add_argument("account")
    p_author.add_argument("text", help="Authoring text, quoted as one argument")

    p_remove = sub.add_parser("remove", help="Delete a schedule by id")
    p_remove.add_argument("account")
    p_remove.add_argument("id", type=int)

    p_run = sub.add_parser("run", help="Evaluate one minute for an account")
    p_run.add_argument("account")
    p_run.add_argument("--at", type=datetime.fromisoformat, default=None, help="ISO timestamp")

    sub.add_parser("serve", help="Evaluate every configured account once per minute")
    return parser


def _registry(config: AppConfig) -> ScheduleRegistry:
    return ScheduleRegistry(JsonFileStore(config.store_file), namespace=config.namespace)


def _cmd_list(config: AppConfig, account: str) -> int:
    entries = _registry(config).list_all(account)
    if not entries:
        _console.print(f"[dim]No schedules for {account}.[/dim]")
        return EXIT_OK

    table = Table(title=f"Schedules for {account}")
    table.add_column("ID", justify="right")
    table.add_column("Schedule")
    table.add_column("Command")
    table.add_column("Status")
    for entry in sorted(entries.values(), key=lambda e: e.id):
        status = "[green]ok[/green]" if entry.schedule.is_parseable() else "[red]dormant[/red]"
        table.add_row(
            str(entry.id),
            entry.schedule.encode_unix_cron_option(),
            entry.command,
            status,
        )
    _console.print(table)
    return EXIT_OK


def _cmd_add(config: AppConfig, account: str, expression: str, text: list[str]) -> int:
    schedule = ScheduleSpec.from_expression(expression)
    if not schedule.is_valid_schedule():
        _console.print(f"[bold red]Invalid schedule:[/bold red] {expression!r} needs five fields")
        return EXIT_USAGE
    entry_id = _registry(config).add(account, schedule, " ".join(text))
    _console.print(f"[green]Added schedule {entry_id}[/green] ({expression})")
    return EXIT_OK


def _cmd_add_text(config: AppConfig, account: str, text: str) -> int:
    schedule, command = split_schedule_command(text)
    if not schedule.is_valid_schedule() or not command:
        _console.print(f"[bold red]Cannot read schedule and command from:[/bold red] {text!r}")
        return EXIT_USAGE
    entry_id = _registry(config).add(account, schedule, command)
    _console.print(
        f"[green]Added schedule {entry_id}[/green] ({schedule.encode_unix_cron_option()})"
    )
    return EXIT_OK


def _cmd_remove(config: AppConfig, account: str, entry_id: int) -> int:
    if _registry(config).remove(account, entry_id):
        _console.print(f"[green]Removed schedule {entry_id}.[/green]")
        return EXIT_OK
    _console.print(f"[yellow]No schedule {entry_id} for {account}.[/yellow]")
    return EXIT_NOT_FOUND


async def _run_once(config: AppConfig, poster: Poster, account: str, now: datetime) -> int:
    runner = CronRunner(_registry(config), poster, account)
    report = await runner.run(now)
    await runner.drain()
    _console.print(
        f"{report.matched} of {report.evaluated} schedule(s) matched at "
        f"{now.strftime('%Y-%m-%d %H:%M')}"
    )
    if report.unparseable:
        _console.print(f"[yellow]{report.unparseable} schedule(s) are unparseable.[/yellow]")
    return EXIT_OK


async def _serve(config: AppConfig, poster: Poster) -> int:
    if not config.accounts:
        _console.print("[bold red]No accounts configured.[/bold red]")
        return EXIT_USAGE
    registry = _registry(config)
    ticker = MinuteTicker([CronRunner(registry, poster, a) for a in config.accounts])
    await ticker.start()
    try:
        await asyncio.Event().wait()
    finally:
        await ticker.stop()
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns the process exit code."""
    args = _build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
    except CronPostError as exc:
        _console.print(f"[bold red]{exc}[/bold red]")
        return EXIT_USAGE
    setup_logging(config.log_level, verbose=args.verbose, log_dir=config.log_path)
    set_log_context(operation="cli")

    try:
        if args.command == "list":
            return _cmd_list(config, args.account)
        if args.command == "add":
            return _cmd_add(config, args.account, args.schedule, args.text)
        if args.command == "add-text":
            return _cmd_add_text(config, args.account, args.text)
        if args.command == "remove":
            return _cmd_remove(config, args.account, args.id)

        poster = build_poster(config.poster)
        if args.command == "run":
            now = (args.at or datetime.now()).replace(second=0, microsecond=0)
            return asyncio.run(_run_once(config, poster, args.account, now))
        with contextlib.suppress(KeyboardInterrupt):
            return asyncio.run(_serve(config, poster))
        return EXIT_OK
    except CronPostError as exc:
        logger.error("%s", exc)  # noqa: TRY400
        _console.print(f"[bold red]{exc}[/bold red]")
        return EXIT_NOT_FOUND


if __name__ == "__main__":
    sys.exit(main())
