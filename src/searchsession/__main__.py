"""searchsession command-line front end.

Examples:
  python -m searchsession groups            List groups (active one marked)
  python -m searchsession search "query"    Search in the active group
  python -m searchsession pending           Show searches still in flight
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.table import Table

from searchsession.api.client import SearchAPIError
from searchsession.config import get_settings
from searchsession.logging_setup import setup_logging
from searchsession.session.coordinator import SessionCoordinator, get_session_coordinator
from searchsession.session.models import ActiveSearch

logger = logging.getLogger(__name__)
console = Console()


def _print_searches(searches: list[ActiveSearch], title: str) -> None:
    table = Table(title=title)
    table.add_column("ID")
    table.add_column("Status")
    table.add_column("Group")
    table.add_column("Query")
    for s in searches:
        table.add_row(s.id, s.status.value, s.group_id, s.query)
    console.print(table)


async def _run(args: argparse.Namespace, coordinator: SessionCoordinator) -> int:
    cmd = args.command

    if cmd == "groups":
        groups = await coordinator.refresh_groups()
        active = coordinator.groups.active_group_id
        table = Table(title="Conversation groups")
        table.add_column("")
        table.add_column("ID")
        table.add_column("Name")
        table.add_column("Created")
        for g in groups:
            table.add_row("*" if g.id == active else "", g.id, g.name, g.created_at)
        console.print(table)
    elif cmd == "new":
        console.print(await coordinator.create_new_group())
    elif cmd == "use":
        coordinator.select_group(args.group_id)
    elif cmd == "delete":
        if not await coordinator.delete_group(args.group_id):
            console.print(f"[red]Server refused to delete {args.group_id}[/red]")
            return 1
    elif cmd == "search":
        record = await coordinator.start_search(args.query, urls=args.url, model_id=args.model)
        final = await coordinator.wait_for_search(record.id)
        if final is None:
            return 1
        if final.error:
            console.print(final.error, style="red", markup=False)
            return 1
        console.print(final.partial_results["response"]["message"], markup=False)
        for source in final.partial_results["response"].get("sources") or []:
            console.print(f"  - {source['metadata']['url']}", markup=False)
    elif cmd == "history":
        history = await coordinator.list_searches(args.group_id)
        for turn in history.searches:
            console.print(f"> {turn.query}", style="bold", markup=False)
            console.print(turn.response.message, markup=False)
    elif cmd == "pending":
        _print_searches(coordinator.get_pending_searches(), "Pending searches")
    elif cmd == "clear-completed":
        console.print(f"Removed {coordinator.clear_completed_searches()} searches")
    return 0


async def _main(args: argparse.Namespace) -> int:
    coordinator = get_session_coordinator()
    try:
        return await _run(args, coordinator)
    except SearchAPIError as e:
        logger.error("%s", e)
        return 1
    finally:
        await coordinator.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="searchsession",
        description="Conversation groups and searches against the hosted search API",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default from settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("groups", help="List conversation groups")
    sub.add_parser("new", help="Create a group and make it active")
    use = sub.add_parser("use", help="Make a group active")
    use.add_argument("group_id")
    delete = sub.add_parser("delete", help="Delete a group")
    delete.add_argument("group_id")

    search = sub.add_parser("search", help="Search in the active group")
    search.add_argument("query")
    search.add_argument("--url", action="append", default=None, help="Restrict to URL")
    search.add_argument("--model", default=None, help="Model id")

    history = sub.add_parser("history", help="Show prior turns")
    history.add_argument("--group-id", default=None)

    sub.add_parser("pending", help="List searches still in flight")
    sub.add_parser("clear-completed", help="Purge completed and failed searches")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level or get_settings().log_level)
    return asyncio.run(_main(args))


if __name__ == "__main__":
    sys.exit(main())
