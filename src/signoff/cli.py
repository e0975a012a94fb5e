"""Command-line interface for signoff."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from rich.console import Console

from .backends.sqlite import SQLiteBackend
from .commands import (
    APPROVE_COMMAND,
    CLEAR_COMMAND,
    REJECT_COMMAND,
    ApprovalCommands,
    RichPrompter,
)
from .config import Settings
from .errors import InvalidArgument, PromptError, StorageError
from .render import ApprovalTableRenderer
from .store import ApprovalStore
from .view import ApprovalView, counts, filtered


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="signoff", add_help=True)
    parser.add_argument("--home", type=Path, help="Storage root (default: $SIGNOFF_HOME or ~/.signoff)")
    parser.add_argument("--profile", help="Profile name (default: $SIGNOFF_PROFILE or 'default')")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List approvals, newest first")
    list_parser.add_argument("--all", action="store_true", help="Include approved and rejected items")
    list_parser.add_argument("--json", action="store_true", help="Output JSON")

    counts_parser = subparsers.add_parser("counts", help="Count approvals by status")
    counts_parser.add_argument("--json", action="store_true", help="Output JSON")

    request_parser = subparsers.add_parser("request", help="Request an approval")
    request_parser.add_argument("title", nargs="?", help="Approval title (prompted when omitted)")
    request_parser.add_argument("--details", help="Optional details")

    approve_parser = subparsers.add_parser("approve", help="Approve a pending request")
    approve_parser.add_argument("approval_id", help="Approval id")

    reject_parser = subparsers.add_parser("reject", help="Reject a pending request")
    reject_parser.add_argument("approval_id", help="Approval id")

    subparsers.add_parser("clear", help="Remove every approval")

    watch_parser = subparsers.add_parser("watch", help="Re-render whenever approvals change")
    watch_parser.add_argument("--all", action="store_true", help="Include approved and rejected items")
    watch_parser.add_argument("--interval", type=float, default=1.0, help="Seconds between polls")
    watch_parser.add_argument(
        "--max-polls",
        type=int,
        default=0,
        help="Stop after this many polls (0 = run until interrupted)",
    )

    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@contextmanager
def _open_store(settings: Settings) -> Iterator[ApprovalStore]:
    with SQLiteBackend(settings.storage_path) as backend:
        with ApprovalStore(backend, key=settings.storage_key) as store:
            yield store


def _cmd_list(store: ApprovalStore, console: Console, *, show_all: bool, json_output: bool) -> int:
    if json_output:
        items = filtered(store.list(), only_pending=not show_all)
        print(json.dumps([item.to_record() for item in items], ensure_ascii=False))
        return 0
    with ApprovalView(store, only_pending=not show_all) as view:
        ApprovalTableRenderer(view, console).render()
    return 0


def _cmd_counts(store: ApprovalStore, *, json_output: bool) -> int:
    tally = counts(store.list())
    if json_output:
        print(json.dumps(tally.model_dump()))
    else:
        print(
            f"pending={tally.pending} approved={tally.approved} "
            f"rejected={tally.rejected} total={tally.total}"
        )
    return 0


def _cmd_request(
    store: ApprovalStore, console: Console, *, title: str | None, details: str | None
) -> int:
    if title is None:
        item = ApprovalCommands(store, RichPrompter(console)).request()
        if item is None:
            return 0
    else:
        item = store.add(title, details)
    print(item.id)
    return 0


def _cmd_resolve(
    store: ApprovalStore, console: Console, command_id: str, approval_id: str
) -> int:
    if store.get(approval_id) is None:
        print(f"no approval with id {approval_id}; nothing changed", file=sys.stderr)
        return 0
    ApprovalCommands(store, RichPrompter(console)).execute(command_id, approval_id)
    return 0


def _cmd_watch(
    store: ApprovalStore,
    console: Console,
    *,
    show_all: bool,
    interval: float,
    max_polls: int,
) -> int:
    if interval <= 0:
        print("--interval must be > 0", file=sys.stderr)
        return 2
    backend = store.backend
    with ApprovalView(store, only_pending=not show_all) as view:
        renderer = ApprovalTableRenderer(view, console)
        renderer.attach()
        renderer.render()
        polls = 0
        try:
            while max_polls <= 0 or polls < max_polls:
                time.sleep(interval)
                if isinstance(backend, SQLiteBackend):
                    backend.poll()
                polls += 1
        except KeyboardInterrupt:
            pass
        finally:
            renderer.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    _configure_logging(args.verbose)
    console = Console()
    try:
        settings = Settings.from_env(home=args.home, profile=args.profile)
        with _open_store(settings) as store:
            if args.command == "list":
                return _cmd_list(store, console, show_all=args.all, json_output=args.json)
            if args.command == "counts":
                return _cmd_counts(store, json_output=args.json)
            if args.command == "request":
                return _cmd_request(store, console, title=args.title, details=args.details)
            if args.command == "approve":
                return _cmd_resolve(store, console, APPROVE_COMMAND, args.approval_id)
            if args.command == "reject":
                return _cmd_resolve(store, console, REJECT_COMMAND, args.approval_id)
            if args.command == "clear":
                ApprovalCommands(store, RichPrompter(console)).execute(CLEAR_COMMAND)
                return 0
            if args.command == "watch":
                return _cmd_watch(
                    store,
                    console,
                    show_all=args.all,
                    interval=args.interval,
                    max_polls=args.max_polls,
                )
    except InvalidArgument as exc:
        print(f"{args.command} failed: {exc}", file=sys.stderr)
        return 2
    except (StorageError, PromptError) as exc:
        print(f"{args.command} failed: {exc}", file=sys.stderr)
        return 1
    print("unknown command", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
