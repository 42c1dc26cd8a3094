"""Command line entry point for ttrack."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .config import TrackerSettings, get_settings
from .storage import FileStore, TrackedFileError
from .summary import SummaryAggregator
from .timer import TerminalDisplay, TimerSession, install_signal_handlers


def configure_logging(level: str) -> None:
    """Configure root logging; records go to stderr, away from the live entry line."""

    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def cmd_track(args: argparse.Namespace, settings: TrackerSettings) -> int:
    store = FileStore(settings)
    path = Path(args.paths[0]).expanduser()
    tracked = store.read(path)

    if args.entry is not None:
        TimerSession(tracked, store=store).record(args.entry)
        return 0

    session = TimerSession(tracked, store=store, display=TerminalDisplay())
    restore = install_signal_handlers(session.cancel)
    try:
        session.run()
    finally:
        restore()
    return 0


def cmd_summarize(args: argparse.Namespace, settings: TrackerSettings) -> int:
    aggregator = SummaryAggregator(settings=settings)
    for raw in args.paths:
        aggregator.run(Path(raw).expanduser(), verbosity=args.summarize)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ttrack",
        description="Track time into plain-text files and summarize the results.",
    )
    parser.add_argument("paths", nargs="+", metavar="PATH", help="Tracked file, or files/directories to summarize")
    parser.add_argument("-e", "--entry", default=None, help="Append ENTRY verbatim instead of starting the timer")
    parser.add_argument(
        "-s",
        "--summarize",
        action="count",
        default=0,
        help="Summarize instead of tracking; repeat for more detail (-ss per file, -sss every entry)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)

    if not args.summarize:
        if len(args.paths) != 1:
            parser.error("exactly one PATH is required when tracking")
        if args.entry is not None and ("\n" in args.entry or "\r" in args.entry):
            parser.error("ENTRY must be a single line")

    try:
        if args.summarize:
            exit_code = cmd_summarize(args, settings)
        else:
            exit_code = cmd_track(args, settings)
    except TrackedFileError as exc:
        print(f"ttrack: {exc}", file=sys.stderr)
        raise SystemExit(1)
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
