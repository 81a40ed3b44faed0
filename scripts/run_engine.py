#!/usr/bin/env python3
"""
TagWeave Engine Runner Script.

Watches a directory for template files and renders them as they change.
Requires Python 3.11+.

Usage:
    python scripts/run_engine.py /path/to/site --ext .dnaweb
    python scripts/run_engine.py /path/to/site --once
    python scripts/run_engine.py --list-tags page.dnaweb
"""

import argparse
import sys
import threading
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from engine import (
    Engine,
    EngineError,
    LogMessage,
    LogSeverity,
    ProcessFailed,
    ProcessSucceeded,
)
from engine.events import EngineEvent
from tags.processor import scan
from utils.config import get_settings
from utils.logger import configure_logging, get_logger


logger = get_logger("run_engine")


def print_event(event: EngineEvent) -> None:
    """Print engine events for the terminal user."""
    if isinstance(event, ProcessSucceeded):
        result = event.result
        if result.is_partial:
            print(f"  partial   {result.path}")
        else:
            for output in result.output_paths:
                print(f"  rendered  {result.path} -> {output}")
    elif isinstance(event, ProcessFailed):
        print(f"  FAILED    {event.result.path}: {event.result.error}")
    elif isinstance(event, LogMessage) and event.severity is LogSeverity.WARNING:
        print(f"  warning   {event.title} {event.message}".rstrip())


def list_tags(path: Path) -> int:
    """Print the directives found in a file without expanding them."""
    text = path.read_text(encoding="utf-8")
    count = 0
    for tag in scan(text):
        kind = tag.kind.value if tag.kind else f"unknown({tag.name})"
        print(f"{tag.start:>6}  {kind:<10} {tag.argument}")
        count += 1
    print(f"\n{count} tag(s)")
    return 0


def main() -> None:
    """Main entry point."""
    settings = get_settings().engine

    parser = argparse.ArgumentParser(
        description="Expand include/output/partial directives in template files"
    )
    parser.add_argument(
        "path",
        type=Path,
        nargs="?",
        default=None,
        help="Directory to monitor (defaults to dna.config or the current directory)",
    )
    parser.add_argument(
        "--ext",
        action="append",
        dest="extensions",
        default=None,
        help=f"Extension to watch, repeatable (default: {', '.join(settings.extensions)})",
    )
    parser.add_argument(
        "--output-extension",
        default=settings.output_extension,
        help="Default extension of rendered files",
    )
    parser.add_argument(
        "--delay",
        type=int,
        default=settings.process_delay_ms,
        help="Milliseconds to wait for edits to settle before processing",
    )
    parser.add_argument(
        "--no-write",
        action="store_true",
        help="Expand files without writing outputs",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Process every monitored file once and exit",
    )
    parser.add_argument(
        "--list-tags",
        type=Path,
        metavar="FILE",
        help="List the directives in FILE and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    )

    args = parser.parse_args()
    configure_logging(args.log_level)

    if args.list_tags is not None:
        if not args.list_tags.is_file():
            print(f"Error: File does not exist: {args.list_tags}")
            sys.exit(1)
        sys.exit(list_tags(args.list_tags))

    if args.path is not None and not args.path.is_dir():
        print(f"Error: Path is not a directory: {args.path}")
        sys.exit(1)

    engine_settings = settings.model_copy(
        update={
            "monitor_path": args.path.resolve() if args.path is not None else None,
            "extensions": args.extensions or settings.extensions,
            "output_extension": args.output_extension,
            "process_delay_ms": args.delay,
            "write_outputs": not args.no_write,
        }
    )
    engine = Engine(settings=engine_settings)
    engine.events.subscribe(print_event)

    if args.once:
        results = engine.process_all()
        failed = [r for r in results if not r.success]
        print(f"\nProcessed {len(results)} file(s), {len(failed)} failed")
        sys.exit(1 if failed else 0)

    stop_requested = threading.Event()
    try:
        engine.start()
        print(f"Watching {engine.monitor_path} for {', '.join(engine.extensions)}")
        print("Press Ctrl+C to stop")
        stop_requested.wait()
    except KeyboardInterrupt:
        print("\nStopping")
    except EngineError as e:
        logger.error("engine_start_failed", error=str(e))
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        engine.stop()


if __name__ == "__main__":
    main()
