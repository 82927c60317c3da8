"""log-assert: check that a lager log file contains an expected sequence of entries."""

import logging
import os
import sys
import threading
import time
from argparse import ArgumentParser

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from logassert.config import load_config
from logassert.errors import LogAssertError, MalformedLogError
from logassert.expectations import load_expectations
from logassert.matcher import ContainSequence
from logassert.sources import FileContents

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MISMATCH = 1
EXIT_USAGE = 2


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="log-assert",
        description="Assert that a lager JSON log contains an ordered sequence of entries.",
    )
    parser.add_argument(
        "log",
        help="Log file path, or '-' to read stdin once",
    )
    parser.add_argument(
        "--expect",
        required=True,
        help="YAML file listing the expected entries, in order",
    )
    parser.add_argument(
        "--not",
        dest="negate",
        action="store_true",
        help="Succeed only if the sequence is NOT present",
    )
    parser.add_argument(
        "--config",
        help="YAML config file (strict, max_rendered_entries, schema_path)",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Re-check whenever the log file changes until the sequence appears",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Seconds to keep watching (default: 10)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


class _ChangeHandler(FileSystemEventHandler):
    """Sets an event when the watched file is created or modified."""

    def __init__(self, path: str, changed: threading.Event):
        super().__init__()
        self._path = os.path.abspath(path)
        self._changed = changed

    def on_created(self, event):
        self._notify(event)

    def on_modified(self, event):
        self._notify(event)

    def _notify(self, event):
        if not event.is_directory and os.path.abspath(event.src_path) == self._path:
            self._changed.set()


def _matches_yet(matcher: ContainSequence, actual: FileContents) -> bool:
    # A file still being written may hold only a partial first record.
    try:
        return matcher.match(actual)
    except MalformedLogError as e:
        logger.debug("Log not decodable yet: %s", e)
        return False


def watch_for_sequence(path: str, matcher: ContainSequence, timeout: float, poll_interval: float = 1.0) -> bool:
    """Re-run *matcher* on every change to *path* until it matches or *timeout* expires.

    Also re-checks every *poll_interval* seconds in case a change event is missed.
    """
    actual = FileContents(path)
    changed = threading.Event()
    observer = Observer()
    observer.schedule(_ChangeHandler(path, changed), os.path.dirname(os.path.abspath(path)), recursive=False)
    observer.start()

    deadline = time.monotonic() + timeout
    try:
        while True:
            if os.path.exists(path) and _matches_yet(matcher, actual):
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            changed.wait(min(remaining, poll_interval))
            changed.clear()
    finally:
        observer.stop()
        observer.join(timeout=5)


def run(args) -> int:
    """Execute one assertion and return the process exit code."""
    if args.watch and args.negate:
        print("Error: --watch and --not cannot be used together", file=sys.stderr)
        return EXIT_USAGE
    if args.watch and args.log == "-":
        print("Error: --watch requires a log file path", file=sys.stderr)
        return EXIT_USAGE

    try:
        config = load_config(args.config)
        patterns = load_expectations(args.expect)
        matcher = ContainSequence(*patterns, config=config)

        if args.watch:
            found = watch_for_sequence(args.log, matcher, args.timeout)
        elif args.log == "-":
            found = matcher.match(sys.stdin.buffer)
        else:
            if not os.path.isfile(args.log):
                raise FileNotFoundError(f"File not found: {args.log}")
            found = matcher.match(FileContents(args.log))
    except (LogAssertError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if found != args.negate:
        logger.info("Assertion holds (%d expected entries)", len(patterns))
        return EXIT_OK

    if args.negate:
        print(matcher.negated_failure_message(), file=sys.stderr)
    else:
        print(matcher.failure_message(), file=sys.stderr)
    return EXIT_MISMATCH


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [LOG-ASSERT] %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    return run(args)
