"""
Convert profiler process lifecycle events into a Chrome trace.

Usage:
    proctimeline events.jsonl > trace.json
    proctimeline events.jsonl --render-mode flame -o trace.json
    proctimeline events.jsonl --render-mode command --view
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from proctimeline.converter import ConversionConfig, convert
from proctimeline.logging_config import setup_logging
from proctimeline.models import RenderMode
from proctimeline.reader import EventReadError, load_events

EXIT_OK = 0
EXIT_FAILURE = 1


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with EXIT_FAILURE on usage errors."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="proctimeline",
        description="Render process lifetimes from profiler events as a Chrome trace.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "input",
        type=Path,
        help="Event file (JSON array or JSON Lines)",
    )
    parser.add_argument(
        "--render-mode", "-m",
        default=RenderMode.default().value,
        help="Rendering mode: flat|flame|cascade|command (default: flat)",
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Write the trace here instead of stdout",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=3,
        help="JSON indentation (default: 3)",
    )
    parser.add_argument(
        "--label-rows",
        action="store_true",
        help="Emit process_name metadata naming each row",
    )
    parser.add_argument(
        "--no-sort",
        action="store_true",
        help="Ingest events in file order instead of timestamp order",
    )
    parser.add_argument(
        "--view",
        action="store_true",
        help="Browse the timeline in the terminal instead of writing JSON",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="More logging (-v info, -vv debug)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write logs to this file",
    )
    return parser


def _log_level(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logging(_log_level(args.verbose), args.log_file)

    try:
        events = load_events(args.input)
    except EventReadError as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    config = ConversionConfig(
        render_mode=RenderMode.from_token(args.render_mode),
        sort_events=not args.no_sort,
        label_rows=args.label_rows,
    )
    result = convert(events, config)

    if args.view:
        # Import here to avoid slow startup for plain conversions
        from proctimeline.app import TimelineApp

        TimelineApp(result).run()
        return EXIT_OK

    text = json.dumps(result.document, indent=args.indent)
    if args.output is None:
        sys.stdout.write(text + "\n")
    else:
        try:
            args.output.write_text(text + "\n", encoding="utf-8")
        except OSError as e:
            logger.error("Could not write %s: %s", args.output, e)
            return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
