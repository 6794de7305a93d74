"""Command-line interface: lay out a JSON message stream and print it.

WHY: Users need a quick way to see how a transcript lays out with a given
indent, merge setting or measurement unit without embedding the library
in a chat client. The CLI replays a message stream through a
TranscriptView exactly as a live client would, one insertion at a time.

HOW: argparse collects the input path and layout options, LayoutConfig
builds a validated config, each message is inserted (triggering layout),
optional --nudge and --refill steps run afterwards, and the rendered
transcript goes to stdout or --output. Status messages go to stderr.

RULES:
- Positional argument: JSON file path, or "-" for stdin
- Exit codes: 0 = success, 1 = error
- Status output goes to stderr (not stdout)
- --nudge may be repeated; each value is applied in order
- --verbose enables DEBUG logging
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from chatwrap import __version__
from chatwrap.config import (
    DEFAULT_WINDOW_WIDTH,
    INDICATOR_MODES,
    MEASUREMENT_UNITS,
    LayoutConfig,
)
from chatwrap.core.errors import ChatWrapError
from chatwrap.core.view import TranscriptView
from chatwrap.loader import load_messages, parse_messages
from chatwrap.render import STYLE_WRAP, STYLES, render_transcript


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chatwrap",
        description="Lay out a chat transcript with hanging indents.",
    )
    parser.add_argument("input", help="JSON message stream, or '-' for stdin")
    parser.add_argument("-o", "--output", help="Write the rendered transcript here")
    parser.add_argument("--width", type=int, default=DEFAULT_WINDOW_WIDTH, help="Window width in columns")
    parser.add_argument("--indent", type=int, default=None, help="Indent baseline column")
    parser.add_argument("--merge-indicator", choices=INDICATOR_MODES, default=None)
    parser.add_argument("--unit", choices=MEASUREMENT_UNITS, default=None)
    parser.add_argument("--max-lull", type=float, default=None, help="Merge window in seconds")
    parser.add_argument("--no-merge", action="store_true", help="Never merge repeated senders")
    parser.add_argument("--casemapping", choices=("unicode", "rfc1459"), default=None)
    parser.add_argument("--nudge", type=int, action="append", default=[], help="Nudge the indent (repeatable)")
    parser.add_argument("--refill", action="store_true", help="Rejigger the whole transcript before rendering")
    parser.add_argument("--repair", action="store_true", help="Repair stale merges while refilling")
    parser.add_argument("--style", choices=STYLES, default=STYLE_WRAP)
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    return parser


def run(args: argparse.Namespace) -> str:
    """Execute the CLI pipeline and return the rendered transcript."""
    config = LayoutConfig.from_env(
        indent_column=args.indent,
        merge_indicator=args.merge_indicator,
        unit=args.unit,
        max_lull=args.max_lull,
        casemapping=args.casemapping,
        merge=False if args.no_merge else None,
    )

    if args.input == "-":
        messages = parse_messages(sys.stdin.read())
    else:
        path = Path(args.input)
        if not path.is_file():
            raise ValueError("Input file not found: {}".format(path))
        messages = load_messages(path)

    view = TranscriptView(config)
    for message in messages:
        view.insert(message)
    _status("Laid out {} messages".format(len(messages)))

    for delta in args.nudge:
        result = view.nudge(delta)
        _status("Nudged by {} (indent {}, margin {})".format(
            result.delta, result.indent_width, result.margin_width,
        ))

    if args.refill or args.repair:
        report = view.refill_range(repair=args.repair)
        _status("Refilled {} messages ({} skipped)".format(report.processed, report.skipped))

    return render_transcript(view, width=args.width, style=args.style)


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        output = run(args)
    except (ValueError, ChatWrapError) as exc:
        _status("Error: {}".format(exc))
        sys.exit(1)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        _status("Wrote {}".format(args.output))
    else:
        sys.stdout.write(output)
