from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional, Sequence, TextIO

from dotenv import load_dotenv

from .config import Settings, load_settings
from .conversion import TimezoneConversionError
from .engine import ComparisonSession
from .models import AddIntent, CompareIntent, RemoveIntent, TimeFormat
from .parser import parse_command
from .sharing import build_share_query, parse_date
from .suggestions import get_suggestions
from .timezones import TimezoneCatalog

load_dotenv()

logger = logging.getLogger(__name__)

EXIT_WORDS = {"quit", "exit", ":q"}


def _setup_logging(level: str) -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def build_catalog(settings: Settings) -> TimezoneCatalog:
    return TimezoneCatalog(
        search_threshold=settings.search.threshold,
        min_query_length=settings.search.min_query_length,
    )


def build_session(settings: Settings, catalog: TimezoneCatalog, zones: Sequence[str]) -> ComparisonSession:
    return ComparisonSession(
        catalog,
        zones=zones,
        time_format=settings.comparison.default_time_format,
        max_timezones=settings.comparison.max_timezones,
        max_command_length=settings.comparison.max_command_length,
        extraction_threshold=settings.search.extraction_threshold,
    )


# -----------------------------
# Rendering (plain text)
# -----------------------------

def render_timeline(session: ComparisonSession) -> str:
    rows = session.timeline_rows()
    if not rows:
        return "(no timezones)"

    name_width = max(len(f"{r.zone.city} ({r.zone.offset})") for r in rows) + 2
    lines: List[str] = []
    for row in rows:
        marker = "*" if row.zone.is_home else " "
        name = f"{row.zone.city} ({row.zone.offset})"
        cells = []
        for cell in row.cells:
            if cell.is_new_day:
                cells.append(f"{cell.month_label} {cell.day_label}".rjust(6))
            else:
                cells.append(cell.label.rjust(6))
        lines.append(f"{marker}{name.ljust(name_width)}{''.join(cells)}")
    return "\n".join(lines)


def render_displays(session: ComparisonSession) -> str:
    displays = session.displays()
    if not displays:
        return "(no timezones)"
    return "\n".join(
        f"{'*' if d.zone.is_home else ' '}{d.zone.city}, {d.zone.country}: "
        f"{d.formatted_time} {d.formatted_date} ({d.offset_label})"
        for d in displays
    )


# -----------------------------
# Sub-commands
# -----------------------------

def cmd_parse(args: argparse.Namespace, settings: Settings, catalog: TimezoneCatalog) -> int:
    intent = parse_command(args.text, catalog, threshold=settings.search.extraction_threshold)
    if isinstance(intent, (AddIntent, CompareIntent, RemoveIntent)):
        print(f"{intent.kind.value}: {', '.join(intent.zones)}")
    else:
        print(intent.kind.value)
    return 0


def cmd_suggest(args: argparse.Namespace, settings: Settings, catalog: TimezoneCatalog) -> int:
    limit = args.limit or settings.search.suggestion_limit
    for s in get_suggestions(args.prefix, catalog, limit=limit):
        print(f"{s.name}\t{s.zone_id}\t{s.kind.value}")
    return 0


def cmd_timeline(args: argparse.Namespace, settings: Settings, catalog: TimezoneCatalog) -> int:
    zones = [args.zone] + list(args.with_zones or [])
    try:
        session = build_session(settings, catalog, zones)
    except TimezoneConversionError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    session.selected_date = parse_date(args.date)
    if args.format:
        session.time_format = TimeFormat(args.format)

    print(render_timeline(session))
    return 0


def run_shell(session: ComparisonSession, stdin: TextIO, stdout: TextIO) -> None:
    """
    Read commands line by line until EOF or an exit word.
    Besides free-text commands: "home <zone id>", "format 12h|24h", "share", "grid".
    """
    print(render_displays(session), file=stdout)

    for line in stdin:
        text = line.strip()
        if not text:
            continue
        if text.lower() in EXIT_WORDS:
            break

        lowered = text.lower()
        if lowered == "share":
            print(f"?{build_share_query(session.to_share_state())}", file=stdout)
            continue
        if lowered == "grid":
            print(render_timeline(session), file=stdout)
            continue
        if lowered.startswith("home "):
            zone_id = text[5:].strip()
            if not session.set_home(zone_id):
                print(f"{zone_id} is not in the list", file=stdout)
            continue
        if lowered in ("format 12h", "format 24h"):
            session.time_format = TimeFormat(lowered.split()[1])
            continue

        outcome = session.execute(text)
        if outcome.message:
            print(outcome.message, file=stdout)
        if outcome.success:
            print(render_displays(session), file=stdout)


def cmd_shell(args: argparse.Namespace, settings: Settings, catalog: TimezoneCatalog) -> int:
    catalog.prewarm_in_background()
    session = build_session(settings, catalog, settings.comparison.default_timezones)
    run_shell(session, sys.stdin, sys.stdout)
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Timezone comparison tool")
    parser.add_argument(
        "--config",
        default=os.getenv("CONFIG_PATH", "configuration.yaml"),
        help="Path to configuration.yaml",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ERROR); defaults to LOG_LEVEL",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p_parse = sub.add_parser("parse", help="Show how a command is understood")
    p_parse.add_argument("text")
    p_parse.set_defaults(handler=cmd_parse)

    p_suggest = sub.add_parser("suggest", help="Autocomplete a location")
    p_suggest.add_argument("prefix")
    p_suggest.add_argument("--limit", type=int, default=None)
    p_suggest.set_defaults(handler=cmd_suggest)

    p_timeline = sub.add_parser("timeline", help="Print the 24-hour grid for a day")
    p_timeline.add_argument("zone", help="Reference IANA timezone, e.g. America/New_York")
    p_timeline.add_argument("--date", default=None, help="YYYY-MM-DD (default: today)")
    p_timeline.add_argument("--format", choices=[f.value for f in TimeFormat], default=None)
    p_timeline.add_argument("--with", dest="with_zones", nargs="+", metavar="ZONE", default=[])
    p_timeline.set_defaults(handler=cmd_timeline)

    p_shell = sub.add_parser("shell", help="Interactive comparison session")
    p_shell.set_defaults(handler=cmd_shell)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_arg_parser().parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ValueError as e:
        print(f"ERROR: invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    _setup_logging(args.log_level or settings.log_level)
    logger.debug("Running %s (env=%s)", args.command, settings.env)

    catalog = build_catalog(settings)
    sys.exit(args.handler(args, settings, catalog))


if __name__ == "__main__":
    main()
