"""Command-line interface for WHOOP health data.

Usage: whoop <command> [options]

Commands:
  auth login|logout|status|refresh   Manage authentication
  access revoke                      Revoke this app's access
  mapping <activityV1Id>             Look up a v2 id from a v1 activity id
  sleep|recovery|workout|cycle       Collection queries
  profile | body                     Single resources
  fetch                              Combined fetch (all kinds unless flags given)
  summary                            One-line health snapshot
  trends                             7/14/30 day trends
  insights                           Rule-based recommendations
"""

import argparse
import json
import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional

from . import __version__
from .analysis import TREND_DAYS, compute_trends, generate_insights
from .client import ResourceKind, WhoopClient
from .config import Config
from .core import days_ago, get_client, now_iso, parse_date, parse_datetime, whoop_day
from .errors import ValidationError, WhoopError
from .format import (
    format_insights,
    format_pretty,
    format_summary,
    format_summary_color,
    format_trends,
    to_json,
)
from .models import CombinedOutput
from .oauth import login

COLLECTION_COMMANDS = {
    "sleep": ("Get sleep data", True, True),
    "recovery": ("Get recovery data", False, True),
    "workout": ("Get workout data", True, False),
    "cycle": ("Get cycle data", True, False),
}


# =============================================================================
# Argument Validation
# =============================================================================

def _is_ascii_int(value: str) -> bool:
    # str.isdigit also accepts digits int() rejects, like "²"
    return value.isascii() and value.isdigit()


def parse_limit(value: str) -> int:
    if not _is_ascii_int(value) or not 1 <= int(value) <= 25:
        raise ValidationError("Limit must be an integer between 1 and 25")
    return int(value)


def parse_positive_int(value: str, field: str) -> int:
    if not _is_ascii_int(value) or int(value) <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return int(value)


def output(data: CombinedOutput, pretty: bool) -> None:
    print(format_pretty(data) if pretty else to_json(data))


# =============================================================================
# Commands
# =============================================================================

def cmd_auth(args, config: Config) -> None:
    client = get_client(config)
    tokens = client.tokens

    if args.action == "login":
        login(tokens, tokens.oauth)
        print("Authentication successful")
    elif args.action == "logout":
        tokens.logout()
        print("Logged out")
    elif args.action == "status":
        print(json.dumps(tokens.status().model_dump(exclude_none=True), indent=2))
    elif args.action == "refresh":
        credential = tokens.refresh()
        print(json.dumps({"refreshed": True, "expires_at": credential.expires_at}, indent=2))
    else:
        raise ValidationError("Unknown auth action. Use: login, logout, status, or refresh")


def cmd_access(args, config: Config) -> None:
    if args.action != "revoke":
        raise ValidationError("Unknown access action. Use: revoke")
    print(json.dumps(get_client(config).revoke_access(), indent=2))


def cmd_mapping(args, config: Config) -> None:
    activity_id = parse_positive_int(args.activity_v1_id, "activityV1Id")
    print(to_json(get_client(config).get_activity_mapping(activity_id)))


def _resolve_by_id(client: WhoopClient, kind: str, args, day: str) -> Optional[CombinedOutput]:
    """Single-record lookups via --id or --cycle-id, wrapped like a collection result."""
    record_id = getattr(args, "id", None)
    cycle_id = getattr(args, "cycle_id", None)

    if record_id and cycle_id:
        raise ValidationError("Use either --id or --cycle-id, not both")

    record = None
    if record_id:
        if kind == "sleep":
            record = client.get_sleep_by_id(record_id)
        elif kind == "workout":
            record = client.get_workout_by_id(record_id)
        elif kind == "cycle":
            record = client.get_cycle_by_id(parse_positive_int(record_id, "cycle_id"))
    elif cycle_id:
        parsed = parse_positive_int(cycle_id, "cycle_id")
        if kind == "sleep":
            record = client.get_sleep_for_cycle(parsed)
        elif kind == "recovery":
            record = client.get_recovery_for_cycle(parsed)

    if record is None:
        return None

    result = CombinedOutput(date=day, fetched_at=now_iso())
    setattr(result, kind, [record])
    return result


def _fetch_options(args) -> dict:
    if args.start:
        parse_datetime(args.start, "--start datetime")
    if args.end:
        parse_datetime(args.end, "--end datetime")
    return {
        "limit": parse_limit(args.limit),
        "fetch_all": args.all,
        "start": args.start,
        "end": args.end,
        "cursor": args.next_token,
    }


def cmd_collection(args, config: Config) -> None:
    day = parse_date(args.date) if args.date else whoop_day(cutoff_hour=config.day.cutoff_hour)
    options = _fetch_options(args)
    client = get_client(config)

    result = _resolve_by_id(client, args.command, args, day.isoformat())
    if result is None:
        result = client.fetch_data([ResourceKind(args.command)], day, **options)
    output(result, args.pretty)


def cmd_single(args, config: Config) -> None:
    day = whoop_day(cutoff_hour=config.day.cutoff_hour)
    result = get_client(config).fetch_data([ResourceKind(args.command)], day)
    output(result, args.pretty)


def cmd_fetch(args, config: Config) -> None:
    day = parse_date(args.date) if args.date else whoop_day(cutoff_hour=config.day.cutoff_hour)
    options = _fetch_options(args)
    kinds = [kind for kind in ResourceKind if getattr(args, kind.value)]
    if options["cursor"] and not kinds:
        raise ValidationError(
            "--next-token can only be used with exactly one collection type: "
            "--sleep, --recovery, --workout, or --cycle"
        )
    output(get_client(config).fetch_data(kinds, day, **options), args.pretty)


def cmd_summary(args, config: Config) -> None:
    day = parse_date(args.date) if args.date else whoop_day(cutoff_hour=config.day.cutoff_hour)
    kinds = [ResourceKind.RECOVERY, ResourceKind.SLEEP, ResourceKind.CYCLE, ResourceKind.WORKOUT]
    result = get_client(config).fetch_data(kinds, day)
    print(format_summary_color(result) if args.color else format_summary(result))


def cmd_trends(args, config: Config) -> None:
    if not _is_ascii_int(args.days) or int(args.days) not in TREND_DAYS:
        raise ValidationError("Days must be 7, 14, or 30")
    days = int(args.days)

    cutoff = config.day.cutoff_hour
    today = whoop_day(cutoff_hour=cutoff)
    first = days_ago(days - 1, today=today)

    history = get_client(config).fetch_history(
        [ResourceKind.RECOVERY, ResourceKind.SLEEP, ResourceKind.CYCLE], first, today
    )
    report = compute_trends(
        history[ResourceKind.RECOVERY],
        history[ResourceKind.SLEEP],
        history[ResourceKind.CYCLE],
        days=days,
        end_day=today,
        cutoff_hour=cutoff,
    )
    print(format_trends(report, pretty=not args.json))


def cmd_insights(args, config: Config) -> None:
    cutoff = config.day.cutoff_hour
    day = parse_date(args.date) if args.date else whoop_day(cutoff_hour=cutoff)
    client = get_client(config)

    history = client.fetch_history(
        [ResourceKind.RECOVERY, ResourceKind.SLEEP, ResourceKind.CYCLE],
        day - timedelta(days=7),
        day,
    )
    workouts = client.fetch_history([ResourceKind.WORKOUT], day, day)[ResourceKind.WORKOUT]

    insights = generate_insights(
        history[ResourceKind.RECOVERY],
        history[ResourceKind.SLEEP],
        history[ResourceKind.CYCLE],
        workouts,
        cutoff_hour=cutoff,
        day=day,
    )
    print(format_insights(insights, pretty=not args.json))


# =============================================================================
# Parser
# =============================================================================

def _add_query_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-d", "--date", help="Date in ISO format (YYYY-MM-DD)")
    parser.add_argument("-s", "--start", help="Start datetime for range query (ISO 8601)")
    parser.add_argument("-e", "--end", help="End datetime for range query (ISO 8601)")
    parser.add_argument("-l", "--limit", default="25", help="Max results per page (1-25)")
    parser.add_argument("-a", "--all", action="store_true", help="Fetch all pages")
    parser.add_argument("--next-token", help="Fetch page from the provided next_token")
    parser.add_argument("-p", "--pretty", action="store_true", help="Human-readable output")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="whoop", description="CLI for fetching WHOOP health data")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    parser.add_argument("--config", help="Path to config.json")
    sub = parser.add_subparsers(dest="command", metavar="<command>")

    auth = sub.add_parser("auth", help="Manage authentication")
    auth.add_argument("action", help="login, logout, status, or refresh")
    auth.set_defaults(func=cmd_auth)

    access = sub.add_parser("access", help="Manage WHOOP app access lifecycle")
    access.add_argument("action", help="revoke")
    access.set_defaults(func=cmd_access)

    mapping = sub.add_parser("mapping", help="Lookup v2 UUID using a v1 activity id")
    mapping.add_argument("activity_v1_id", help="v1 activity id (integer)")
    mapping.set_defaults(func=cmd_mapping)

    for name, (description, supports_id, supports_cycle_id) in COLLECTION_COMMANDS.items():
        command = sub.add_parser(name, help=description)
        _add_query_options(command)
        if supports_id:
            command.add_argument("--id", help="Query resource by id")
        if supports_cycle_id:
            command.add_argument("--cycle-id", help="Query resource via cycle id")
        command.set_defaults(func=cmd_collection)

    for name, description in (("profile", "Get profile data"), ("body", "Get body measurements")):
        command = sub.add_parser(name, help=description)
        command.add_argument("-p", "--pretty", action="store_true", help="Human-readable output")
        command.set_defaults(func=cmd_single)

    fetch = sub.add_parser("fetch", help="Fetch several data types at once")
    _add_query_options(fetch)
    for kind in ResourceKind:
        fetch.add_argument(f"--{kind.value}", action="store_true", help=f"Include {kind.value} data")
    fetch.set_defaults(func=cmd_fetch)

    summary = sub.add_parser("summary", help="One-liner health snapshot")
    summary.add_argument("-d", "--date", help="Date in ISO format (YYYY-MM-DD)")
    summary.add_argument("-c", "--color", action="store_true", help="Color-coded output with status indicators")
    summary.set_defaults(func=cmd_summary)

    trends = sub.add_parser("trends", help="Show trends over time (7/14/30 days)")
    trends.add_argument("-n", "--days", default="7", help="Number of days to analyze")
    trends.add_argument("--json", action="store_true", help="Output raw JSON instead of formatted text")
    trends.set_defaults(func=cmd_trends)

    insights = sub.add_parser("insights", help="Health insights and recommendations")
    insights.add_argument("-d", "--date", help="Date in ISO format (YYYY-MM-DD)")
    insights.add_argument("--json", action="store_true", help="Output raw JSON instead of formatted text")
    insights.set_defaults(func=cmd_insights)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.command:
        parser.print_help()
        return 1

    config = Config.load(Path(args.config) if args.config else None)

    try:
        args.func(args, config)
    except WhoopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code
    return 0


if __name__ == "__main__":
    sys.exit(main())
