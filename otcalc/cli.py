from __future__ import annotations
import argparse
import json
from dataclasses import asdict
from datetime import date
from pathlib import Path

from .analysis import calculate_analysis
from .codec import load_snapshot
from .logging import configure_logging
from .models import AmountDisplay
from .settings import get_settings


DEFAULT_SNAPSHOT_PATH = Path("data/snapshot.json")


def parse_date(value: str) -> date:
    return date.fromisoformat(value)


def cmd_analyze(args: argparse.Namespace) -> None:
    records, context, snapshot_range = load_snapshot(Path(args.snapshot or DEFAULT_SNAPSHOT_PATH), get_settings())
    if args.display:
        context.flags = context.flags.model_copy(update={"amount_display": AmountDisplay(args.display)})
    if args.tiered:
        context.flags = context.flags.model_copy(update={"enable_tiered_ot": True})

    start, end = snapshot_range or (None, None)
    if args.start:
        start = parse_date(args.start)
    if args.end:
        end = parse_date(args.end)

    results = calculate_analysis(records, context, (start, end), annotate=False)
    if args.person:
        results = [r for r in results if r.person_id == args.person]

    payload = [
        {"person_id": r.person_id, "person_name": r.person_name, "totals": asdict(r.totals)}
        for r in results
    ]
    print(json.dumps(payload, indent=2))


def cmd_settings(args: argparse.Namespace) -> None:
    settings = get_settings()
    print(json.dumps(settings.model_dump(mode="json"), indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Overtime and amount analysis for time-tracking exports")
    parser.add_argument("--log-level", help="Override the configured log level")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze a JSON snapshot of records and context")
    analyze.add_argument("snapshot", nargs="?", help=f"Snapshot path (default {DEFAULT_SNAPSHOT_PATH})")
    analyze.add_argument("--start", help="First day of the range (YYYY-MM-DD)")
    analyze.add_argument("--end", help="Last day of the range (YYYY-MM-DD)")
    analyze.add_argument("--person", help="Only print totals for this person id")
    analyze.add_argument("--display", choices=[d.value for d in AmountDisplay], help="Amount basis for headline totals")
    analyze.add_argument("--tiered", action="store_true", help="Enable tier-2 overtime")
    analyze.set_defaults(func=cmd_analyze)

    show_settings = sub.add_parser("settings", help="Print effective settings")
    show_settings.set_defaults(func=cmd_settings)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)
    args.func(args)


if __name__ == "__main__":
    main()
