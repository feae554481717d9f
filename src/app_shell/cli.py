import argparse
import json
import logging
import sys

from src.api.deps import build_event_store, get_rules, get_settings
from src.components.telemetry import (
    TelemetryAggregator,
    TelemetryError,
    TelemetryRecorder,
    TimeRange,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")

RANGE_CHOICES = [r.value for r in TimeRange]


def handle_init_db(args: argparse.Namespace) -> None:
    build_event_store(get_settings())
    print("Telemetry store ready.")


def handle_record(args: argparse.Namespace) -> None:
    recorder = TelemetryRecorder(store=build_event_store(get_settings()))
    event = recorder.record(args.page, args.timestamp)
    print(f"Recorded {event.page} at {event.timestamp} (bucket {event.minute_timestamp})")


def _aggregator() -> TelemetryAggregator:
    settings = get_settings()
    return TelemetryAggregator(
        store=build_event_store(settings),
        all_pages_sentinel=get_rules(settings).telemetry.all_pages_sentinel,
    )


def handle_stats(args: argparse.Namespace) -> None:
    series = _aggregator().query(args.range, args.page)
    if args.json:
        print(json.dumps([b.to_dict() for b in series], indent=2))
        return
    for bucket in series:
        if bucket.count or args.all_buckets:
            print(f"{bucket.timestamp}  {bucket.count}")


def handle_summary(args: argparse.Namespace) -> None:
    aggregator = _aggregator()
    summary = aggregator.summarize(aggregator.query(args.range, args.page))
    print(f"Current: {summary.current}")
    print(f"Average: {summary.average:.1f}")
    print(f"Peak:    {summary.peak}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Page Telemetry CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # init-db
    subparsers.add_parser("init-db", help="Create the telemetry store schema")

    # record
    record_parser = subparsers.add_parser("record", help="Record a page visit")
    record_parser.add_argument("page", help="Page identifier")
    record_parser.add_argument("--timestamp", help="Visit time (ISO-8601), defaults to now")

    # stats
    stats_parser = subparsers.add_parser("stats", help="Print the page-view series")
    stats_parser.add_argument("--range", default="hour", choices=RANGE_CHOICES)
    stats_parser.add_argument("--page", default="all", help="Page filter")
    stats_parser.add_argument("--json", action="store_true", help="Print as JSON")
    stats_parser.add_argument(
        "--all-buckets", action="store_true", help="Include zero-count buckets"
    )

    # summary
    summary_parser = subparsers.add_parser("summary", help="Print current/average/peak")
    summary_parser.add_argument("--range", default="hour", choices=RANGE_CHOICES)
    summary_parser.add_argument("--page", default="all", help="Page filter")

    args = parser.parse_args()

    handlers = {
        "init-db": handle_init_db,
        "record": handle_record,
        "stats": handle_stats,
        "summary": handle_summary,
    }
    try:
        handlers[args.command](args)
    except (TelemetryError, FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
