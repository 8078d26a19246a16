"""Command line interface for TripDesk."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, Sequence

from tripdesk.contracts import PersistedTrip
from tripdesk.errors import TripPipelineError
from tripdesk.orchestrator import TripOrchestrator
from tripdesk.pipeline_runner import load_orchestrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tripdesk",
        description="Generate, store and browse AI-written trips.",
    )
    subparsers = parser.add_subparsers(dest="command")

    create_parser = subparsers.add_parser("create", help="Generate and store a new trip.")
    create_parser.add_argument("--country", required=True)
    create_parser.add_argument("--days", type=int, required=True, help="Number of days.")
    create_parser.add_argument("--travel-style", default="")
    create_parser.add_argument("--interests", default="")
    create_parser.add_argument("--budget", default="")
    create_parser.add_argument("--group-type", default="")
    create_parser.add_argument("--user-id", required=True, help="Id of the requesting user.")

    list_parser = subparsers.add_parser("list", help="List stored trips, newest first.")
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.add_argument("--limit", type=int, default=8)
    list_parser.add_argument("--user-id", default=None, help="Only trips of this user.")

    show_parser = subparsers.add_parser("show", help="Show one stored trip.")
    show_parser.add_argument("trip_id")
    show_parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="json",
        help="Output format.",
    )
    return parser


def configure_logging() -> None:
    level_name = os.getenv("TRIPDESK_LOG_LEVEL", "WARNING").strip().upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_orchestrator() -> TripOrchestrator:
    return load_orchestrator(".env")


def render_trip_text(trip: PersistedTrip) -> str:
    plan = trip.plan
    lines = [plan.name]
    if plan.description:
        lines.append(str(plan.description))
    if plan.estimated_price:
        lines.append(f"Estimated price: {plan.estimated_price}")
    lines.append("")
    for entry, day in zip(plan.itinerary, plan.day_plans()):
        if day is None:
            lines.append(str(entry))
            continue
        header = f"Day {day.day}" if day.day is not None else "Day"
        if day.location:
            header += f" - {day.location}"
        lines.append(header)
        for activity in day.activities:
            lines.append(f"  - {activity.time_of_day or ''}: {activity.description or ''}".rstrip())
    if trip.image_urls:
        lines.append("")
        lines.append("Images:")
        lines.extend(f"  {url}" for url in trip.image_urls)
    return "\n".join(lines)


def _print_json(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False))


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging()
    orchestrator = build_orchestrator()

    if args.command == "create":
        try:
            trip_id = orchestrator.create_trip(
                {
                    "country": args.country,
                    "numberOfDays": args.days,
                    "travelStyle": args.travel_style,
                    "interests": args.interests,
                    "budget": args.budget,
                    "groupType": args.group_type,
                    "userId": args.user_id,
                }
            )
        except TripPipelineError as exc:
            _print_json(exc.to_payload())
            return 1
        _print_json({"id": trip_id})
        return 0

    if args.command == "list":
        try:
            page = orchestrator.list_trips_page(args.page, args.limit, requester_id=args.user_id)
        except ValueError as exc:
            _print_json({"error": str(exc), "code": "invalid_request"})
            return 1
        _print_json(
            {
                "trips": [trip.to_summary() for trip in page.trips],
                "total": page.total,
                "page": args.page,
                "warnings": page.warnings,
            }
        )
        return 0

    if args.command == "show":
        trip = orchestrator.get_trip(args.trip_id)
        if trip is None:
            _print_json({"error": "Trip not found", "code": "not_found", "id": args.trip_id})
            return 1
        if args.format == "text":
            print(render_trip_text(trip))
        else:
            _print_json(trip.to_summary())
        return 0

    parser.print_help()
    return 0
