"""
Command-line entry point over a JSON content directory.

Usage:
    python main.py slots --site demo --service wash-fold --date 2025-03-17
    python main.py next --site demo --service wash-fold
    python main.py book --site demo --request booking.json
    python main.py reschedule --site demo --booking bk_123 --email a@b.co
        --date 2025-03-18 --time 10:00
    python main.py cancel --site demo --booking bk_123 --email a@b.co
    python main.py lookup --site demo --email a@b.co --phone 5551234567
    python main.py import --site demo --from legacy_content/
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from booking_engine.config import app_config
from booking_engine.engine import BookingEngine
from booking_engine.errors import BookingError
from booking_engine.logging_context import set_request_id
from booking_engine.store.importer import import_site
from booking_engine.store.json_store import JsonFileBookingStore

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Booking availability and lifecycle tools.")
    parser.add_argument(
        "--content-dir",
        type=str,
        default=app_config.storage.content_dir,
        help="Content directory holding tenant booking data.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    slots = sub.add_parser("slots", help="List bookable slots for a service and date.")
    slots.add_argument("--site", required=True)
    slots.add_argument("--service", required=True)
    slots.add_argument("--date", required=True)

    upcoming = sub.add_parser("next", help="Show the next dates with open slots.")
    upcoming.add_argument("--site", required=True)
    upcoming.add_argument("--service", required=True)
    upcoming.add_argument("--from-date", default=None)
    upcoming.add_argument("--limit", type=int, default=None)

    book = sub.add_parser("book", help="Create a booking from a JSON request file.")
    book.add_argument("--site", required=True)
    book.add_argument("--request", required=True, help="Path to a camelCase JSON request.")

    reschedule = sub.add_parser("reschedule", help="Move a booking to a new slot.")
    reschedule.add_argument("--site", required=True)
    reschedule.add_argument("--booking", required=True)
    reschedule.add_argument("--email", required=True)
    reschedule.add_argument("--date", required=True)
    reschedule.add_argument("--time", required=True)

    cancel = sub.add_parser("cancel", help="Cancel a booking.")
    cancel.add_argument("--site", required=True)
    cancel.add_argument("--booking", required=True)
    cancel.add_argument("--email", required=True)

    lookup = sub.add_parser("lookup", help="List a customer's bookings.")
    lookup.add_argument("--site", required=True)
    lookup.add_argument("--email", required=True)
    lookup.add_argument("--phone", required=True)

    importer = sub.add_parser("import", help="Import a site from another content directory.")
    importer.add_argument("--site", required=True)
    importer.add_argument("--from", dest="source", required=True)

    return parser


def _run(args: argparse.Namespace, engine: BookingEngine) -> Any:
    if args.command == "slots":
        return {"slots": engine.list_slots(args.site, args.service, args.date)}
    if args.command == "next":
        return {
            "dates": engine.next_available(args.site, args.service, args.from_date, args.limit)
        }
    if args.command == "book":
        payload = json.loads(Path(args.request).read_text(encoding="utf-8"))
        booking = engine.create(args.site, payload, source="cli")
        return {"booking": booking.model_dump(mode="json", by_alias=True)}
    if args.command == "reschedule":
        booking = engine.reschedule(args.site, args.booking, args.email, args.date, args.time)
        return {"booking": booking.model_dump(mode="json", by_alias=True)}
    if args.command == "cancel":
        booking = engine.cancel(args.site, args.booking, args.email)
        return {"booking": booking.model_dump(mode="json", by_alias=True)}
    if args.command == "lookup":
        bookings = engine.list_for_customer(args.site, args.email, args.phone)
        return {"bookings": [b.model_dump(mode="json", by_alias=True) for b in bookings]}
    if args.command == "import":
        source = JsonFileBookingStore(Path(args.source))
        summary = import_site(source, engine.store, args.site)
        return {
            "success": True,
            "servicesImported": summary.services_imported,
            "settingsImported": summary.settings_imported,
            "bookingsImported": summary.bookings_imported,
            "bookingsSkipped": summary.bookings_skipped,
        }
    raise ValueError(f"Unknown command: {args.command}")


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    set_request_id()
    engine = BookingEngine(JsonFileBookingStore(Path(args.content_dir)))
    try:
        result = _run(args, engine)
    except BookingError as exc:
        logger.warning("%s: %s", type(exc).__name__, exc.message)
        error = {
            "error": type(exc).__name__,
            "message": exc.message,
            "status": exc.status_code,
            "retryable": exc.retryable,
        }
        sys.stdout.write(json.dumps(error) + "\n")
        return 1

    sys.stdout.write(json.dumps(result, indent=2) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
