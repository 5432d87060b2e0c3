import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import json
from collections import defaultdict

import structlog

from stay_settlement.db.engine import engine
from stay_settlement.db.readers.bookings import list_unsynced_bookings
from stay_settlement.db.readers.event_logs import list_event_logs
from stay_settlement.logging_config import setup_logging

setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    """
    Print confirmed bookings that have no PMS reservation yet.

    Each booking is listed with the unacknowledged settlement errors that
    mention it, which is what an operator needs to create the reservation
    in the PMS by hand.
    """
    parser = argparse.ArgumentParser(description=main.__doc__)
    parser.add_argument("--json", action="store_true", help="Emit one JSON object per booking")
    args = parser.parse_args()

    with engine.connect() as conn:
        bookings = list_unsynced_bookings(conn)
        errors = list_event_logs(
            conn, level="error", source="settlement", acknowledged=False, limit=500
        )

    errors_by_booking: dict[str, list[dict]] = defaultdict(list)
    for entry in errors:
        booking_id = (entry["metadata"] or {}).get("booking_id")
        if booking_id:
            errors_by_booking[booking_id].append(entry)

    logger.info("unsynced_bookings_found", count=len(bookings))

    for booking in bookings:
        related = errors_by_booking.get(booking["id"], [])
        if args.json:
            print(
                json.dumps(
                    {
                        "booking": booking,
                        "errors": [
                            {"id": e["id"], "message": e["message"], "created_at": e["created_at"]}
                            for e in related
                        ],
                    },
                    default=str,
                )
            )
            continue

        print(
            f"{booking['id']}  listing={booking['listing_id']}  "
            f"{booking['check_in']} -> {booking['check_out']}  "
            f"guest={booking['guest_first_name']} {booking['guest_last_name']} "
            f"<{booking['guest_email']}>  paid_at={booking['paid_at']}"
        )
        for entry in related:
            print(f"    [{entry['created_at']}] {entry['message']}")


if __name__ == "__main__":
    main()
