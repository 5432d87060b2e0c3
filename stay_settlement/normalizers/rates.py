from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog

from stay_settlement.pricing.money import to_minor_units

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RateDay:
    """Nightly price and availability facts for one listing on one calendar date."""

    date: str
    price: Optional[int]  # minor units
    min_length_of_stay: Optional[int]
    available: bool


# ISO date string -> RateDay, for one listing over one window
RateTable = Dict[str, RateDay]


def normalize_rates(raw_response: Dict[str, Any], pms_listing_id: int) -> RateTable:
    """
    Convert a raw PMS rates response into a RateTable for one listing.

    The PMS returns prices in decimal major units keyed by apartment id and
    ISO date:

        {"data": {"123": {"2025-07-01": {"price": 125.0,
                                          "min_length_of_stay": 2,
                                          "available": 1}}}}

    Args:
        raw_response: Decoded JSON body of the rates endpoint.
        pms_listing_id: PMS-side identifier of the listing.

    Returns:
        RateTable keyed by ISO date string. Days missing from the response are
        simply absent.

    Raises:
        ValueError: If data or the listing entry is not an object.
    """
    data = raw_response.get("data") or {}
    if not isinstance(data, dict):
        raise ValueError("rates response data must be an object")
    listing_rates = data.get(str(pms_listing_id)) or {}
    if not isinstance(listing_rates, dict):
        raise ValueError(f"rates for listing {pms_listing_id} must be an object")

    table: RateTable = {}
    for day, facts in listing_rates.items():
        if not isinstance(facts, dict):
            logger.warning("rate_day_malformed", pms_listing_id=pms_listing_id, date=day)
            continue

        price = facts.get("price")
        min_stay = facts.get("min_length_of_stay")
        table[day] = RateDay(
            date=day,
            price=to_minor_units(price) if price is not None else None,
            min_length_of_stay=int(min_stay) if min_stay is not None else None,
            available=bool(facts.get("available")),
        )

    return table
