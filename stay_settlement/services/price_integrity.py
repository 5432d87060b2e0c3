"""
Server-side price verification at checkout.

A price quoted to the guest earlier is never trusted: the stay is re-priced
from live PMS data and compared with what the client submitted.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import structlog

from stay_settlement.config import PRICE_TOLERANCE
from stay_settlement.errors import AvailabilityConflict, PriceMismatch, ValidationError
from stay_settlement.network.pms import PmsClient
from stay_settlement.normalizers.availability import (
    AvailabilityResult,
    RejectionInfo,
    RejectionReason,
)
from stay_settlement.pricing.stay_price import compute_stay_quote, minimum_stay
from stay_settlement.services.availability import fetch_rate_table, verify_availability
from stay_settlement.services.event_log import EventLogger
from stay_settlement.services.listings import BookableListing
from stay_settlement.utils.datetime import count_nights

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class VerifiedPrice:
    total_price: int  # minor units
    nights: int
    source: str  # "pms" when the PMS quoted the stay, "rates" when computed


def is_within_tolerance(server_price: int, client_price: int, tolerance: float = PRICE_TOLERANCE) -> bool:
    """
    Check the relative drift between server and client prices.

    With a server price of zero, only a zero client price is accepted.
    """
    if server_price == 0:
        return client_price == 0
    drift = Decimal(abs(server_price - client_price))
    return drift <= Decimal(str(tolerance)) * Decimal(server_price)


def unavailable_error(rejection: RejectionInfo) -> AvailabilityConflict:
    return AvailabilityConflict(rejection.message, details=rejection.to_dict())


def verify_stay_price(
    pms: PmsClient,
    listing: BookableListing,
    check_in: str,
    check_out: str,
    guests: int,
    client_price: int,
    event_log: Optional[EventLogger] = None,
    availability: Optional[AvailabilityResult] = None,
    tolerance: float = PRICE_TOLERANCE,
) -> VerifiedPrice:
    """
    Re-price a stay from live PMS data and compare it with the client price.

    The PMS's own quote for the stay is canonical when it returns one;
    otherwise the total is computed from freshly fetched nightly rates.

    Args:
        pms (PmsClient): PMS client.
        listing (BookableListing): Listing with its owner's credentials.
        check_in (str): Arrival date, YYYY-MM-DD.
        check_out (str): Departure date, YYYY-MM-DD.
        guests (int): Total number of guests.
        client_price (int): Total the client submitted, in minor units.
        event_log (EventLogger, optional): Sink for mismatch records.
        availability (AvailabilityResult, optional): A result fetched moments
            ago for the same stay; the PMS is queried when omitted.
        tolerance (float): Maximum accepted relative drift.

    Returns:
        VerifiedPrice: The server-side total.

    Raises:
        ValidationError: If the stay is empty or no price can be computed.
        AvailabilityConflict: If the stay is not bookable or violates the
            arrival date's minimum stay.
        PriceMismatch: If the drift exceeds the tolerance.
        ServiceUnavailable: If the PMS cannot be reached.
    """
    nights = count_nights(check_in, check_out)
    if nights < 1:
        raise ValidationError("Stay must be at least one night")

    if availability is None:
        availability = verify_availability(
            pms, listing.credentials, listing.pms_listing_id, check_in, check_out, guests
        )
    if not availability.is_available(listing.pms_listing_id):
        raise unavailable_error(availability.rejection_for(listing.pms_listing_id))

    rates = fetch_rate_table(pms, listing.credentials, listing.pms_listing_id, check_in, check_out)

    min_nights = minimum_stay(rates, check_in)
    if min_nights is not None and nights < min_nights:
        logger.info("minimum_stay_violation", listing_id=listing.id, nights=nights, min_nights=min_nights)
        raise unavailable_error(RejectionInfo(RejectionReason.MIN_STAY, threshold=min_nights))

    pms_price = availability.price_by_listing.get(listing.pms_listing_id)
    if pms_price is not None:
        server_price, source = pms_price.amount, "pms"
    else:
        quote = compute_stay_quote(check_in, check_out, rates)
        if not quote.has_pricing:
            raise ValidationError("Unable to compute price", {"listing_id": listing.id})
        server_price, source = quote.total_price, "rates"

    if not is_within_tolerance(server_price, client_price, tolerance):
        details = {"server_price": server_price, "client_price": client_price}
        logger.warning(
            "price_mismatch",
            listing_id=listing.id,
            check_in=check_in,
            check_out=check_out,
            source=source,
            **details,
        )
        if event_log is not None:
            event_log.error(
                "checkout",
                f"Price mismatch for listing {listing.id}: "
                f"client={client_price}, server={server_price}",
                {"listing_id": listing.id, "check_in": check_in, "check_out": check_out, **details},
            )
        raise PriceMismatch("Price has changed, please review the new total", details)

    return VerifiedPrice(total_price=server_price, nights=nights, source=source)
