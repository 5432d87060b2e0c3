"""Indicative stay quotes for the booking widget."""

from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.engine import Engine

from stay_settlement.errors import ValidationError
from stay_settlement.network.pms import PmsClient
from stay_settlement.normalizers.availability import RejectionInfo
from stay_settlement.pricing.stay_price import StayQuote, compute_stay_quote, minimum_stay
from stay_settlement.services.availability import fetch_rate_table, verify_availability
from stay_settlement.services.listings import resolve_bookable_listing
from stay_settlement.utils.datetime import count_nights

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RenderedQuote:
    listing_id: str
    check_in: str
    check_out: str
    currency: str
    quote: StayQuote
    min_nights: Optional[int]
    available: bool
    rejection: Optional[RejectionInfo] = None


def quote_stay(
    engine: Engine,
    pms: PmsClient,
    listing_id: str,
    check_in: str,
    check_out: str,
    guests: int,
) -> RenderedQuote:
    """
    Price a stay and report whether the PMS would accept it.

    The result is informational only. Checkout re-verifies everything.

    Raises:
        NotFound: Unknown listing or listing without PMS integration.
        ValidationError: check_out is not after check_in.
        ServiceUnavailable: The PMS cannot be reached.
    """
    if count_nights(check_in, check_out) < 1:
        raise ValidationError("check_out must be after check_in")

    listing = resolve_bookable_listing(engine, listing_id)
    rates = fetch_rate_table(pms, listing.credentials, listing.pms_listing_id, check_in, check_out)
    availability = verify_availability(
        pms, listing.credentials, listing.pms_listing_id, check_in, check_out, guests
    )
    available = availability.is_available(listing.pms_listing_id)

    return RenderedQuote(
        listing_id=listing.id,
        check_in=check_in,
        check_out=check_out,
        currency=listing.currency,
        quote=compute_stay_quote(check_in, check_out, rates),
        min_nights=minimum_stay(rates, check_in),
        available=available,
        rejection=None if available else availability.rejection_for(listing.pms_listing_id),
    )
