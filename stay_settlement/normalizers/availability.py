"""
Normalization of PMS availability responses.

The PMS reports rejections with numeric error codes and code-specific
threshold fields. This module maps them to a uniform RejectionInfo so the
checkout flow and the guest UI can render a precise reason without knowing
the PMS's vocabulary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

import structlog

from stay_settlement.pricing.money import to_minor_units

logger = structlog.get_logger(__name__)


class RejectionReason(str, Enum):
    MIN_STAY = "min_stay"
    MAX_GUESTS = "max_guests"
    LEAD_TIME = "lead_time"
    ARRIVAL_WEEKDAY = "arrival_weekday"
    OTHER = "other"


# PMS error code -> (reason, field carrying the offending threshold)
_ERROR_CODES: dict[int, tuple[RejectionReason, Optional[str]]] = {
    1: (RejectionReason.MIN_STAY, "minimumLengthOfStay"),
    2: (RejectionReason.MAX_GUESTS, "numberOfGuest"),
    3: (RejectionReason.LEAD_TIME, "leadTime"),
    4: (RejectionReason.ARRIVAL_WEEKDAY, "arrivalDays"),
}


@dataclass(frozen=True)
class RejectionInfo:
    reason: RejectionReason
    threshold: Union[int, list[str], None] = None
    pms_message: str = ""

    @property
    def message(self) -> str:
        """Human-readable explanation suitable for the guest."""
        shown = "?" if self.threshold is None else self.threshold
        if self.reason is RejectionReason.MIN_STAY:
            return f"Minimum stay is {shown} nights"
        if self.reason is RejectionReason.MAX_GUESTS:
            return f"Maximum {shown} guests allowed"
        if self.reason is RejectionReason.LEAD_TIME:
            return f"Requires {shown} days advance booking"
        if self.reason is RejectionReason.ARRIVAL_WEEKDAY:
            days = ", ".join(self.threshold) if isinstance(self.threshold, list) else ""
            return f"Check-in only on: {days}"
        return self.pms_message or "Not available for selected dates"

    def to_dict(self) -> dict[str, Any]:
        return {
            "reason": self.reason.value,
            "threshold": self.threshold,
            "message": self.message,
        }


@dataclass(frozen=True)
class ListingPrice:
    amount: int  # minor units
    currency: str


@dataclass
class AvailabilityResult:
    available_listing_ids: set[int] = field(default_factory=set)
    price_by_listing: dict[int, ListingPrice] = field(default_factory=dict)
    rejection_by_listing: dict[int, RejectionInfo] = field(default_factory=dict)

    def is_available(self, pms_listing_id: int) -> bool:
        return pms_listing_id in self.available_listing_ids

    def rejection_for(self, pms_listing_id: int) -> RejectionInfo:
        """Rejection for a listing; a generic one when the PMS gave no reason."""
        return self.rejection_by_listing.get(
            pms_listing_id, RejectionInfo(reason=RejectionReason.OTHER)
        )


def normalize_rejection(raw_error: dict[str, Any]) -> RejectionInfo:
    """
    Map one PMS error entry to a RejectionInfo.

    Args:
        raw_error: e.g. {"errorCode": 1, "message": "...", "minimumLengthOfStay": 3}

    Returns:
        RejectionInfo with the coded reason and its threshold value
    """
    try:
        code = int(raw_error.get("errorCode", 0))
    except (TypeError, ValueError):
        code = 0

    reason, threshold_field = _ERROR_CODES.get(code, (RejectionReason.OTHER, None))
    threshold = raw_error.get(threshold_field) if threshold_field else None
    if reason is RejectionReason.ARRIVAL_WEEKDAY and threshold is not None:
        threshold = [str(day) for day in threshold]
    elif threshold is not None:
        threshold = int(threshold)

    return RejectionInfo(
        reason=reason,
        threshold=threshold,
        pms_message=str(raw_error.get("message") or ""),
    )


def normalize_availability(raw_response: dict[str, Any]) -> AvailabilityResult:
    """
    Convert a raw PMS availability response into an AvailabilityResult.

    Expected shape:
        {
            "availableApartments": [123],
            "prices": {"123": {"price": 500.0, "currency": "EUR"}},
            "errorMessages": {"456": {"errorCode": 1, "minimumLengthOfStay": 3, ...}}
        }

    Raises:
        ValueError: If the response does not have the documented shape
    """
    available = raw_response.get("availableApartments")
    if not isinstance(available, list):
        raise ValueError("availability response missing availableApartments")

    result = AvailabilityResult(available_listing_ids={int(a) for a in available})

    prices = raw_response.get("prices") or {}
    errors = raw_response.get("errorMessages") or {}
    if not isinstance(prices, dict) or not isinstance(errors, dict):
        raise ValueError("availability response prices and errorMessages must be objects")

    for listing_id, price in prices.items():
        if price is None:
            continue
        if not isinstance(price, dict):
            raise ValueError(f"availability price for {listing_id} is not an object")
        if price.get("price") is None:
            continue
        result.price_by_listing[int(listing_id)] = ListingPrice(
            amount=to_minor_units(price["price"]),
            currency=str(price.get("currency") or "").lower(),
        )

    for listing_id, raw_error in errors.items():
        if not isinstance(raw_error, dict):
            logger.warning("availability_error_malformed", pms_listing_id=listing_id)
            continue
        result.rejection_by_listing[int(listing_id)] = normalize_rejection(raw_error)

    return result
