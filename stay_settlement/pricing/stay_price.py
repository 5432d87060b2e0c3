"""
Stay quote computation and minimum-stay lookup over a RateTable.

Rates are keyed by ISO calendar date strings so quotes never depend on the
server's or the guest's timezone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from stay_settlement.errors import ValidationError
from stay_settlement.normalizers.rates import RateTable
from stay_settlement.pricing.money import divide_minor_units, multiply_minor_units
from stay_settlement.utils.datetime import count_nights, iter_nights

DateLike = Union[str, date]


@dataclass(frozen=True)
class StayQuote:
    nights: int
    total_price: int  # minor units
    per_night_price: int  # minor units
    has_pricing: bool

    def to_dict(self) -> dict[str, Union[int, bool]]:
        return {
            "nights": self.nights,
            "total_price": self.total_price,
            "per_night_price": self.per_night_price,
            "has_pricing": self.has_pricing,
        }


def compute_stay_quote(check_in: DateLike, check_out: DateLike, rates: RateTable) -> StayQuote:
    """
    Compute the total price of a stay from nightly rates.

    Every night in [check_in, check_out) is looked up in the rate table. When
    some nights have no price, the missing ones are charged at the average of
    the priced nights so a quote is never silently undercharged.

    Args:
        check_in: Arrival date (inclusive)
        check_out: Departure date (exclusive)
        rates: RateTable for the listing covering the stay

    Returns:
        StayQuote; has_pricing is False when no night in the range is priced

    Raises:
        ValidationError: If check_out is before check_in

    Example:
        >>> quote = compute_stay_quote("2025-07-01", "2025-07-05", rates)
        >>> quote.total_price
        50000
    """
    nights = count_nights(check_in, check_out)
    if nights < 0:
        raise ValidationError("check_out must not be before check_in")

    priced = [
        rates[night].price
        for night in iter_nights(check_in, check_out)
        if night in rates and rates[night].price is not None
    ]

    if not priced:
        return StayQuote(nights=nights, total_price=0, per_night_price=0, has_pricing=False)

    priced_total = sum(priced)
    if len(priced) == nights:
        total = priced_total
    else:
        # round(average * nights) without an intermediate rounding step
        total = divide_minor_units(multiply_minor_units(priced_total, nights), len(priced))

    return StayQuote(
        nights=nights,
        total_price=total,
        per_night_price=divide_minor_units(total, nights),
        has_pricing=True,
    )


def minimum_stay(rates: RateTable, check_in: DateLike) -> Optional[int]:
    """
    Minimum number of nights required for a stay arriving on check_in.

    The constraint is anchored to the arrival date only. A missing entry, a
    null constraint and a constraint of 1 all mean "no restriction".
    """
    key = check_in if isinstance(check_in, str) else check_in.isoformat()
    rate_day = rates.get(key[:10])
    if rate_day is None or rate_day.min_length_of_stay is None:
        return None
    if rate_day.min_length_of_stay <= 1:
        return None
    return rate_day.min_length_of_stay
