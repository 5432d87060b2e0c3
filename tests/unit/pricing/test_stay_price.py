"""Unit tests for stay quotes and the minimum-stay lookup."""

import pytest

from stay_settlement.errors import ValidationError
from stay_settlement.normalizers.rates import RateDay
from stay_settlement.pricing.stay_price import compute_stay_quote, minimum_stay


def day(date: str, price, min_stay=None) -> RateDay:
    return RateDay(date=date, price=price, min_length_of_stay=min_stay, available=True)


@pytest.mark.unit
def test_full_coverage_is_exact_sum(rates_for) -> None:
    rates = rates_for("2025-07-01", "2025-07-05", 12500)

    quote = compute_stay_quote("2025-07-01", "2025-07-05", rates)

    assert quote.nights == 4
    assert quote.total_price == 50000
    assert quote.per_night_price == 12500
    assert quote.has_pricing is True


@pytest.mark.unit
def test_partial_coverage_extrapolates_average() -> None:
    rates = {
        "2025-07-01": day("2025-07-01", 10000),
        "2025-07-02": day("2025-07-02", 10000),
        "2025-07-03": day("2025-07-03", 10000),
    }

    quote = compute_stay_quote("2025-07-01", "2025-07-05", rates)

    assert quote.total_price == 40000
    assert quote.per_night_price == 10000


@pytest.mark.unit
def test_partial_coverage_rounds_once() -> None:
    # average 10000.5 over 3 nights -> round(30001.5) = 30002
    rates = {
        "2025-07-01": day("2025-07-01", 10000),
        "2025-07-02": day("2025-07-02", 10001),
    }

    quote = compute_stay_quote("2025-07-01", "2025-07-04", rates)

    assert quote.total_price == 30002
    assert quote.per_night_price == 10001


@pytest.mark.unit
def test_null_prices_count_as_missing() -> None:
    rates = {
        "2025-07-01": day("2025-07-01", 20000),
        "2025-07-02": day("2025-07-02", None),
    }

    quote = compute_stay_quote("2025-07-01", "2025-07-03", rates)

    assert quote.total_price == 40000
    assert quote.has_pricing is True


@pytest.mark.unit
def test_no_priced_nights_reports_no_pricing() -> None:
    quote = compute_stay_quote("2025-07-01", "2025-07-03", {})

    assert quote.nights == 2
    assert quote.total_price == 0
    assert quote.per_night_price == 0
    assert quote.has_pricing is False


@pytest.mark.unit
def test_zero_night_stay(rates_for) -> None:
    rates = rates_for("2025-07-01", "2025-07-05", 12500)

    quote = compute_stay_quote("2025-07-03", "2025-07-03", rates)

    assert quote.nights == 0
    assert quote.total_price == 0
    assert quote.has_pricing is False


@pytest.mark.unit
def test_reversed_dates_rejected() -> None:
    with pytest.raises(ValidationError):
        compute_stay_quote("2025-07-05", "2025-07-01", {})


@pytest.mark.unit
def test_extending_stay_never_lowers_total() -> None:
    prices = [9000, 15000, 0, 12000, 7000, 20000, 11000]
    rates = {}
    for offset, price in enumerate(prices, start=1):
        date = f"2025-08-{offset:02d}"
        rates[date] = day(date, price)

    totals = [
        compute_stay_quote("2025-08-01", f"2025-08-{end:02d}", rates).total_price
        for end in range(2, 9)
    ]

    assert totals == sorted(totals)
    assert totals[-1] == sum(prices)


@pytest.mark.unit
def test_extrapolated_total_bounded_by_priced_nights() -> None:
    rates = {
        "2025-09-01": day("2025-09-01", 8000),
        "2025-09-03": day("2025-09-03", 14000),
    }

    quote = compute_stay_quote("2025-09-01", "2025-09-05", rates)

    assert 8000 * 4 <= quote.total_price <= 14000 * 4


@pytest.mark.unit
def test_dates_accepted_as_date_objects(rates_for) -> None:
    from datetime import date

    rates = rates_for("2025-07-01", "2025-07-03", 10000)

    quote = compute_stay_quote(date(2025, 7, 1), date(2025, 7, 3), rates)

    assert quote.total_price == 20000


@pytest.mark.unit
@pytest.mark.parametrize(
    "min_stay, expected",
    [(None, None), (0, None), (1, None), (2, 2), (7, 7)],
)
def test_minimum_stay_thresholds(min_stay, expected) -> None:
    rates = {"2025-07-01": day("2025-07-01", 10000, min_stay)}

    assert minimum_stay(rates, "2025-07-01") == expected


@pytest.mark.unit
def test_minimum_stay_only_reads_arrival_date() -> None:
    rates = {
        "2025-07-01": day("2025-07-01", 10000, None),
        "2025-07-02": day("2025-07-02", 10000, 5),
    }

    assert minimum_stay(rates, "2025-07-01") is None
    assert minimum_stay(rates, "2025-07-03") is None
    assert minimum_stay(rates, "2025-07-02") == 5
