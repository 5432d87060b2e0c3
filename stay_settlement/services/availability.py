"""Live availability and rate lookups against the PMS."""

import structlog

from stay_settlement.errors import ServiceUnavailable
from stay_settlement.network.client import PmsRequestError
from stay_settlement.network.pms import PmsClient, PmsCredentials
from stay_settlement.normalizers.availability import AvailabilityResult
from stay_settlement.normalizers.rates import RateTable

logger = structlog.get_logger(__name__)


def verify_availability(
    pms: PmsClient,
    credentials: PmsCredentials,
    pms_listing_id: int,
    check_in: str,
    check_out: str,
    guests: int,
) -> AvailabilityResult:
    """
    Ask the PMS whether a listing can be booked for the given stay.

    A listing that is not available is a normal result, not an error: the
    returned AvailabilityResult carries the normalized rejection reason.

    Args:
        pms (PmsClient): PMS client.
        credentials (PmsCredentials): The listing owner's PMS credentials.
        pms_listing_id (int): Listing id in the PMS.
        check_in (str): Arrival date, YYYY-MM-DD.
        check_out (str): Departure date, YYYY-MM-DD.
        guests (int): Total number of guests.

    Returns:
        AvailabilityResult

    Raises:
        ServiceUnavailable: If the PMS could not be reached or answered with
            an error or malformed body.
    """
    try:
        result = pms.check_availability(credentials, pms_listing_id, check_in, check_out, guests)
    except PmsRequestError as err:
        logger.error(
            "availability_check_failed",
            pms_listing_id=pms_listing_id,
            check_in=check_in,
            check_out=check_out,
            error=str(err),
        )
        raise ServiceUnavailable("Availability service unavailable") from err

    logger.info(
        "availability_checked",
        pms_listing_id=pms_listing_id,
        check_in=check_in,
        check_out=check_out,
        guests=guests,
        available=result.is_available(pms_listing_id),
    )
    return result


def fetch_rate_table(
    pms: PmsClient,
    credentials: PmsCredentials,
    pms_listing_id: int,
    check_in: str,
    check_out: str,
) -> RateTable:
    """
    Fetch fresh nightly rates covering a stay.

    Raises:
        ServiceUnavailable: If the PMS rates call fails.
    """
    try:
        return pms.fetch_rates(credentials, pms_listing_id, check_in, check_out)
    except PmsRequestError as err:
        logger.error("rates_fetch_failed", pms_listing_id=pms_listing_id, error=str(err))
        raise ServiceUnavailable("Rate service unavailable") from err
