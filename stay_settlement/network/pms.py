"""
Client for the property-management system (Smoobu-shaped API).

Credentials are always passed in explicitly; nothing here reads a
process-wide key.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog

from stay_settlement.config import PMS_BASE_URL, PMS_CHANNEL_ID, PMS_TIMEOUT_SECONDS
from stay_settlement.network.client import PmsRequestError, pms_request
from stay_settlement.normalizers.availability import AvailabilityResult, normalize_availability
from stay_settlement.normalizers.rates import RateTable, normalize_rates
from stay_settlement.pricing.money import from_minor_units

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PmsCredentials:
    """API key and PMS customer id of one listing owner."""

    api_key: str
    customer_id: int

    def __repr__(self) -> str:
        return f"PmsCredentials(api_key='***', customer_id={self.customer_id})"


@dataclass(frozen=True)
class ReservationRequest:
    pms_listing_id: int
    check_in: str
    check_out: str
    first_name: str
    last_name: str
    email: str
    adults: int
    children: int
    total_price: int
    phone: Optional[str] = None
    note: Optional[str] = None


class PmsClient:
    """Thin wrapper over the four PMS endpoints the pipeline uses."""

    def __init__(
        self,
        base_url: str = PMS_BASE_URL,
        timeout: float = PMS_TIMEOUT_SECONDS,
        channel_id: int = PMS_CHANNEL_ID,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.channel_id = channel_id

    def _request(
        self,
        method: str,
        path: str,
        credentials: PmsCredentials,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        return pms_request(
            method,
            path,
            api_key=credentials.api_key,
            endpoint=endpoint,
            params=params,
            json_body=json_body,
            timeout=self.timeout,
            base_url=self.base_url,
        )

    def check_availability(
        self,
        credentials: PmsCredentials,
        pms_listing_id: int,
        check_in: str,
        check_out: str,
        guests: int,
    ) -> AvailabilityResult:
        """
        Ask the PMS whether a listing can be booked for a stay.

        Raises:
            PmsRequestError: On transport failure or a malformed response.
        """
        raw = self._request(
            "POST",
            "booking/checkApartmentAvailability",
            credentials,
            endpoint="availability",
            json_body={
                "arrivalDate": check_in,
                "departureDate": check_out,
                "apartments": [pms_listing_id],
                "customerId": credentials.customer_id,
                "guests": guests,
            },
        )
        try:
            return normalize_availability(raw)
        except (AttributeError, TypeError, ValueError, ArithmeticError) as err:
            raise PmsRequestError(f"Malformed availability response: {err}") from err

    def fetch_rates(
        self,
        credentials: PmsCredentials,
        pms_listing_id: int,
        start_date: str,
        end_date: str,
    ) -> RateTable:
        """Fetch per-date rates for a listing over [start_date, end_date]."""
        raw = self._request(
            "GET",
            "api/rates",
            credentials,
            endpoint="rates",
            params={
                "apartments[]": pms_listing_id,
                "start_date": start_date,
                "end_date": end_date,
            },
        )
        try:
            return normalize_rates(raw, pms_listing_id)
        except (AttributeError, TypeError, ValueError, ArithmeticError) as err:
            raise PmsRequestError(f"Malformed rates response: {err}") from err

    def create_reservation(self, credentials: PmsCredentials, reservation: ReservationRequest) -> str:
        """
        Create a paid reservation in the PMS and return its id.

        Never retried automatically; a second call would create a duplicate.
        """
        payload: Dict[str, Any] = {
            "arrivalDate": reservation.check_in,
            "departureDate": reservation.check_out,
            "channelId": self.channel_id,
            "apartmentId": reservation.pms_listing_id,
            "firstName": reservation.first_name,
            "lastName": reservation.last_name,
            "email": reservation.email,
            "adults": reservation.adults,
            "children": reservation.children,
            "price": float(from_minor_units(reservation.total_price)),
            "priceStatus": 1,
        }
        if reservation.phone:
            payload["phone"] = reservation.phone
        if reservation.note:
            payload["notice"] = reservation.note

        raw = self._request(
            "POST", "api/reservations", credentials, endpoint="create_reservation", json_body=payload
        )
        reservation_id = raw.get("id")
        if reservation_id is None:
            raise PmsRequestError("PMS reservation response has no id", body=str(raw))

        logger.info(
            "pms_reservation_created",
            pms_listing_id=reservation.pms_listing_id,
            reservation_id=reservation_id,
        )
        return str(reservation_id)

    def cancel_reservation(self, credentials: PmsCredentials, reservation_id: str) -> None:
        """
        Cancel a PMS reservation.

        Raises:
            PmsRequestError: status_code is set when the PMS answered non-2xx
                and None when no response arrived.
        """
        self._request(
            "DELETE",
            f"api/reservations/{reservation_id}",
            credentials,
            endpoint="cancel_reservation",
        )
