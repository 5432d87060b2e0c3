"""
Shared test fixtures.

Environment defaults are set before any stay_settlement module is imported,
since config reads them at import time.
"""

from __future__ import annotations

import hashlib
import hmac
import os
import time
from typing import Any, Generator, Optional

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:3000")
os.environ.setdefault("PUBLIC_BASE_URL", "https://portal.test")
os.environ["DB_SCHEMA"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, insert  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from stay_settlement.models.accounts import OwnerAccount  # noqa: E402
from stay_settlement.models.base import Base  # noqa: E402
from stay_settlement.models.bookings import Booking  # noqa: E402, F401
from stay_settlement.models.event_logs import EventLog  # noqa: E402, F401
from stay_settlement.models.listings import Listing  # noqa: E402
from stay_settlement.models.pricing_periods import PricingPeriod  # noqa: E402, F401
from stay_settlement.network.payments import CheckoutSession, PaymentGateway  # noqa: E402
from stay_settlement.network.pms import PmsCredentials, ReservationRequest  # noqa: E402
from stay_settlement.normalizers.availability import AvailabilityResult  # noqa: E402
from stay_settlement.normalizers.rates import RateDay, RateTable  # noqa: E402
from stay_settlement.services.event_log import EventLogger  # noqa: E402
from stay_settlement.utils.datetime import iter_nights  # noqa: E402

WEBHOOK_SECRET = "whsec_test_secret"
OWNER_ID = "owner-1"
LISTING_ID = "villa-1"
PMS_LISTING_ID = 101


def make_rates(check_in: str, check_out: str, price: Optional[int], min_stay: int = 1) -> RateTable:
    """Uniform rate table covering every night of a stay."""
    return {
        night: RateDay(date=night, price=price, min_length_of_stay=min_stay, available=True)
        for night in iter_nights(check_in, check_out)
    }


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Build a Stripe-Signature header for a payload."""
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


class FakePmsClient:
    """In-memory PMS double recording every call."""

    def __init__(self) -> None:
        self.availability = AvailabilityResult(available_listing_ids={PMS_LISTING_ID})
        self.rates: RateTable = {}
        self.availability_error: Optional[Exception] = None
        self.reservation_error: Optional[Exception] = None
        self.cancel_error: Optional[Exception] = None
        self.reservation_id = "555"
        self.created: list[ReservationRequest] = []
        self.cancelled: list[str] = []
        self.credentials_seen: list[PmsCredentials] = []

    def check_availability(
        self, credentials: PmsCredentials, pms_listing_id: int, check_in: str, check_out: str, guests: int
    ) -> AvailabilityResult:
        self.credentials_seen.append(credentials)
        if self.availability_error:
            raise self.availability_error
        return self.availability

    def fetch_rates(
        self, credentials: PmsCredentials, pms_listing_id: int, start_date: str, end_date: str
    ) -> RateTable:
        return self.rates

    def create_reservation(self, credentials: PmsCredentials, reservation: ReservationRequest) -> str:
        self.created.append(reservation)
        if self.reservation_error:
            raise self.reservation_error
        return self.reservation_id

    def cancel_reservation(self, credentials: PmsCredentials, reservation_id: str) -> None:
        self.cancelled.append(reservation_id)
        if self.cancel_error:
            raise self.cancel_error


class FakePaymentGateway(PaymentGateway):
    """Real signature verification, fake processor API calls."""

    def __init__(self) -> None:
        super().__init__(secret_key="sk_test_dummy", webhook_secret=WEBHOOK_SECRET)
        self.sessions: list[dict[str, Any]] = []
        self.refunds: list[str] = []
        self.refund_error: Optional[Exception] = None

    def create_checkout_session(self, **kwargs: Any) -> CheckoutSession:
        self.sessions.append(kwargs)
        session_id = f"cs_test_{len(self.sessions)}"
        return CheckoutSession(id=session_id, url=f"https://pay.test/{session_id}")

    def refund(self, payment_intent_id: str) -> str:
        if self.refund_error:
            raise self.refund_error
        self.refunds.append(payment_intent_id)
        return f"re_{payment_intent_id}"


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """Fresh in-memory SQLite database with all tables."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def seeded_listing(db_engine: Engine) -> str:
    """An active owner with PMS credentials and one listing. Returns the listing id."""
    with db_engine.begin() as conn:
        conn.execute(
            insert(OwnerAccount).values(
                id=OWNER_ID,
                pms_api_key="pms-key-1",
                pms_customer_id=999,
                payment_account_id="acct_owner_1",
                is_active=True,
            )
        )
        conn.execute(
            insert(Listing).values(
                id=LISTING_ID,
                owner_account_id=OWNER_ID,
                title="Villa Uno",
                pms_listing_id=PMS_LISTING_ID,
                currency="eur",
            )
        )
    return LISTING_ID


@pytest.fixture
def fake_pms() -> FakePmsClient:
    return FakePmsClient()


@pytest.fixture
def fake_payments() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def event_log(db_engine: Engine) -> EventLogger:
    return EventLogger(db_engine)


@pytest.fixture
def api_client(
    db_engine: Engine, fake_pms: FakePmsClient, fake_payments: FakePaymentGateway
) -> Generator[TestClient, None, None]:
    """TestClient with database, PMS and payment gateway overridden."""
    from stay_settlement.dependencies import (
        get_db_engine,
        get_payment_gateway,
        get_pms_client,
    )
    from stay_settlement.main import app

    app.dependency_overrides[get_db_engine] = lambda: db_engine
    app.dependency_overrides[get_pms_client] = lambda: fake_pms
    app.dependency_overrides[get_payment_gateway] = lambda: fake_payments
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def rates_for():
    """Factory for uniform rate tables: rates_for(check_in, check_out, price, min_stay=1)."""
    return make_rates


@pytest.fixture
def sign():
    """Factory for webhook signature headers: sign(payload_bytes)."""
    return sign_payload
