"""Resolve a listing and its owner's credentials from the credential store."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.engine import Engine

from stay_settlement.db.readers.listings import get_listing_with_credentials
from stay_settlement.errors import NotFound
from stay_settlement.network.pms import PmsCredentials


@dataclass(frozen=True)
class BookableListing:
    id: str
    title: str
    owner_account_id: str
    pms_listing_id: int
    currency: str
    credentials: PmsCredentials
    payment_account_id: Optional[str] = None
    application_fee_percent: Optional[Decimal] = None


def resolve_bookable_listing(engine: Engine, listing_id: str) -> BookableListing:
    """
    Load a listing that can be booked through its owner's PMS.

    Raises:
        NotFound: If the listing does not exist, its owner account is
            inactive, or it has no PMS integration configured.
    """
    with engine.connect() as conn:
        row = get_listing_with_credentials(conn, listing_id)

    if row is None:
        raise NotFound("Listing not found", {"listing_id": listing_id})
    if (
        not row["owner_active"]
        or row["pms_listing_id"] is None
        or not row["pms_api_key"]
        or row["pms_customer_id"] is None
    ):
        raise NotFound("Listing has no PMS integration", {"listing_id": listing_id})

    return BookableListing(
        id=row["id"],
        title=row["title"],
        owner_account_id=row["owner_account_id"],
        pms_listing_id=row["pms_listing_id"],
        currency=row["currency"],
        credentials=PmsCredentials(
            api_key=row["pms_api_key"], customer_id=row["pms_customer_id"]
        ),
        payment_account_id=row["payment_account_id"],
        application_fee_percent=row["application_fee_percent"],
    )
