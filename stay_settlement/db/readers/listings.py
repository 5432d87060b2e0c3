from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from stay_settlement.models.accounts import OwnerAccount
from stay_settlement.models.listings import Listing


def get_listing_with_credentials(conn: Connection, listing_id: str) -> Optional[dict[str, Any]]:
    """
    Fetch a listing together with its owner's PMS and payout credentials.

    This is the credential store lookup: the settlement services receive the
    returned credentials as explicit arguments instead of resolving them
    themselves.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        listing_id (str): Portal listing ID.

    Returns:
        Optional[dict[str, Any]]: Listing columns plus pms_api_key,
        pms_customer_id, payment_account_id, application_fee_percent and
        owner_active, or None if the
        listing does not exist.
    """
    result = conn.execute(
        select(
            Listing.id,
            Listing.title,
            Listing.owner_account_id,
            Listing.pms_listing_id,
            Listing.currency,
            OwnerAccount.pms_api_key,
            OwnerAccount.pms_customer_id,
            OwnerAccount.payment_account_id,
            OwnerAccount.application_fee_percent,
            OwnerAccount.is_active.label("owner_active"),
        )
        .join(OwnerAccount, OwnerAccount.id == Listing.owner_account_id)
        .where(Listing.id == listing_id)
    )
    row = result.mappings().fetchone()
    return dict(row) if row else None


def listing_exists(conn: Connection, listing_id: str) -> bool:
    """
    Check if a listing exists.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        listing_id (str): Portal listing ID.

    Returns:
        bool: True if the listing exists, False otherwise.
    """
    result = conn.execute(select(Listing.id).where(Listing.id == listing_id))
    return result.fetchone() is not None
