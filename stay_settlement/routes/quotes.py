from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.engine import Engine

from stay_settlement.dependencies import get_db_engine, get_pms_client
from stay_settlement.network.pms import PmsClient
from stay_settlement.services.quotes import quote_stay

router = APIRouter()


@router.get("/listings/{listing_id}/quote")
def get_quote(
    listing_id: str,
    check_in: date = Query(..., description="Arrival date"),
    check_out: date = Query(..., description="Departure date (exclusive)"),
    guests: int = Query(1, ge=1, description="Total number of guests"),
    engine: Engine = Depends(get_db_engine),
    pms: PmsClient = Depends(get_pms_client),
) -> dict[str, Any]:
    """
    Indicative price and bookability of a stay.

    Example:
        >>> GET /listings/villa-1/quote?check_in=2025-07-01&check_out=2025-07-05&guests=2
        {"nights": 4, "total_price": 50000, "per_night_price": 12500, ...}
    """
    rendered = quote_stay(
        engine, pms, listing_id, check_in.isoformat(), check_out.isoformat(), guests
    )
    return {
        "listing_id": rendered.listing_id,
        "check_in": rendered.check_in,
        "check_out": rendered.check_out,
        "currency": rendered.currency,
        **rendered.quote.to_dict(),
        "min_nights": rendered.min_nights,
        "available": rendered.available,
        "rejection": rendered.rejection.to_dict() if rendered.rejection else None,
    }
