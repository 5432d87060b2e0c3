from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy.engine import Engine

from stay_settlement.dependencies import get_db_engine
from stay_settlement.pricing.reconciliation import PricingPeriodData
from stay_settlement.routes._auth import get_caller
from stay_settlement.schemas.pricing_periods import PricingPeriodOut, PricingPeriodPayload
from stay_settlement.services.cancellation import Caller
from stay_settlement.services.pricing_periods import (
    apply_pricing_period,
    get_listing_periods,
    remove_pricing_period,
)

router = APIRouter()


@router.get("/listings/{listing_id}/pricing-periods", response_model=list[PricingPeriodOut])
def list_periods(
    listing_id: str, engine: Engine = Depends(get_db_engine)
) -> list[PricingPeriodOut]:
    return [PricingPeriodOut.from_data(p) for p in get_listing_periods(engine, listing_id)]


@router.post(
    "/listings/{listing_id}/pricing-periods",
    response_model=list[PricingPeriodOut],
    status_code=status.HTTP_201_CREATED,
)
def create_period(
    listing_id: str,
    payload: PricingPeriodPayload,
    caller: Caller = Depends(get_caller),
    engine: Engine = Depends(get_db_engine),
) -> list[PricingPeriodOut]:
    """
    Insert a price-override period; overlapping periods are trimmed or split.

    Returns:
        list[PricingPeriodOut]: All of the listing's periods after the change.
    """
    _, periods = apply_pricing_period(
        engine,
        PricingPeriodData(
            listing_id=listing_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            price=payload.price,
            percentage_adjustment=payload.percentage_adjustment,
            label=payload.label,
        ),
        caller=caller,
    )
    return [PricingPeriodOut.from_data(p) for p in periods]


@router.delete("/pricing-periods/{period_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_period(
    period_id: str,
    caller: Caller = Depends(get_caller),
    engine: Engine = Depends(get_db_engine),
) -> Response:
    remove_pricing_period(engine, period_id, caller=caller)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
