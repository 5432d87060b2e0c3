from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from stay_settlement.pricing.reconciliation import PricingPeriodData


class PricingPeriodPayload(BaseModel):
    """
    Schema for creating a price-override period.

    Both dates are inclusive. Either a fixed nightly price or a percentage
    adjustment must be given.
    """

    start_date: date = Field(..., description="First day of the period")
    end_date: date = Field(..., description="Last day of the period (inclusive)")
    price: Optional[int] = Field(None, ge=0, description="Nightly price in minor units")
    percentage_adjustment: Optional[int] = Field(
        None, ge=-100, description="Adjustment applied to the base rate, in percent"
    )
    label: Optional[str] = Field(None, max_length=100, description="Display label")

    @model_validator(mode="after")
    def check_price_or_adjustment(self) -> "PricingPeriodPayload":
        if self.price is None and self.percentage_adjustment is None:
            raise ValueError("either price or percentage_adjustment is required")
        return self


class PricingPeriodOut(BaseModel):
    id: Optional[str]
    listing_id: str
    start_date: date
    end_date: date
    price: Optional[int] = None
    percentage_adjustment: Optional[int] = None
    label: Optional[str] = None

    @classmethod
    def from_data(cls, period: PricingPeriodData) -> "PricingPeriodOut":
        return cls(
            id=period.id,
            listing_id=period.listing_id,
            start_date=period.start_date,
            end_date=period.end_date,
            price=period.price,
            percentage_adjustment=period.percentage_adjustment,
            label=period.label,
        )
