from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class GuestContactPayload(BaseModel):
    """Contact details of the guest making the booking."""

    first_name: str = Field(..., min_length=1, description="Guest first name")
    last_name: str = Field(..., min_length=1, description="Guest last name")
    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$", description="Guest email")
    phone: Optional[str] = Field(None, description="Guest phone number")
    adults: int = Field(..., ge=1, description="Number of adults")
    children: int = Field(0, ge=0, description="Number of children")
    note: Optional[str] = Field(None, max_length=2000, description="Free-text note for the host")


class CheckoutPayload(BaseModel):
    """
    Schema for opening a checkout session.

    client_computed_price is the total the guest was shown, in minor units.
    It is only used for comparison; the amount charged is always recomputed.
    """

    listing_id: str = Field(..., min_length=1, description="Portal listing ID")
    check_in: date = Field(..., description="Arrival date")
    check_out: date = Field(..., description="Departure date (exclusive)")
    guests: int = Field(..., ge=1, description="Total number of guests")
    currency: str = Field(..., min_length=3, max_length=3, description="ISO 4217 currency code")
    client_computed_price: int = Field(..., ge=0, description="Client total in minor units")
    guest_contact: GuestContactPayload


class CheckoutResponse(BaseModel):
    redirect_url: str
