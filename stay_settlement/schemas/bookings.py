from pydantic import BaseModel


class CancellationResponse(BaseModel):
    booking_id: str
    status: str
