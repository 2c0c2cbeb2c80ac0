"""
StayHub Backend: Payment Schemas
=================================

What:  Checkout session request/response, webhook acknowledgement and the
       payment verification view.
"""

import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from stayhub.schemas.booking import BookingOut
from stayhub.schemas.common import CamelModel


class RoomDetails(CamelModel):
    """
    Stay description shown on the hosted checkout page and echoed back in
    the session metadata so the webhook can create the booking.
    """
    name: str = Field(default="Habitación Estándar", max_length=255)
    room_id: Optional[uuid.UUID] = Field(default=None, alias="roomId")
    check_in: Optional[str] = Field(default=None, alias="checkIn")
    check_out: Optional[str] = Field(default=None, alias="checkOut")
    guests: int = Field(default=1, ge=1, le=50)


class CheckoutSessionRequest(CamelModel):
    # Validated by the payment service so missing, zero and negative amounts
    # all produce the same 400
    amount: Optional[float] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    room_details: RoomDetails = Field(default_factory=RoomDetails, alias="roomDetails")
    success_url: Optional[str] = Field(default=None, alias="successUrl")
    cancel_url: Optional[str] = Field(default=None, alias="cancelUrl")
    email: Optional[str] = None


class CheckoutSessionResponse(CamelModel):
    url: str
    session_id: str = Field(alias="sessionId")


class WebhookAck(BaseModel):
    received: bool = True


class PaymentVerification(CamelModel):
    session_id: str = Field(alias="sessionId")
    status: Optional[str] = None
    payment_status: Optional[str] = Field(default=None, alias="paymentStatus")
    amount_total: Optional[float] = Field(default=None, alias="amountTotal")
    currency: Optional[str] = None
    customer_email: Optional[str] = Field(default=None, alias="customerEmail")
    metadata: Dict[str, Any] = Field(default_factory=dict)
    booking: Optional[BookingOut] = None
