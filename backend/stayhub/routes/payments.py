"""
StayHub Backend: Payment Route Handlers
========================================

What:  Checkout session creation, the Stripe webhook and payment
       verification.

Webhook:
    Public (Stripe can't send a bearer token) and excluded from the rate
    limiter. The signature is checked against the raw body, so the handler
    reads request.body() itself instead of declaring a JSON body model.
    It runs on the trusted session: the booking belongs to the customer,
    not to any caller.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.auth import get_current_principal, get_scoped_session
from stayhub.database import get_db_session
from stayhub.schemas.common import ErrorResponse
from stayhub.schemas.payment import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    PaymentVerification,
    WebhookAck,
)
from stayhub.services.identity_service import Principal
from stayhub.services.payment_service import payment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["Payments"])


@router.post(
    "/create-checkout-session",
    response_model=CheckoutSessionResponse,
    responses={
        400: {"description": "Amount missing or not positive", "model": ErrorResponse},
        500: {"description": "Stripe error", "model": ErrorResponse},
    },
    summary="Create a hosted checkout session",
)
async def create_checkout_session(
    body: CheckoutSessionRequest,
    principal: Principal = Depends(get_current_principal),
) -> CheckoutSessionResponse:
    return await payment_service.create_checkout_session(body, customer_email=principal.email)


@router.post(
    "/webhook",
    response_model=WebhookAck,
    responses={
        400: {"description": "Signature or payload invalid", "model": ErrorResponse},
        500: {"description": "Booking could not be recorded; Stripe retries", "model": ErrorResponse},
    },
    summary="Stripe webhook receiver",
)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="stripe-signature"),
    db: AsyncSession = Depends(get_db_session),
) -> WebhookAck:
    payload = await request.body()
    event = payment_service.verify_webhook(payload, stripe_signature)
    await payment_service.handle_event(db, event)
    return WebhookAck()


@router.get(
    "/verify-payment/{session_id}",
    response_model=PaymentVerification,
    responses={
        400: {"description": "Unknown checkout session", "model": ErrorResponse},
        500: {"description": "Stripe error", "model": ErrorResponse},
    },
    summary="Status of a checkout session and its booking",
)
async def verify_payment(
    session_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> PaymentVerification:
    return await payment_service.verify_payment(db, principal.user_id, session_id)
