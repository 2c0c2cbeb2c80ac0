"""
StayHub Backend: Payment Session Manager (Stripe)
==================================================

What:  Hosted checkout sessions, webhook verification and the booking that
       a completed checkout turns into.
How:   The Stripe SDK is synchronous, so every API call runs in Starlette's
       threadpool to keep the event loop free.

Flow:
    POST /api/payments/create-checkout-session
        → stripe.checkout.Session.create(...)  → {url, sessionId}
    browser pays on Stripe's page, Stripe redirects to success/cancel URL
    POST /api/payments/webhook (signed)
        → verify_webhook → handle_event → bookings row (status "paid")

Amounts:
    Clients send major units (150.5); Stripe wants minor units, so
    unit_amount = round(amount * 100) = 15050.

    The paid booking is still priced like any other booking (room price ×
    nights); a charged amount that differs is logged, not stored.

Idempotency:
    Stripe redelivers webhooks until it gets a 2xx. The booking carries the
    checkout session id in a unique column, so a redelivered event finds the
    existing row and does nothing.

    Events that can never succeed (unknown customer email, room gone,
    unreadable dates) are logged and acknowledged; retrying them would only
    repeat the failure. Database errors propagate as 500 so Stripe retries.
"""

import json
import logging
import math
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

import stripe
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from starlette.concurrency import run_in_threadpool

from stayhub.config import settings
from stayhub.exceptions import (
    DatabaseError,
    PaymentServiceError,
    StayHubError,
    ValidationError,
)
from stayhub.models.booking import BOOKING_PAID, Booking
from stayhub.models.room import Room
from stayhub.models.user import User
from stayhub.schemas.payment import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    PaymentVerification,
)
from stayhub.services.booking_service import booking_out, count_nights
from stayhub.services.stats import increment_counter

logger = logging.getLogger(__name__)

SESSION_COMPLETED = "checkout.session.completed"
SESSION_EXPIRED = "checkout.session.expired"
SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


def to_minor_units(amount: float) -> int:
    """
    >>> to_minor_units(150.5)
    15050
    """
    return int(round(amount * 100))


def default_redirect_urls() -> Tuple[str, str]:
    """Success and cancel URLs for the configured client type."""
    if settings.app_type == "mobile":
        base = f"{settings.mobile_app_scheme}://payment"
    else:
        base = f"{settings.frontend_url.rstrip('/')}/payment"
    return f"{base}/success?session_id={SESSION_ID_PLACEHOLDER}", f"{base}/cancel"


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _parse_uuid(value: Optional[str]) -> Optional[uuid.UUID]:
    if not value:
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


class PaymentService:

    @staticmethod
    def _configure() -> None:
        if not settings.stripe_secret_key:
            raise PaymentServiceError(
                message="El procesador de pagos no está configurado",
                context={"missing": "STRIPE_SECRET_KEY"},
            )
        stripe.api_key = settings.stripe_secret_key

    def validate_amount(self, amount: Optional[float]) -> float:
        if amount is None or not math.isfinite(amount) or amount <= 0:
            raise ValidationError(
                message="El monto debe ser un número válido mayor a 0",
                field="amount",
            )
        return amount

    def build_session_params(
        self, request: CheckoutSessionRequest, customer_email: Optional[str] = None
    ) -> Dict[str, Any]:
        """Keyword arguments for stripe.checkout.Session.create."""
        amount = self.validate_amount(request.amount)
        details = request.room_details
        default_success, default_cancel = default_redirect_urls()

        description = (
            f"Check-in: {details.check_in or '-'}\n"
            f"Check-out: {details.check_out or '-'}\n"
            f"Huéspedes: {details.guests}"
        )

        params: Dict[str, Any] = {
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": (request.currency or settings.default_currency).lower(),
                        "product_data": {
                            "name": details.name,
                            "description": description,
                            "images": [settings.checkout_product_image],
                        },
                        "unit_amount": to_minor_units(amount),
                    },
                    "quantity": 1,
                }
            ],
            "mode": "payment",
            "success_url": request.success_url or default_success,
            "cancel_url": request.cancel_url or default_cancel,
            "locale": settings.checkout_locale,
            "metadata": {
                "room_id": str(details.room_id) if details.room_id else "",
                "check_in": details.check_in or "",
                "check_out": details.check_out or "",
                "guests": str(details.guests),
            },
        }
        email = request.email or customer_email
        if email:
            params["customer_email"] = email
        return params

    async def create_checkout_session(
        self, request: CheckoutSessionRequest, customer_email: Optional[str] = None
    ) -> CheckoutSessionResponse:
        """
        Raises:
            ValidationError: amount missing, not finite, or <= 0
            PaymentServiceError: Stripe rejected the request or is unreachable
        """
        params = self.build_session_params(request, customer_email)
        self._configure()

        try:
            checkout = await run_in_threadpool(stripe.checkout.Session.create, **params)
        except stripe.StripeError as e:
            logger.error("Checkout session creation failed: %s", str(e), exc_info=True)
            raise PaymentServiceError(
                message="Error al procesar el pago",
                context={"stripe_error": type(e).__name__},
            )

        logger.info(
            "Checkout session %s created (%s %s)",
            checkout.id,
            params["line_items"][0]["price_data"]["unit_amount"],
            params["line_items"][0]["price_data"]["currency"],
        )
        return CheckoutSessionResponse(url=checkout.url, session_id=checkout.id)

    def verify_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Check the Stripe-Signature header against the raw body.

        Returns the event as plain JSON once the signature checks out.

        Raises:
            ValidationError: header missing, signature invalid, or body not JSON
        """
        if not signature:
            raise ValidationError(message="Webhook Error: missing signature", field="stripe-signature")

        try:
            stripe.Webhook.construct_event(payload, signature, settings.stripe_webhook_secret)
            return json.loads(payload)
        except stripe.SignatureVerificationError as e:
            logger.warning("Webhook signature rejected: %s", str(e))
            raise ValidationError(message=f"Webhook Error: {e}", field="stripe-signature")
        except ValueError as e:
            raise ValidationError(message=f"Webhook Error: {e}")

    async def handle_event(self, session: AsyncSession, event: Dict[str, Any]) -> None:
        event_type = event.get("type")
        checkout = (event.get("data") or {}).get("object") or {}

        if event_type == SESSION_COMPLETED:
            logger.info("Checkout session %s completed", checkout.get("id"))
            await self._record_paid_booking(session, checkout)
        elif event_type == SESSION_EXPIRED:
            logger.info("Checkout session %s expired", checkout.get("id"))
        else:
            logger.debug("Ignoring webhook event %s", event_type)

    async def _record_paid_booking(self, session: AsyncSession, checkout: Dict[str, Any]) -> None:
        session_id = checkout.get("id")
        metadata = checkout.get("metadata") or {}

        try:
            existing = await session.scalar(
                select(Booking.id).where(Booking.payment_session_id == session_id)
            )
            if existing is not None:
                logger.info("Checkout session %s already recorded as booking %s", session_id, existing)
                return

            email = (checkout.get("customer_details") or {}).get("email") or checkout.get(
                "customer_email"
            )
            user_id = None
            if email:
                user_id = await session.scalar(
                    select(User.id).where(func.lower(User.email) == email.lower())
                )
            if user_id is None:
                logger.warning("Checkout session %s: no user for the customer email", session_id)
                return

            room_id = _parse_uuid(metadata.get("room_id"))
            room = None
            if room_id is not None:
                room = await session.scalar(select(Room).where(Room.id == room_id))
            if room is None:
                logger.warning(
                    "Checkout session %s: room %r no longer exists", session_id, metadata.get("room_id")
                )
                return

            start = _parse_date(metadata.get("check_in"))
            end = _parse_date(metadata.get("check_out"))
            nights = count_nights(start, end) if start is not None and end is not None else 0
            if nights <= 0:
                logger.warning("Checkout session %s: unusable stay dates in metadata", session_id)
                return

            # amount_total follows the client-sent amount
            price = Decimal(room.price) * nights
            charged = checkout.get("amount_total")
            if charged is None or Decimal(charged) / 100 != price:
                logger.warning(
                    "Checkout session %s: charged %s minor units, room price for %d nights is %s",
                    session_id,
                    charged,
                    nights,
                    price,
                )

            booking = Booking(
                user_id=user_id,
                room_id=room.id,
                start_date=start,
                end_date=end,
                price=price,
                status=BOOKING_PAID,
                payment_session_id=session_id,
            )
            session.add(booking)
            await session.flush()
            await increment_counter(session, user_id, "bookings", 1)
        except StayHubError:
            raise
        except Exception as e:
            logger.error(
                "Could not record booking for checkout session %s: %s", session_id, str(e), exc_info=True
            )
            raise DatabaseError(
                message="Error al registrar la reserva pagada",
                context={"session_id": session_id, "original_error": type(e).__name__},
            )

        logger.info("Paid booking %s recorded for checkout session %s", booking.id, session_id)

    async def verify_payment(
        self, session: AsyncSession, user_id: uuid.UUID, session_id: str
    ) -> PaymentVerification:
        """Status of a checkout session plus the caller's booking for it, if any."""
        self._configure()

        try:
            checkout = await run_in_threadpool(stripe.checkout.Session.retrieve, session_id)
        except stripe.InvalidRequestError as e:
            raise ValidationError(
                message="Sesión de pago no válida",
                field="sessionId",
                context={"stripe_error": str(e)},
            )
        except stripe.StripeError as e:
            logger.error("Checkout session lookup failed: %s", str(e), exc_info=True)
            raise PaymentServiceError(message="Error al verificar el pago")

        result = await session.execute(
            select(Booking)
            .options(selectinload(Booking.room).selectinload(Room.images))
            .where(Booking.payment_session_id == session_id, Booking.user_id == user_id)
        )
        booking = result.scalar_one_or_none()

        customer_details = checkout.customer_details
        customer_email = checkout.customer_email
        if not customer_email and customer_details is not None:
            customer_email = customer_details.email

        return PaymentVerification(
            session_id=checkout.id,
            status=checkout.status,
            payment_status=checkout.payment_status,
            amount_total=checkout.amount_total / 100 if checkout.amount_total is not None else None,
            currency=checkout.currency,
            customer_email=customer_email,
            metadata=dict(checkout.metadata or {}),
            booking=booking_out(booking) if booking is not None else None,
        )


# Singleton instance
payment_service = PaymentService()
