# payments/bridge.py
"""
Connects gateway payments to registration state.

Creating an order never changes a registration's status. A verified
capture moves the registration pending_payment → paid through the state
machine, carrying the gateway payment id as ``transaction_id``.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
import logging

from django.utils import timezone

from core.exceptions import InvalidTransition, RegistrationValidationError, StaleState
from tournaments.models import Registration
from tournaments.services import get_registration
from tournaments.state_machine import COUNTED_STATES, transition

from .gateway import RazorpayGateway

logger = logging.getLogger("cos.payments")

CAPTURED = "captured"


def to_minor_units(amount) -> int:
    """
    Major currency units to the gateway's smallest unit (rupees → paise).
    """
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentBridge:
    def __init__(self, gateway: RazorpayGateway):
        self.gateway = gateway

    def create_order(self, registration_id, amount=None, currency: Optional[str] = None) -> dict:
        """
        Create a gateway order for a registration awaiting payment.

        ``amount`` defaults to the tournament entry fee. On success the
        order id is stored on the registration if it is still pending.
        """
        registration = get_registration(registration_id)
        tournament = registration.tournament

        if registration.status != Registration.STATUS_PENDING_PAYMENT:
            raise InvalidTransition(
                registration.status,
                Registration.STATUS_PAID,
                detail="Registration is not awaiting payment",
            )

        amount = tournament.entry_fee if amount is None else amount
        amount_minor = to_minor_units(amount)
        if amount_minor <= 0:
            raise RegistrationValidationError("Payment amount must be greater than zero")

        currency = currency or tournament.currency
        receipt = f"reg_{registration.id.hex[:12]}"

        order = self.gateway.create_order(
            amount_minor,
            currency=currency,
            receipt=receipt,
            notes={
                "registration_id": str(registration.id),
                "tournament_id": str(tournament.id),
                "team_name": registration.team_name,
            },
        )

        stored = Registration.objects.filter(
            pk=registration.id,
            status=Registration.STATUS_PENDING_PAYMENT,
        ).update(gateway_order_id=order.get("id"), updated_at=timezone.now())
        if not stored:
            logger.warning(f"Order {order.get('id')} created but registration {registration.id} left pending_payment")

        return {
            "order_id": order.get("id"),
            "amount": order.get("amount", amount_minor),
            "currency": order.get("currency", currency),
            "receipt": order.get("receipt", receipt),
            "registration_id": str(registration.id),
        }

    def verify(
        self,
        payment_id: str,
        registration_id=None,
        order_id: Optional[str] = None,
        signature: Optional[str] = None,
    ) -> bool:
        """
        Returns True when the payment is authentic and captured.

        With a ``registration_id``, a verified payment also moves that
        registration to ``paid``. Verifying the same payment twice is
        harmless; any other lost race raises StaleState.
        """
        if order_id or signature:
            if not self.gateway.verify_signature(order_id, payment_id, signature):
                logger.warning(f"Payment signature mismatch: payment={payment_id}, order={order_id}")
                return False

        payment = self.gateway.fetch_payment(payment_id)
        if payment.get("status") != CAPTURED:
            logger.info(f"Payment {payment_id} not captured (status={payment.get('status')})")
            return False

        if order_id and payment.get("order_id") and payment["order_id"] != order_id:
            logger.warning(f"Payment {payment_id} belongs to order {payment['order_id']}, not {order_id}")
            return False

        if registration_id is None:
            return True

        registration = get_registration(registration_id)
        if registration.gateway_order_id and payment.get("order_id") and registration.gateway_order_id != payment["order_id"]:
            logger.warning(
                f"Payment {payment_id} is for order {payment['order_id']}, "
                f"registration {registration_id} expects {registration.gateway_order_id}"
            )
            return False

        try:
            transition(
                registration_id,
                Registration.STATUS_PAID,
                expected=Registration.STATUS_PENDING_PAYMENT,
                reason=f"payment {payment_id} captured",
                updates={"transaction_id": payment_id},
            )
        except StaleState:
            current = (
                Registration.objects
                .filter(pk=registration_id)
                .values("status", "transaction_id")
                .first()
            )
            if current and current["transaction_id"] == payment_id and current["status"] in COUNTED_STATES:
                logger.info(f"Payment {payment_id} already applied to registration {registration_id}")
                return True
            raise

        logger.info(f"Payment verified: payment={payment_id}, registration={registration_id}")
        return True

    def mark_failed(self, registration_id, reason: str = "") -> Registration:
        """
        Record a gateway-reported failure: pending_payment → failed.
        """
        return transition(
            registration_id,
            Registration.STATUS_FAILED,
            expected=Registration.STATUS_PENDING_PAYMENT,
            reason=reason or "payment failed",
        )
