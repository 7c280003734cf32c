import logging

from django.conf import settings
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from core.exceptions import NotFound, StaleState
from core.permissions import can_view_registration
from notifications.services import notify_registration_confirmed
from tournaments.models import Registration
from tournaments.serializers import RegistrationSerializer
from tournaments.services import confirm_registration, get_registration

from .bridge import PaymentBridge
from .gateway import RazorpayGateway
from .serializers import CreateOrderSerializer, VerifyPaymentSerializer, PaymentFailedSerializer

logger = logging.getLogger("cos.payments")


def get_bridge() -> PaymentBridge:
    return PaymentBridge(RazorpayGateway.from_settings())


def _owned_registration(request, registration_id) -> Registration:
    registration = get_registration(registration_id)
    if not can_view_registration(request.user, registration):
        raise NotFound(f"Registration {registration_id} not found")
    return registration


def _confirm_paid(registration_id, actor) -> Registration:
    """
    A verified payment confirms the registration and mails the team.
    Replays find it already confirmed and leave it alone.
    """
    registration = get_registration(registration_id)
    if registration.status == Registration.STATUS_PAID:
        try:
            registration = confirm_registration(registration.id, actor=actor)
        except StaleState:
            # A concurrent verify confirmed it first
            registration = get_registration(registration_id)

    if registration.status == Registration.STATUS_CONFIRMED:
        notify_registration_confirmed(registration)
    return registration


class CreateOrderView(APIView):
    """
    POST /api/payments/create-order/
    Body: { "registration_id": "<uuid>" }

    The amount always comes from the tournament, never from the client.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        registration = _owned_registration(request, serializer.validated_data["registration_id"])
        order = get_bridge().create_order(registration.id)

        return Response(
            {"success": True, "order": order, "key_id": settings.RAZORPAY_KEY_ID},
            status=status.HTTP_201_CREATED,
        )


class VerifyPaymentView(APIView):
    """
    POST /api/payments/verify/
    Body: { "razorpay_payment_id", "razorpay_order_id", "razorpay_signature", "registration_id" }

    Without a registration_id, the caller's most recent registration still
    awaiting payment is used; with none at all, only the payment itself is
    checked and "registration" is null. A verified registration is moved
    on to confirmed and the team is mailed.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        payment_id = data["razorpay_payment_id"]

        registration_id = data.get("registration_id")
        if registration_id:
            registration = _owned_registration(request, registration_id)
        else:
            registration = (
                Registration.objects
                .filter(user=request.user, status=Registration.STATUS_PENDING_PAYMENT)
                .order_by("-created_at")
                .first()
            ) or (
                # Replayed verification of an already applied payment
                Registration.objects
                .filter(user=request.user, transaction_id=payment_id)
                .first()
            )
            if registration is None:
                logger.info(f"Verify without registration: checking payment {payment_id} only for user={request.user.id}")
            else:
                logger.info(f"Verify without registration id: using {registration.id} for user={request.user.id}")

        verified = get_bridge().verify(
            payment_id,
            registration_id=registration.id if registration is not None else None,
            order_id=data.get("razorpay_order_id") or None,
            signature=data.get("razorpay_signature") or None,
        )

        if not verified:
            return Response(
                {
                    "success": False,
                    "status_code": status.HTTP_400_BAD_REQUEST,
                    "errors": {"code": "payment_not_verified", "detail": "Payment could not be verified"},
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        if registration is None:
            return Response({"success": True, "registration": None})

        registration = _confirm_paid(registration.id, request.user)
        return Response({"success": True, "registration": RegistrationSerializer(registration).data})


class PaymentFailedView(APIView):
    """
    POST /api/payments/failed/
    Body: { "registration_id": "<uuid>", "reason": "..." }

    Called by the checkout client when the gateway reports a failed
    payment.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = PaymentFailedSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        registration = _owned_registration(request, serializer.validated_data["registration_id"])
        registration = get_bridge().mark_failed(registration.id, serializer.validated_data.get("reason", ""))
        return Response({"success": True, "registration": RegistrationSerializer(registration).data})
