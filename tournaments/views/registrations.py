from datetime import timedelta
import logging

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from core.exceptions import NotFound
from core.permissions import IsPlatformAdmin, can_view_registration, is_platform_admin
from notifications.services import notify_registration_confirmed
from tournaments import reaper
from tournaments.models import Registration
from tournaments.serializers import RegistrationSerializer, TransitionSerializer, SweepSerializer
from tournaments.services import create_registration, cancel_registration, get_registration
from tournaments.state_machine import transition

logger = logging.getLogger("cos.tournaments")


class RegisterTournamentView(APIView):
    """
    POST /api/tournaments/<tournament_id>/register/

    Paid tournaments answer with requires_payment=True and the amount the
    client should create a gateway order for.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, tournament_id):
        registration = create_registration(request.user, tournament_id, request.data)
        tournament = registration.tournament
        data = {
            "registration": RegistrationSerializer(registration).data,
            "requires_payment": registration.status == Registration.STATUS_PENDING_PAYMENT,
        }
        if data["requires_payment"]:
            data["message"] = "Registration pending payment confirmation"
            data["amount"] = str(tournament.entry_fee)
            data["currency"] = tournament.currency
        else:
            data["message"] = "Registration successful"
            notify_registration_confirmed(registration)
        return Response(data, status=status.HTTP_201_CREATED)


class MyRegistrationsView(APIView):
    """
    GET /api/tournaments/registrations/me/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        regs = (
            Registration.objects
            .filter(user=request.user)
            .select_related("tournament", "user")
            .order_by("-created_at")
        )
        return Response(RegistrationSerializer(regs, many=True).data)


class RegistrationDetailView(APIView):
    """
    GET /api/tournaments/registrations/<uuid>/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, registration_id):
        registration = get_registration(registration_id)
        if not can_view_registration(request.user, registration):
            # Don't leak existence of other users' registrations
            raise NotFound(f"Registration {registration_id} not found")
        return Response(RegistrationSerializer(registration).data)


class CancelRegistrationView(APIView):
    """
    POST /api/tournaments/registrations/<uuid>/cancel/

    Owners may withdraw a registration that has not been paid.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, registration_id):
        registration = get_registration(registration_id)
        if not can_view_registration(request.user, registration):
            raise NotFound(f"Registration {registration_id} not found")

        registration = cancel_registration(
            registration.id,
            actor=request.user,
            reason="withdrawn by admin" if is_platform_admin(request.user) and registration.user_id != request.user.id else "withdrawn by player",
        )
        return Response(RegistrationSerializer(registration).data)


class RegistrationTransitionView(APIView):
    """
    POST /api/tournaments/registrations/<uuid>/transition/
    Body: { "status": "confirmed", "expected": "paid", "reason": "..." }
    """
    permission_classes = [IsPlatformAdmin]

    def post(self, request, registration_id):
        serializer = TransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        registration = transition(
            registration_id,
            serializer.validated_data["status"],
            expected=serializer.validated_data.get("expected"),
            actor=request.user,
            reason=serializer.validated_data.get("reason", ""),
        )
        if registration.status == Registration.STATUS_CONFIRMED:
            notify_registration_confirmed(registration)
        return Response(RegistrationSerializer(registration).data)


class PendingRegistrationsMaintenanceView(APIView):
    """
    GET  /api/tournaments/maintenance/pending/   preview stale pending rows
    POST /api/tournaments/maintenance/pending/   delete them
    Optional: ?max_age_minutes= / {"max_age_minutes": N}
    """
    permission_classes = [IsPlatformAdmin]

    def _max_age(self, data):
        serializer = SweepSerializer(data=data)
        serializer.is_valid(raise_exception=True)
        minutes = serializer.validated_data.get("max_age_minutes")
        return timedelta(minutes=minutes) if minutes is not None else None

    def get(self, request):
        return Response({"success": True, "summary": reaper.preview(self._max_age(request.query_params))})

    def post(self, request):
        result = reaper.sweep(self._max_age(request.data))
        logger.info(f"Pending registration sweep triggered by user={request.user.id}: removed={result.removed_count}")

        if result.removed_count == 0:
            message = "No pending registrations to clean up"
        else:
            message = f"Cleanup completed. Removed {result.removed_count} pending registrations"

        return Response({"success": True, "message": message, **result.to_dict()})
