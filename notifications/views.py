from django.db.models import Q
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from core.permissions import IsPlatformAdmin
from users.models import PlayerProfile

from .models import NotificationLogEntry
from .serializers import (
    NotificationLogEntrySerializer,
    SendCredentialsSerializer,
    BulkSendCredentialsSerializer,
)
from .services import send_credentials, send_bulk_credentials

MY_CREDENTIALS_LIMIT = 20


class SendCredentialsView(APIView):
    """
    POST /api/notifications/send-credentials/
    Body: { "registration_id", "tournament_id", "to_email", "subject", "message", "force" }
    """
    permission_classes = [IsPlatformAdmin]

    def post(self, request):
        serializer = SendCredentialsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = send_credentials(
            registration_id=data.get("registration_id"),
            tournament_id=data.get("tournament_id"),
            subject=data.get("subject"),
            message=data.get("message"),
            to_email=data.get("to_email"),
            force=data.get("force", False),
        )

        if not result["success"]:
            return Response(
                {
                    "success": False,
                    "status_code": status.HTTP_502_BAD_GATEWAY,
                    "errors": {"code": "delivery_failed", "detail": result["error"] or "Failed to send email"},
                    "to": result["to"],
                },
                status=status.HTTP_502_BAD_GATEWAY,
            )

        return Response(
            {
                "success": True,
                "to": result["to"],
                "message_id": result["message_id"],
                "skipped": result["skipped"],
            }
        )


class BulkSendCredentialsView(APIView):
    """
    POST /api/notifications/send-credentials/bulk/
    Body: { "tournament_id" | "registration_ids", "subject", "message", "status_filter" }

    Per-recipient failures are reported in the body, never as an error
    status.
    """
    permission_classes = [IsPlatformAdmin]

    def post(self, request):
        serializer = BulkSendCredentialsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        summary = send_bulk_credentials(
            tournament_id=data.get("tournament_id"),
            registration_ids=data.get("registration_ids"),
            subject=data.get("subject"),
            message=data.get("message"),
            status_filter=data.get("status_filter"),
        )
        return Response(summary)


class MyCredentialsView(APIView):
    """
    GET /api/notifications/my-credentials/

    Latest credential mails sent to the caller's auth or profile email.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        emails = [request.user.email]
        try:
            emails.append(request.user.player_profile.email)
        except PlayerProfile.DoesNotExist:
            pass
        emails = [e for e in emails if e]

        if not emails:
            return Response({"notifications": []})

        match = Q()
        for email in emails:
            match |= Q(recipient_email__iexact=email)

        qs = (
            NotificationLogEntry.objects
            .filter(match, kind=NotificationLogEntry.KIND_CREDENTIALS)
            .select_related("tournament")
            .order_by("-sent_at")[:MY_CREDENTIALS_LIMIT]
        )
        return Response({"notifications": NotificationLogEntrySerializer(qs, many=True).data})
