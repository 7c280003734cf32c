# notifications/dispatcher.py
"""
Sends one e-mail per recipient and records every attempt.

Sends run one at a time in input order; a failure for one recipient never
stops the rest. There is no memory across calls: sending twice to the same
address delivers twice. Use ``already_delivered`` to gate at the call
site.
"""
from dataclasses import dataclass, field
from email.utils import make_msgid
from typing import List, Optional, Tuple
import logging

from django.conf import settings
from django.core.mail import get_connection
from django.core.mail.utils import DNS_NAME
from django.db import transaction
from django.db.models import Q

from .emails import build_message
from .models import NotificationLogEntry

logger = logging.getLogger("cos.notifications")


@dataclass
class DeliveryOutcome:
    email: str
    success: bool
    message_id: Optional[str] = None
    error: str = ""

    def to_dict(self) -> dict:
        return {"to": self.email, "success": self.success, "message_id": self.message_id, "error": self.error}


@dataclass
class DispatchResult:
    attempted: int = 0
    succeeded: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)
    outcomes: List[DeliveryOutcome] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failures": [{"to": email, "error": reason} for email, reason in self.failures],
        }


class NotificationDispatcher:
    """
    Wraps a Django mail connection. Build one per batch; it holds no
    state between ``send`` calls.
    """

    def __init__(self, connection=None, from_email: Optional[str] = None):
        self.connection = connection or get_connection()
        self.from_email = from_email or getattr(settings, "DEFAULT_FROM_EMAIL", None)

    def send(
        self,
        recipients,
        subject: str,
        body: str,
        tournament=None,
        registration=None,
        kind: str = NotificationLogEntry.KIND_CREDENTIALS,
        html_body: Optional[str] = None,
    ) -> DispatchResult:
        result = DispatchResult()

        for email in recipients:
            outcome = self._deliver(email, subject, body, html_body)
            result.attempted += 1
            result.outcomes.append(outcome)
            if outcome.success:
                result.succeeded += 1
            else:
                result.failures.append((email, outcome.error))

            self._record(outcome, subject, body, kind, tournament, registration)

        logger.info(
            f"Dispatched '{subject}': attempted={result.attempted}, "
            f"succeeded={result.succeeded}, failed={len(result.failures)}"
        )
        return result

    def _deliver(self, email: str, subject: str, body: str, html_body: Optional[str]) -> DeliveryOutcome:
        message_id = make_msgid(domain=DNS_NAME)
        try:
            message = build_message(
                email,
                subject,
                body,
                html_body=html_body,
                from_email=self.from_email,
                connection=self.connection,
                headers={"Message-ID": message_id},
            )
            sent = message.send(fail_silently=False)
        except Exception as exc:
            logger.warning(f"Email to {email} failed: {exc}")
            return DeliveryOutcome(email=email, success=False, error=str(exc) or exc.__class__.__name__)

        if not sent:
            logger.warning(f"Email to {email} was not accepted by the backend")
            return DeliveryOutcome(email=email, success=False, error="Message was not accepted by the email backend")

        return DeliveryOutcome(email=email, success=True, message_id=message_id)

    def _record(self, outcome: DeliveryOutcome, subject, body, kind, tournament, registration):
        try:
            with transaction.atomic():
                NotificationLogEntry.objects.create(
                    recipient_email=outcome.email,
                    subject=subject[:255],
                    body=body,
                    kind=kind,
                    tournament=tournament,
                    registration=registration,
                    status=NotificationLogEntry.STATUS_SENT if outcome.success else NotificationLogEntry.STATUS_FAILED,
                    provider_message_id=outcome.message_id,
                    error=outcome.error,
                )
        except Exception:
            # Delivery already happened; a missing log row must not fail the send
            logger.exception(f"Failed to log notification to {outcome.email}")


def already_delivered(registration, email: Optional[str] = None, kind: str = NotificationLogEntry.KIND_CREDENTIALS) -> bool:
    """
    True when ``kind`` was already sent for ``registration``.

    With an ``email``, a send logged against the tournament alone (bulk and
    direct-address sends carry no registration) to that address counts too.
    """
    qs = NotificationLogEntry.objects.filter(kind=kind, status=NotificationLogEntry.STATUS_SENT)
    if not email:
        return qs.filter(registration=registration).exists()

    return qs.filter(
        Q(registration=registration)
        | Q(registration__isnull=True, tournament_id=registration.tournament_id),
        recipient_email__iexact=email,
    ).exists()
