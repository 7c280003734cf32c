# notifications/services.py
"""
Credential and confirmation sends.

This is where at-most-once delivery is decided; the dispatcher itself
sends whatever it is given.
"""
from typing import Optional
import logging

from core.exceptions import RegistrationValidationError, UnresolvedRecipient
from tournaments.services import get_registration, get_tournament

from .dispatcher import NotificationDispatcher, already_delivered
from .emails import default_credentials_message, default_credentials_subject, registration_confirmed_content
from .models import NotificationLogEntry
from .resolver import (
    common_tournament_id,
    require_email,
    resolve_emails,
    resolve_registration,
    resolve_tournament_emails,
)

logger = logging.getLogger("cos.notifications")


def send_credentials(
    registration_id=None,
    tournament_id=None,
    subject: Optional[str] = None,
    message: Optional[str] = None,
    to_email: Optional[str] = None,
    force: bool = False,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> dict:
    """
    Send room credentials to one recipient.

    The recipient is ``to_email`` if given, otherwise resolved from the
    registration. A registration whose recipient already has a ``sent``
    credentials entry is skipped unless ``force`` is set.
    """
    if not registration_id and not tournament_id:
        raise RegistrationValidationError("registration_id or tournament_id is required")

    registration = None
    tournament = None

    if registration_id:
        registration = get_registration(registration_id)
        tournament = registration.tournament
        email = require_email(registration, override=to_email)
    else:
        email = (to_email or "").strip()
        if not email:
            raise UnresolvedRecipient("to_email is required when no registration is given")

    if tournament_id and (tournament is None or str(tournament.id) != str(tournament_id)):
        tournament = get_tournament(tournament_id)

    if registration is not None and not force and already_delivered(registration, email):
        logger.info(f"Credentials already sent to {email} for registration {registration.id}; skipping")
        return {"success": True, "skipped": True, "to": email, "message_id": None}

    dispatcher = dispatcher or NotificationDispatcher()
    result = dispatcher.send(
        [email],
        subject or default_credentials_subject(),
        message or default_credentials_message(),
        tournament=tournament,
        registration=registration,
    )
    outcome = result.outcomes[0]

    return {
        "success": outcome.success,
        "skipped": False,
        "to": email,
        "message_id": outcome.message_id,
        "error": outcome.error,
    }


def send_bulk_credentials(
    tournament_id=None,
    registration_ids=None,
    subject: Optional[str] = None,
    message: Optional[str] = None,
    status_filter=None,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> dict:
    """
    Send the same credentials mail to every resolved recipient of a
    tournament, or of an explicit list of registrations.

    ``status_filter`` (a string or list) matches payment status or
    lifecycle status. Duplicate addresses receive one mail.
    """
    if not tournament_id and not registration_ids:
        raise RegistrationValidationError("tournament_id or registration_ids is required")

    tournament = get_tournament(tournament_id) if tournament_id else None
    if tournament is None:
        # Log the sends against the tournament so later single sends can see them
        shared = common_tournament_id(registration_ids)
        if shared is not None:
            tournament = get_tournament(shared)

    if registration_ids:
        resolution = resolve_emails(registration_ids, status_filter=status_filter)
    else:
        resolution = resolve_tournament_emails(tournament.id, status_filter=status_filter)

    summary = {
        "success": True,
        "sent": 0,
        "total": len(resolution.emails),
        "recipients": resolution.emails,
        "failures": [],
        "unresolved": resolution.unresolved,
        "missing": resolution.missing,
    }

    if not resolution.emails:
        logger.info(f"Bulk credentials: no recipients resolved (tournament={tournament_id})")
        return summary

    dispatcher = dispatcher or NotificationDispatcher()
    result = dispatcher.send(
        resolution.emails,
        subject or default_credentials_subject(),
        message or default_credentials_message(),
        tournament=tournament,
    )

    summary["sent"] = result.succeeded
    summary["total"] = result.attempted
    summary["failures"] = result.to_dict()["failures"]
    return summary


def notify_registration_confirmed(registration, dispatcher: Optional[NotificationDispatcher] = None):
    """
    Tell the team a registration is confirmed. Best-effort: never raises.
    """
    try:
        email = resolve_registration(registration, override=registration.contact_email)
        if not email:
            logger.info(f"No address to confirm registration {registration.id}")
            return None

        kind = NotificationLogEntry.KIND_REGISTRATION_CONFIRMED
        if already_delivered(registration, email, kind=kind):
            return None

        subject, body = registration_confirmed_content(registration)
        dispatcher = dispatcher or NotificationDispatcher()
        return dispatcher.send(
            [email],
            subject,
            body,
            tournament=registration.tournament,
            registration=registration,
            kind=kind,
        )
    except Exception:
        logger.exception(f"Could not send confirmation for registration {registration.id}")
        return None
