# tournaments/state_machine.py
"""
Registration state machine.

    pending_payment → paid → confirmed
          │
          ├→ failed
          └→ cancelled

Any transition not in VALID_TRANSITIONS is rejected. Writes are
compare-and-set: the UPDATE only matches while the row still holds the
expected prior status, so two callers racing on one registration cannot
both win (the loser gets StaleState).
"""
from typing import Optional, Tuple
import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from core.exceptions import InvalidTransition, NotFound, StaleState
from .models import Registration, Tournament

logger = logging.getLogger("cos.tournaments")


VALID_TRANSITIONS = {
    Registration.STATUS_PENDING_PAYMENT: {
        Registration.STATUS_PAID,
        Registration.STATUS_FAILED,
        Registration.STATUS_CANCELLED,
    },
    Registration.STATUS_PAID: {Registration.STATUS_CONFIRMED},
    Registration.STATUS_CONFIRMED: set(),
    Registration.STATUS_FAILED: set(),
    Registration.STATUS_CANCELLED: set(),
}

# States that occupy a team slot in the tournament counter
COUNTED_STATES = {Registration.STATUS_PAID, Registration.STATUS_CONFIRMED}

# Never writable through transition(updates=...)
PROTECTED_FIELDS = {"id", "status", "payment_status", "tournament", "tournament_id", "user", "user_id", "created_at"}


def can_transition(current: str, target: str) -> Tuple[bool, str]:
    """
    Check if a registration in ``current`` may move to ``target``.

    Returns (can_transition: bool, reason: str)
    """
    if target not in VALID_TRANSITIONS:
        return False, f"Invalid status: {target}"

    if target not in VALID_TRANSITIONS.get(current, set()):
        return False, f"Cannot transition from '{current}' to '{target}'"

    return True, ""


def transition(
    registration_id,
    target: str,
    expected: Optional[str] = None,
    actor=None,
    reason: str = "",
    updates: Optional[dict] = None,
) -> Registration:
    """
    Move a registration to ``target``.

    Args:
        registration_id: The registration to move
        target: The target status
        expected: Prior status the caller believes the row is in. Defaults
            to the status read at call time.
        actor: The user performing the action (for logging)
        reason: Free text recorded in the audit log line
        updates: Extra columns written in the same conditional UPDATE
            (e.g. transaction_id)

    Raises InvalidTransition, StaleState or NotFound. Returns the fresh row.
    """
    updates = dict(updates or {})
    protected = PROTECTED_FIELDS.intersection(updates)
    if protected:
        raise ValueError(f"Fields cannot be set through a transition: {sorted(protected)}")

    actor_id = getattr(actor, "id", "system")

    with transaction.atomic():
        row = (
            Registration.objects
            .filter(pk=registration_id)
            .values("status", "payment_status", "tournament_id")
            .first()
        )
        if row is None:
            raise NotFound(f"Registration {registration_id} not found")

        prior = expected or row["status"]
        can, why = can_transition(prior, target)
        if not can:
            logger.warning(
                f"Invalid registration transition attempted: id={registration_id}, "
                f"from={prior}, to={target}, actor={actor_id}. Reason: {why}"
            )
            raise InvalidTransition(prior, target, detail=why)

        if target == Registration.STATUS_CONFIRMED and row["payment_status"] != Registration.PAYMENT_PAID:
            logger.warning(
                f"Refusing to confirm unpaid registration: id={registration_id}, "
                f"payment_status={row['payment_status']}, actor={actor_id}"
            )
            raise InvalidTransition(
                prior, target, detail="Cannot confirm a registration whose payment is not settled"
            )

        fields = {"status": target, "updated_at": timezone.now(), **updates}
        if target == Registration.STATUS_PAID:
            fields["payment_status"] = Registration.PAYMENT_PAID

        qs = Registration.objects.filter(pk=registration_id, status=prior)
        if target == Registration.STATUS_CONFIRMED:
            qs = qs.filter(payment_status=Registration.PAYMENT_PAID)

        if qs.update(**fields) == 0:
            actual = (
                Registration.objects
                .filter(pk=registration_id)
                .values_list("status", flat=True)
                .first()
            )
            logger.info(
                f"Registration transition lost race: id={registration_id}, "
                f"expected={prior}, actual={actual}, to={target}, actor={actor_id}"
            )
            raise StaleState(registration_id, prior, actual)

        if target in COUNTED_STATES and prior not in COUNTED_STATES:
            # Single UPDATE ... SET current_teams = current_teams + 1
            Tournament.objects.filter(pk=row["tournament_id"]).update(
                current_teams=F("current_teams") + 1
            )

    logger.info(
        f"Registration transition: id={registration_id}, from={prior}, to={target}, "
        f"actor={actor_id}, at={fields['updated_at'].isoformat()}"
        + (f", reason={reason}" if reason else "")
    )

    return Registration.objects.select_related("tournament", "user").get(pk=registration_id)


def get_allowed_transitions(registration: Registration) -> list:
    """
    Get list of allowed status transitions for a registration.
    """
    return sorted(VALID_TRANSITIONS.get(registration.status, set()))


def is_terminal_status(status: str) -> bool:
    """
    Check if a status is a terminal state (no further transitions).
    """
    return not VALID_TRANSITIONS.get(status)
