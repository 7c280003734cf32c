# tournaments/services.py
"""
Registration intake and the thin wrappers views use around the state
machine.
"""
import logging

from django.db import IntegrityError, transaction

from core.exceptions import (
    AlreadyRegistered,
    NotFound,
    RegistrationClosed,
    TeamNameTaken,
    TournamentFull,
)
from .models import Registration, Tournament
from .state_machine import transition
from .validators import clean_registration_payload

logger = logging.getLogger("cos.tournaments")


def get_tournament(tournament_id) -> Tournament:
    tournament = Tournament.objects.filter(pk=tournament_id).first()
    if tournament is None:
        raise NotFound("Tournament not found")
    return tournament


def get_registration(registration_id) -> Registration:
    registration = (
        Registration.objects
        .select_related("tournament", "user")
        .filter(pk=registration_id)
        .first()
    )
    if registration is None:
        raise NotFound(f"Registration {registration_id} not found")
    return registration


def create_registration(user, tournament_id, data: dict) -> Registration:
    """
    Create a registration in ``pending_payment``.

    Failed and cancelled registrations do not block the user or the team
    name, so a declined payment can be retried with a fresh registration.
    Free tournaments are walked straight through paid → confirmed via the
    state machine so the team counter is bumped in the one place it
    ever is.
    """
    tournament = get_tournament(tournament_id)

    if tournament.status != Tournament.STATUS_UPCOMING:
        raise RegistrationClosed()

    if not tournament.has_capacity:
        logger.warning(
            f"Registration failed: tournament {tournament.id} full "
            f"({tournament.current_teams}/{tournament.max_teams})"
        )
        raise TournamentFull()

    active = Registration.objects.filter(tournament=tournament).exclude(status__in=Registration.INACTIVE_STATUSES)

    if active.filter(user=user).exists():
        raise AlreadyRegistered()

    fields = clean_registration_payload(data)

    if active.filter(team_name__iexact=fields["team_name"]).exists():
        raise TeamNameTaken()

    try:
        with transaction.atomic():
            registration = Registration.objects.create(
                tournament=tournament,
                user=user,
                payment_method=Registration.METHOD_FREE if tournament.is_free else Registration.METHOD_RAZORPAY,
                **fields,
            )
    except IntegrityError:
        # Lost a race against a concurrent registration
        if active.filter(user=user).exists():
            raise AlreadyRegistered()
        raise TeamNameTaken()

    logger.info(
        f"Registration created: id={registration.id}, user={user.id}, "
        f"tournament={tournament.id}, team={registration.team_name}"
    )

    if tournament.is_free:
        transition(registration.id, Registration.STATUS_PAID, expected=Registration.STATUS_PENDING_PAYMENT,
                   actor=user, reason="free entry")
        registration = transition(registration.id, Registration.STATUS_CONFIRMED,
                                  expected=Registration.STATUS_PAID, actor=user, reason="free entry")

    return registration


def confirm_registration(registration_id, actor=None) -> Registration:
    return transition(
        registration_id,
        Registration.STATUS_CONFIRMED,
        expected=Registration.STATUS_PAID,
        actor=actor,
    )


def cancel_registration(registration_id, actor=None, reason: str = "") -> Registration:
    """
    Cancel a registration that has not been paid yet.

    Does not touch the tournament counter; pending rows were never counted.
    """
    return transition(
        registration_id,
        Registration.STATUS_CANCELLED,
        expected=Registration.STATUS_PENDING_PAYMENT,
        actor=actor,
        reason=reason,
    )
