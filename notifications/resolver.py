# notifications/resolver.py
"""
Turns registrations into e-mail addresses.

For each registration the strategies in ``DEFAULT_STRATEGIES`` are tried in
order and the first non-empty address wins:

    1. an explicit override supplied by the caller
    2. the player profile email
    3. the auth record email

Registrations that produce nothing are reported as ``unresolved`` rather
than silently dropped.
"""
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Union
import logging
import uuid

from django.db.models import Q

from core.exceptions import UnresolvedRecipient
from tournaments.models import Registration
from users.models import PlayerProfile

logger = logging.getLogger("cos.notifications")


@dataclass
class ResolutionContext:
    override: Optional[str] = None


@dataclass
class Resolution:
    emails: List[str] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"emails": self.emails, "unresolved": self.unresolved, "missing": self.missing}


def _clean(value) -> Optional[str]:
    value = (value or "").strip()
    return value or None


# ---- Strategies -------------------------------------------------------


def override_email(registration: Registration, ctx: ResolutionContext) -> Optional[str]:
    return _clean(ctx.override)


def profile_email(registration: Registration, ctx: ResolutionContext) -> Optional[str]:
    try:
        profile = registration.user.player_profile
    except PlayerProfile.DoesNotExist:
        return None
    return _clean(profile.email)


def auth_email(registration: Registration, ctx: ResolutionContext) -> Optional[str]:
    return _clean(registration.user.email)


Strategy = Callable[[Registration, ResolutionContext], Optional[str]]

DEFAULT_STRATEGIES = (override_email, profile_email, auth_email)


# ---- Resolution -------------------------------------------------------


def resolve_registration(
    registration: Registration,
    override: Optional[str] = None,
    strategies: Iterable[Strategy] = DEFAULT_STRATEGIES,
) -> Optional[str]:
    ctx = ResolutionContext(override=override)
    for strategy in strategies:
        email = strategy(registration, ctx)
        if email:
            return email
    return None


def require_email(registration: Registration, override: Optional[str] = None) -> str:
    """
    Single-recipient variant: raises UnresolvedRecipient instead of
    returning None.
    """
    email = resolve_registration(registration, override=override)
    if not email:
        raise UnresolvedRecipient(f"Could not resolve recipient email for registration {registration.id}")
    return email


def _status_values(status_filter: Union[str, Iterable[str], None]) -> List[str]:
    if not status_filter:
        return []
    if isinstance(status_filter, str):
        return [status_filter]
    return [s for s in status_filter if s]


def _base_queryset(status_filter=None):
    qs = Registration.objects.select_related("user", "user__player_profile").order_by("created_at")
    statuses = _status_values(status_filter)
    if statuses:
        # Matches either column, so "paid" selects by payment and "confirmed" by lifecycle
        qs = qs.filter(Q(payment_status__in=statuses) | Q(status__in=statuses))
    return qs


def _collect(registrations, override: Optional[str] = None) -> Resolution:
    result = Resolution()
    seen = set()
    for registration in registrations:
        email = resolve_registration(registration, override=override)
        if not email:
            result.unresolved.append(str(registration.id))
            continue
        key = email.lower()
        if key in seen:
            continue
        seen.add(key)
        result.emails.append(email)

    if result.unresolved:
        logger.info(f"No recipient email for registrations: {', '.join(result.unresolved)}")
    return result


def _normalize_ids(registration_ids) -> tuple:
    """
    Returns (valid ids in input order, ids that are not UUIDs at all).
    """
    valid, invalid = [], []
    for rid in registration_ids:
        try:
            key = str(uuid.UUID(str(rid)))
        except ValueError:
            invalid.append(str(rid))
            continue
        if key not in valid:
            valid.append(key)
    return valid, invalid


def resolve_emails(registration_ids, status_filter=None, override: Optional[str] = None) -> Resolution:
    """
    Resolve addresses for a set of registrations.

    Registrations excluded by ``status_filter`` are dropped in the query and
    never looked up. Ids that don't exist at all are reported in
    ``missing``.
    """
    requested, invalid = _normalize_ids(registration_ids)
    if not requested:
        return Resolution(missing=invalid)

    existing = {str(pk) for pk in Registration.objects.filter(pk__in=requested).values_list("id", flat=True)}

    result = _collect(_base_queryset(status_filter).filter(pk__in=requested), override=override)
    result.missing = invalid + [rid for rid in requested if rid not in existing]
    return result


def resolve_tournament_emails(tournament_id, status_filter=None) -> Resolution:
    """
    Resolve addresses for every registration of a tournament.
    """
    return _collect(_base_queryset(status_filter).filter(tournament_id=tournament_id))


def common_tournament_id(registration_ids):
    """
    The tournament shared by every existing registration in the list, or
    None when they span several (or none exist).
    """
    requested, _ = _normalize_ids(registration_ids)
    tournament_ids = set(Registration.objects.filter(pk__in=requested).values_list("tournament_id", flat=True))
    return tournament_ids.pop() if len(tournament_ids) == 1 else None
