# tournaments/reaper.py
"""
Removes registrations abandoned in ``pending_payment``.

Selection and deletion use the exact same predicate (``stale_queryset``),
so a registration that leaves pending_payment between the two steps (a
payment callback landing mid-sweep) is not deleted.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .models import Registration

logger = logging.getLogger("cos.tournaments")


@dataclass
class SweepResult:
    removed_count: int = 0
    removed: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"removed_count": self.removed_count, "removed": self.removed}


def default_max_age() -> timedelta:
    return timedelta(minutes=settings.PENDING_REGISTRATION_MAX_AGE_MINUTES)


def stale_queryset(max_age: timedelta, now: Optional[datetime] = None):
    cutoff = (now or timezone.now()) - max_age
    return Registration.objects.filter(
        status=Registration.STATUS_PENDING_PAYMENT,
        created_at__lt=cutoff,
    )


def _summary(row: dict) -> dict:
    return {
        "id": str(row["id"]),
        "team_name": row["team_name"],
        "tournament_id": row["tournament_id"],
        "created_at": row["created_at"].isoformat() if row["created_at"] else None,
    }


def preview(max_age: Optional[timedelta] = None, now: Optional[datetime] = None) -> dict:
    """
    Read-only view of what a sweep would remove right now.
    """
    if max_age is None:
        max_age = default_max_age()
    now = now or timezone.now()
    cutoff = now - max_age

    pending = Registration.objects.filter(status=Registration.STATUS_PENDING_PAYMENT)
    old = list(
        stale_queryset(max_age, now)
        .order_by("created_at")
        .values("id", "team_name", "tournament_id", "created_at")
    )
    recent_count = pending.filter(created_at__gte=cutoff).count()

    return {
        "total_pending": len(old) + recent_count,
        "old_pending": len(old),
        "recent_pending": recent_count,
        "old_pending_registrations": [_summary(r) for r in old],
    }


def sweep(max_age: Optional[timedelta] = None, now: Optional[datetime] = None) -> SweepResult:
    """
    Delete every registration still pending payment after ``max_age``.

    Destructive: no tombstone is kept. Returns the number of rows removed
    and a summary of each; zero is a normal result.
    """
    if max_age is None:
        max_age = default_max_age()
    now = now or timezone.now()

    with transaction.atomic():
        # Row locks make a concurrent transition() wait for us and then miss
        # its compare-and-set, instead of resurrecting a deleted row.
        selected = list(
            stale_queryset(max_age, now)
            .select_for_update()
            .order_by("created_at")
            .values("id", "team_name", "tournament_id", "created_at")
        )
        if not selected:
            logger.info("No pending registrations found to clean up")
            return SweepResult()

        logger.info(f"Found {len(selected)} pending registrations older than {max_age} to clean up")

        ids = [row["id"] for row in selected]
        _, per_model = stale_queryset(max_age, now).filter(pk__in=ids).delete()
        deleted = per_model.get(Registration._meta.label, 0)

        if deleted != len(ids):
            # Only possible on backends without row locks (SQLite)
            survivors = set(Registration.objects.filter(pk__in=ids).values_list("id", flat=True))
            selected = [row for row in selected if row["id"] not in survivors]

    removed = [_summary(row) for row in selected]
    logger.info(f"Removed {len(removed)} pending registrations")
    return SweepResult(removed_count=len(removed), removed=removed)
