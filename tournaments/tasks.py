# tournaments/tasks.py

from datetime import timedelta
from typing import Optional

from celery import shared_task

from .reaper import sweep


@shared_task
def sweep_stale_registrations_task(max_age_minutes: Optional[int] = None):
    """
    Periodic sweep of registrations abandoned in pending_payment.

    Schedule from celery beat; returns the number of rows removed.
    """
    max_age = timedelta(minutes=max_age_minutes) if max_age_minutes is not None else None
    return sweep(max_age).removed_count
