# notifications/tasks.py

import logging

from celery import shared_task

from .services import send_bulk_credentials

logger = logging.getLogger("cos.notifications")


@shared_task
def send_bulk_credentials_task(tournament_id, subject=None, message=None, status_filter=None):
    """
    Async wrapper for the bulk credentials send.

    Sends are still sequential inside the worker.
    """
    summary = send_bulk_credentials(
        tournament_id=tournament_id,
        subject=subject,
        message=message,
        status_filter=status_filter,
    )
    logger.info(f"Bulk credentials task for tournament {tournament_id}: sent {summary['sent']}/{summary['total']}")
    return summary
