# notifications/models.py
from django.db import models


class NotificationLogEntry(models.Model):
    """
    One row per delivery attempt, successful or not.

    Rows are never edited after they are written.
    """
    STATUS_SENT = "sent"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_SENT, "Sent"),
        (STATUS_FAILED, "Failed"),
    ]

    KIND_CREDENTIALS = "credentials"
    KIND_REGISTRATION_CONFIRMED = "registration_confirmed"

    KIND_CHOICES = [
        (KIND_CREDENTIALS, "Room credentials"),
        (KIND_REGISTRATION_CONFIRMED, "Registration confirmed"),
    ]

    recipient_email = models.EmailField()
    subject = models.CharField(max_length=255)
    body = models.TextField(blank=True)
    kind = models.CharField(max_length=32, choices=KIND_CHOICES, default=KIND_CREDENTIALS)

    tournament = models.ForeignKey(
        "tournaments.Tournament",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notification_logs",
    )
    # Survives the reaper deleting the registration
    registration = models.ForeignKey(
        "tournaments.Registration",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notification_logs",
    )

    status = models.CharField(max_length=16, choices=STATUS_CHOICES)
    provider_message_id = models.CharField(max_length=255, blank=True, null=True)
    error = models.TextField(blank=True)
    sent_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-sent_at"]
        indexes = [
            models.Index(fields=["recipient_email", "sent_at"], name="notif_email_sent_idx"),
            models.Index(fields=["registration", "kind", "status"], name="notif_reg_kind_status_idx"),
        ]

    def __str__(self):
        return f"{self.recipient_email} - {self.subject} ({self.status})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Notification log entries are append-only")
        super().save(*args, **kwargs)
