# tournaments/models.py
import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.db.models.functions import Lower


class Tournament(models.Model):
    STATUS_UPCOMING = "upcoming"
    STATUS_ONGOING = "ongoing"
    STATUS_COMPLETED = "completed"

    STATUS_CHOICES = [
        (STATUS_UPCOMING, "Upcoming"),
        (STATUS_ONGOING, "Ongoing"),
        (STATUS_COMPLETED, "Completed"),
    ]

    name = models.CharField(max_length=255)
    game = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    format = models.CharField(max_length=50, blank=True, help_text="e.g. single elimination, 5v5")

    entry_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0, help_text="0 means free entry")
    currency = models.CharField(max_length=10, default="INR")

    # Only ever incremented through an F() update in the lifecycle manager
    current_teams = models.PositiveIntegerField(default=0)
    max_teams = models.PositiveIntegerField(default=16)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_UPCOMING)
    start_date = models.DateTimeField(blank=True, null=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_tournaments",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["start_date", "-created_at"]
        indexes = [
            models.Index(fields=["status", "start_date"], name="tournament_status_start_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.game})"

    @property
    def is_free(self) -> bool:
        return not self.entry_fee

    @property
    def has_capacity(self) -> bool:
        return self.current_teams < self.max_teams


class Registration(models.Model):
    """
    A team's entry into a tournament.

    ``status`` is owned by ``tournaments.state_machine``; nothing else
    should assign it. ``tournament`` and ``user`` never change after
    creation.
    """
    STATUS_PENDING_PAYMENT = "pending_payment"
    STATUS_PAID = "paid"
    STATUS_CONFIRMED = "confirmed"
    STATUS_FAILED = "failed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING_PAYMENT, "Pending payment"),
        (STATUS_PAID, "Paid"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_FAILED, "Failed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    PAYMENT_UNPAID = "unpaid"
    PAYMENT_PAID = "paid"
    PAYMENT_REFUNDED = "refunded"

    PAYMENT_CHOICES = [
        (PAYMENT_UNPAID, "Unpaid"),
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_REFUNDED, "Refunded"),
    ]

    METHOD_RAZORPAY = "razorpay"
    METHOD_FREE = "free"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tournament = models.ForeignKey(Tournament, on_delete=models.CASCADE, related_name="registrations")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="tournament_registrations",
    )

    team_name = models.CharField(max_length=50)
    # [{"name", "email", "game_id"}, ...]
    team_members = models.JSONField(default=list, blank=True)
    # {"name", "email", "phone"}
    captain = models.JSONField(default=dict, blank=True)
    contact_email = models.EmailField(blank=True)
    contact_phone = models.CharField(max_length=20, blank=True)

    payment_method = models.CharField(max_length=32, default=METHOD_RAZORPAY)
    transaction_id = models.CharField(max_length=255, blank=True, null=True)
    gateway_order_id = models.CharField(max_length=255, blank=True, null=True)
    agreed_to_terms = models.BooleanField(default=False)

    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_PENDING_PAYMENT)
    payment_status = models.CharField(max_length=32, choices=PAYMENT_CHOICES, default=PAYMENT_UNPAID)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Rows in these states no longer hold a place; the team may register again
    INACTIVE_STATUSES = (STATUS_FAILED, STATUS_CANCELLED)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["tournament", "user"],
                condition=~Q(status__in=["failed", "cancelled"]),
                name="reg_unique_active_user",
            ),
            models.UniqueConstraint(
                Lower("team_name"),
                "tournament",
                condition=~Q(status__in=["failed", "cancelled"]),
                name="reg_unique_active_team_name",
            ),
        ]
        indexes = [
            # Reaper selection: pending rows ordered by age
            models.Index(fields=["status", "created_at"], name="reg_status_created_idx"),
            models.Index(fields=["tournament", "status"], name="reg_tournament_status_idx"),
            models.Index(fields=["transaction_id"], name="reg_transaction_idx"),
        ]

    def __str__(self):
        return f"{self.team_name} @ {self.tournament_id} ({self.status})"

    def save(self, *args, **kwargs):
        if self.status == self.STATUS_CONFIRMED and self.payment_status != self.PAYMENT_PAID:
            raise ValueError("A confirmed registration must have payment_status='paid'")
        super().save(*args, **kwargs)

    @property
    def member_emails(self) -> list:
        return [m.get("email") for m in self.team_members if isinstance(m, dict) and m.get("email")]
