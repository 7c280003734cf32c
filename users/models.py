# users/models.py
from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    Auth record. Its ``email`` is the fallback address used when a player
    profile carries no email of its own.
    """
    ROLE_MEMBER = "member"
    ROLE_ADMIN = "admin"

    ROLE_CHOICES = (
        (ROLE_MEMBER, 'Member'),
        (ROLE_ADMIN, 'Admin'),
    )

    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default=ROLE_MEMBER
    )

    def __str__(self):
        return self.username


class PlayerProfile(models.Model):
    """
    Public player identity. Shares its key with the auth record.

    ``email`` is optional and may differ from the auth email (players often
    register with one address and want match mails on another).
    """
    ROLE_MEMBER = "member"
    ROLE_ADMIN = "admin"

    ROLE_CHOICES = [
        (ROLE_MEMBER, "Member"),
        (ROLE_ADMIN, "Admin"),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="player_profile",
    )
    username = models.CharField(max_length=50, unique=True)
    display_name = models.CharField(max_length=100, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_MEMBER)
    email = models.EmailField(blank=True, null=True)
    game_ids = models.JSONField(default=dict, blank=True, help_text="In-game ids keyed by game slug")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["email"], name="profile_email_idx"),
        ]

    def __str__(self):
        return self.display_name or self.username
