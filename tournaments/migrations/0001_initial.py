import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Tournament",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("game", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True)),
                ("format", models.CharField(blank=True, help_text="e.g. single elimination, 5v5", max_length=50)),
                (
                    "entry_fee",
                    models.DecimalField(decimal_places=2, default=0, help_text="0 means free entry", max_digits=10),
                ),
                ("currency", models.CharField(default="INR", max_length=10)),
                ("current_teams", models.PositiveIntegerField(default=0)),
                ("max_teams", models.PositiveIntegerField(default=16)),
                (
                    "status",
                    models.CharField(
                        choices=[("upcoming", "Upcoming"), ("ongoing", "Ongoing"), ("completed", "Completed")],
                        default="upcoming",
                        max_length=20,
                    ),
                ),
                ("start_date", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_tournaments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["start_date", "-created_at"],
                "indexes": [models.Index(fields=["status", "start_date"], name="tournament_status_start_idx")],
            },
        ),
        migrations.CreateModel(
            name="Registration",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("team_name", models.CharField(max_length=50)),
                ("team_members", models.JSONField(blank=True, default=list)),
                ("captain", models.JSONField(blank=True, default=dict)),
                ("contact_email", models.EmailField(blank=True, max_length=254)),
                ("contact_phone", models.CharField(blank=True, max_length=20)),
                ("payment_method", models.CharField(default="razorpay", max_length=32)),
                ("transaction_id", models.CharField(blank=True, max_length=255, null=True)),
                ("gateway_order_id", models.CharField(blank=True, max_length=255, null=True)),
                ("agreed_to_terms", models.BooleanField(default=False)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending_payment", "Pending payment"),
                            ("paid", "Paid"),
                            ("confirmed", "Confirmed"),
                            ("failed", "Failed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending_payment",
                        max_length=32,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("unpaid", "Unpaid"), ("paid", "Paid"), ("refunded", "Refunded")],
                        default="unpaid",
                        max_length=32,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "tournament",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to="tournaments.tournament",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tournament_registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="reg_status_created_idx"),
                    models.Index(fields=["tournament", "status"], name="reg_tournament_status_idx"),
                    models.Index(fields=["transaction_id"], name="reg_transaction_idx"),
                ],
                "unique_together": {("tournament", "user")},
            },
        ),
    ]
