import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tournaments", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="NotificationLogEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("recipient_email", models.EmailField(max_length=254)),
                ("subject", models.CharField(max_length=255)),
                ("body", models.TextField(blank=True)),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("credentials", "Room credentials"),
                            ("registration_confirmed", "Registration confirmed"),
                        ],
                        default="credentials",
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(choices=[("sent", "Sent"), ("failed", "Failed")], max_length=16),
                ),
                ("provider_message_id", models.CharField(blank=True, max_length=255, null=True)),
                ("error", models.TextField(blank=True)),
                ("sent_at", models.DateTimeField(auto_now_add=True)),
                (
                    "registration",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notification_logs",
                        to="tournaments.registration",
                    ),
                ),
                (
                    "tournament",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notification_logs",
                        to="tournaments.tournament",
                    ),
                ),
            ],
            options={
                "ordering": ["-sent_at"],
                "indexes": [
                    models.Index(fields=["recipient_email", "sent_at"], name="notif_email_sent_idx"),
                    models.Index(fields=["registration", "kind", "status"], name="notif_reg_kind_status_idx"),
                ],
            },
        ),
    ]
