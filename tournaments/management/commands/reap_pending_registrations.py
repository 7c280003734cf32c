from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError

from tournaments import reaper


class Command(BaseCommand):
    help = "Deletes tournament registrations left in pending_payment past the cutoff"

    def add_arguments(self, parser):
        parser.add_argument(
            "--max-age-minutes",
            type=int,
            default=None,
            help="Age after which a pending registration is removed (default: PENDING_REGISTRATION_MAX_AGE_MINUTES)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report what would be removed",
        )

    def handle(self, *args, **options):
        minutes = options["max_age_minutes"]
        if minutes is not None and minutes < 1:
            raise CommandError("--max-age-minutes must be at least 1")
        max_age = timedelta(minutes=minutes) if minutes is not None else None

        if options["dry_run"]:
            summary = reaper.preview(max_age)
            self.stdout.write(
                f"Pending: {summary['total_pending']} total, "
                f"{summary['old_pending']} past cutoff, {summary['recent_pending']} recent"
            )
            for row in summary["old_pending_registrations"]:
                self.stdout.write(f"  would remove {row['id']} ({row['team_name']}, created {row['created_at']})")
            return

        result = reaper.sweep(max_age)
        for row in result.removed:
            self.stdout.write(f"  removed {row['id']} ({row['team_name']})")
        self.stdout.write(self.style.SUCCESS(f"Removed {result.removed_count} pending registrations"))
