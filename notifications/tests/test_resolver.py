import uuid

from django.test import TestCase

from core.exceptions import UnresolvedRecipient
from notifications.resolver import (
    require_email,
    resolve_emails,
    resolve_registration,
    resolve_tournament_emails,
)
from tournaments.models import Registration, Tournament
from tournaments.state_machine import transition
from users.models import PlayerProfile, User


class ResolverTestCase(TestCase):
    def setUp(self):
        self.tournament = Tournament.objects.create(name="Resolver Cup", game="valorant", entry_fee=10)

        # Profile email differs from the auth email
        self.with_profile = self._player("withprofile", auth_email="auth1@example.com", profile_email="Profile1@example.com")
        # No profile at all, only the auth record
        self.auth_only = self._player("authonly", auth_email="auth2@example.com")
        # Profile without email falls through to the auth record
        self.blank_profile = self._player("blankprofile", auth_email="auth3@example.com", profile_email="")
        # Nothing anywhere
        self.no_email = self._player("noemail", auth_email="", profile_email=None)
        # Same address as the first player, different case
        self.duplicate = self._player("duplicate", auth_email="auth5@example.com", profile_email="profile1@EXAMPLE.com")

    def _player(self, username, auth_email, profile_email=None):
        user = User.objects.create_user(username=username, password="pass", email=auth_email)
        if profile_email is not None:
            PlayerProfile.objects.create(user=user, username=username, email=profile_email or None)
        return Registration.objects.create(tournament=self.tournament, user=user, team_name=f"Team {username}")

    def test_resolution_order(self):
        self.assertEqual(resolve_registration(self.with_profile), "Profile1@example.com")
        self.assertEqual(resolve_registration(self.auth_only), "auth2@example.com")
        self.assertEqual(resolve_registration(self.blank_profile), "auth3@example.com")
        self.assertIsNone(resolve_registration(self.no_email))

    def test_override_wins(self):
        self.assertEqual(resolve_registration(self.with_profile, override="room@example.com"), "room@example.com")
        self.assertEqual(resolve_registration(self.no_email, override="room@example.com"), "room@example.com")

    def test_require_email_distinguishes_no_address(self):
        self.assertEqual(require_email(self.auth_only), "auth2@example.com")
        with self.assertRaises(UnresolvedRecipient):
            require_email(self.no_email)

    def test_resolve_emails_dedupes_and_reports(self):
        unknown = uuid.uuid4()
        result = resolve_emails(
            [self.with_profile.id, self.duplicate.id, self.auth_only.id, self.no_email.id, unknown, "not-a-uuid"]
        )

        self.assertEqual(sorted(e.lower() for e in result.emails), ["auth2@example.com", "profile1@example.com"])
        self.assertEqual(result.unresolved, [str(self.no_email.id)])
        self.assertEqual(result.missing, ["not-a-uuid", str(unknown)])

    def test_empty_input(self):
        result = resolve_emails([])
        self.assertEqual(result.emails, [])
        self.assertEqual(result.unresolved, [])

    def test_status_filter_excludes_before_lookup(self):
        transition(self.auth_only.id, "paid")
        transition(self.blank_profile.id, "paid")
        transition(self.blank_profile.id, "confirmed")

        ids = [r.id for r in (self.with_profile, self.auth_only, self.blank_profile, self.no_email)]

        result = resolve_emails(ids, status_filter="paid")
        # payment_status=paid matches both the paid and the confirmed row
        self.assertEqual(sorted(result.emails), ["auth2@example.com", "auth3@example.com"])
        # the unpaid row without any address was filtered out, not "unresolved"
        self.assertEqual(result.unresolved, [])
        self.assertEqual(result.missing, [])

        result = resolve_emails(ids, status_filter=["confirmed"])
        self.assertEqual(result.emails, ["auth3@example.com"])

        result = resolve_emails(ids, status_filter=["pending_payment"])
        self.assertEqual(result.emails, ["Profile1@example.com"])
        self.assertEqual(result.unresolved, [str(self.no_email.id)])

    def test_tournament_wide_resolution(self):
        other = Tournament.objects.create(name="Other Cup", game="valorant")
        stranger = User.objects.create_user(username="stranger", password="pass", email="stranger@example.com")
        Registration.objects.create(tournament=other, user=stranger, team_name="Strangers")

        result = resolve_tournament_emails(self.tournament.id)

        self.assertEqual(len(result.emails), 3)
        self.assertNotIn("stranger@example.com", result.emails)
        self.assertEqual(result.unresolved, [str(self.no_email.id)])
