import threading
import unittest
import uuid

from django.db import connection
from django.test import TestCase, TransactionTestCase
from django.test.utils import CaptureQueriesContext

from core.exceptions import InvalidTransition, NotFound, StaleState
from tournaments.models import Registration, Tournament
from tournaments.state_machine import (
    can_transition,
    get_allowed_transitions,
    is_terminal_status,
    transition,
)
from users.models import User


def make_registration(tournament, user, **kwargs):
    defaults = {
        "team_name": f"Team {user.username}",
        "team_members": [{"name": user.username, "email": f"{user.username}@example.com", "game_id": "g-1"}],
        "captain": {"name": user.username, "email": f"{user.username}@example.com", "phone": ""},
        "contact_email": f"{user.username}@example.com",
        "agreed_to_terms": True,
    }
    defaults.update(kwargs)
    return Registration.objects.create(tournament=tournament, user=user, **defaults)


class TransitionTableTestCase(TestCase):
    def test_allowed_moves(self):
        self.assertTrue(can_transition("pending_payment", "paid")[0])
        self.assertTrue(can_transition("pending_payment", "failed")[0])
        self.assertTrue(can_transition("pending_payment", "cancelled")[0])
        self.assertTrue(can_transition("paid", "confirmed")[0])

    def test_rejected_moves(self):
        self.assertFalse(can_transition("pending_payment", "confirmed")[0])
        self.assertFalse(can_transition("paid", "cancelled")[0])
        self.assertFalse(can_transition("confirmed", "paid")[0])

        ok, reason = can_transition("pending_payment", "refunded")
        self.assertFalse(ok)
        self.assertIn("Invalid status", reason)

    def test_terminal_states(self):
        for status in ("confirmed", "failed", "cancelled"):
            self.assertTrue(is_terminal_status(status))
        self.assertFalse(is_terminal_status("pending_payment"))
        self.assertFalse(is_terminal_status("paid"))


class RegistrationTransitionTestCase(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="captain", password="pass", email="captain@example.com")
        self.tournament = Tournament.objects.create(name="Valorant Cup", game="valorant", entry_fee=100, max_teams=100)
        self.registration = make_registration(self.tournament, self.user)

    def test_pending_to_paid_marks_payment_and_counts_team(self):
        reg = transition(self.registration.id, "paid", expected="pending_payment")

        self.assertEqual(reg.status, Registration.STATUS_PAID)
        self.assertEqual(reg.payment_status, Registration.PAYMENT_PAID)
        self.tournament.refresh_from_db()
        self.assertEqual(self.tournament.current_teams, 1)

    def test_extra_fields_written_with_transition(self):
        reg = transition(self.registration.id, "paid", updates={"transaction_id": "pay_123"})
        self.assertEqual(reg.transaction_id, "pay_123")

    def test_protected_fields_cannot_be_set(self):
        with self.assertRaises(ValueError):
            transition(self.registration.id, "paid", updates={"user_id": 999})

        self.registration.refresh_from_db()
        self.assertEqual(self.registration.status, Registration.STATUS_PENDING_PAYMENT)

    def test_illegal_transition_leaves_record_untouched(self):
        with self.assertRaises(InvalidTransition):
            transition(self.registration.id, "confirmed")

        self.registration.refresh_from_db()
        self.assertEqual(self.registration.status, Registration.STATUS_PENDING_PAYMENT)
        self.assertEqual(self.registration.payment_status, Registration.PAYMENT_UNPAID)
        self.tournament.refresh_from_db()
        self.assertEqual(self.tournament.current_teams, 0)

    def test_terminal_state_rejects_every_target(self):
        transition(self.registration.id, "cancelled")

        for target in ("pending_payment", "paid", "confirmed", "failed"):
            with self.assertRaises(InvalidTransition):
                transition(self.registration.id, target)

        self.registration.refresh_from_db()
        self.assertEqual(self.registration.status, Registration.STATUS_CANCELLED)

    def test_unknown_target_is_invalid(self):
        with self.assertRaises(InvalidTransition):
            transition(self.registration.id, "refunded")

    def test_missing_registration(self):
        with self.assertRaises(NotFound):
            transition(uuid.uuid4(), "paid")

    def test_second_writer_with_same_expectation_gets_stale_state(self):
        transition(self.registration.id, "paid", expected="pending_payment")

        with self.assertRaises(StaleState) as ctx:
            transition(self.registration.id, "paid", expected="pending_payment")

        self.assertEqual(ctx.exception.actual, Registration.STATUS_PAID)
        self.tournament.refresh_from_db()
        self.assertEqual(self.tournament.current_teams, 1)

    def test_cancel_racing_payment_loses(self):
        transition(self.registration.id, "paid", expected="pending_payment")

        with self.assertRaises(StaleState):
            transition(self.registration.id, "cancelled", expected="pending_payment")

        self.registration.refresh_from_db()
        self.assertEqual(self.registration.status, Registration.STATUS_PAID)

    def test_confirm_does_not_count_twice(self):
        transition(self.registration.id, "paid")
        reg = transition(self.registration.id, "confirmed", expected="paid")

        self.assertEqual(reg.status, Registration.STATUS_CONFIRMED)
        self.tournament.refresh_from_db()
        self.assertEqual(self.tournament.current_teams, 1)

    def test_confirm_requires_settled_payment(self):
        # Simulate a row that reached "paid" without its payment flag
        Registration.objects.filter(pk=self.registration.pk).update(status=Registration.STATUS_PAID)

        with self.assertRaises(InvalidTransition):
            transition(self.registration.id, "confirmed")

        self.registration.refresh_from_db()
        self.assertEqual(self.registration.status, Registration.STATUS_PAID)

    def test_cancel_does_not_touch_counter(self):
        Tournament.objects.filter(pk=self.tournament.pk).update(current_teams=5)
        transition(self.registration.id, "cancelled")

        self.tournament.refresh_from_db()
        self.assertEqual(self.tournament.current_teams, 5)

    def test_model_save_refuses_unpaid_confirmation(self):
        self.registration.status = Registration.STATUS_CONFIRMED
        with self.assertRaises(ValueError):
            self.registration.save()

    def test_allowed_transitions_for_pending(self):
        self.assertEqual(get_allowed_transitions(self.registration), ["cancelled", "failed", "paid"])


class TeamCounterTestCase(TestCase):
    def test_fifty_payments_count_fifty_teams(self):
        tournament = Tournament.objects.create(name="Big Cup", game="bgmi", entry_fee=50, max_teams=64)
        stale_copy = Tournament.objects.get(pk=tournament.pk)

        registrations = []
        for i in range(50):
            user = User.objects.create_user(username=f"player{i}", password="pass")
            registrations.append(make_registration(tournament, user))

        for reg in registrations:
            transition(reg.id, "paid", expected="pending_payment")

        tournament.refresh_from_db()
        self.assertEqual(tournament.current_teams, 50)
        # An instance loaded before the payments still holds the old value;
        # the counter never relies on it.
        self.assertEqual(stale_copy.current_teams, 0)

    def test_counter_increment_is_computed_by_the_database(self):
        tournament = Tournament.objects.create(name="Sql Cup", game="bgmi", entry_fee=50)
        reg = make_registration(tournament, User.objects.create_user(username="sqlplayer", password="pass"))

        with CaptureQueriesContext(connection) as ctx:
            transition(reg.id, "paid", expected="pending_payment")

        table = Tournament._meta.db_table
        updates = [q["sql"] for q in ctx.captured_queries if q["sql"].startswith(f'UPDATE "{table}"')]
        self.assertEqual(len(updates), 1)
        self.assertIn('"current_teams" + 1', updates[0])

    def test_counter_keeps_increments_made_by_other_writers(self):
        tournament = Tournament.objects.create(name="Shared Cup", game="bgmi", entry_fee=50)
        reg = make_registration(tournament, User.objects.create_user(username="shared", password="pass"))
        loaded = Tournament.objects.get(pk=tournament.pk)

        # Another process counted seven teams after we loaded the tournament
        Tournament.objects.filter(pk=tournament.pk).update(current_teams=7)
        transition(reg.id, "paid", expected="pending_payment")

        tournament.refresh_from_db()
        self.assertEqual(tournament.current_teams, 8)
        self.assertEqual(loaded.current_teams, 0)


@unittest.skipUnless(connection.vendor == "postgresql", "needs row-level locking")
class ConcurrentTransitionTestCase(TransactionTestCase):
    def test_only_one_of_many_racing_writers_wins(self):
        user = User.objects.create_user(username="racer", password="pass")
        tournament = Tournament.objects.create(name="Race Cup", game="valorant", entry_fee=10)
        reg = make_registration(tournament, user)

        outcomes = []
        lock = threading.Lock()

        def worker():
            try:
                transition(reg.id, "paid", expected="pending_payment")
                result = "won"
            except StaleState:
                result = "stale"
            finally:
                connection.close()
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(outcomes.count("won"), 1)
        self.assertEqual(outcomes.count("stale"), 7)
        tournament.refresh_from_db()
        self.assertEqual(tournament.current_teams, 1)
