from smtplib import SMTPException
from unittest.mock import patch

from django.core import mail
from django.core.mail.backends import locmem
from django.db import DatabaseError
from django.test import TestCase

from notifications.dispatcher import NotificationDispatcher, already_delivered
from notifications.emails import render_html
from notifications.models import NotificationLogEntry
from tournaments.models import Registration, Tournament
from users.models import User


class FlakyBackend(locmem.EmailBackend):
    """
    locmem backend that refuses mail for some addresses.
    """

    def __init__(self, fail_for=(), reject_for=(), **kwargs):
        super().__init__(**kwargs)
        self.fail_for = set(fail_for)
        self.reject_for = set(reject_for)

    def send_messages(self, messages):
        for message in messages:
            if self.fail_for.intersection(message.to):
                raise SMTPException("mailbox unavailable")
            if self.reject_for.intersection(message.to):
                return 0
        return super().send_messages(messages)


class DispatcherTestCase(TestCase):
    def setUp(self):
        self.tournament = Tournament.objects.create(name="Dispatch Cup", game="valorant")
        user = User.objects.create_user(username="owner", password="pass", email="owner@example.com")
        self.registration = Registration.objects.create(tournament=self.tournament, user=user, team_name="Owners")

    def test_one_failure_does_not_abort_the_batch(self):
        dispatcher = NotificationDispatcher(connection=FlakyBackend(fail_for=["b@example.com"]))

        result = dispatcher.send(
            ["a@example.com", "b@example.com", "c@example.com"],
            "Room 7",
            "ID: 1234\nPass: 9999",
            tournament=self.tournament,
        )

        self.assertEqual(result.attempted, 3)
        self.assertEqual(result.succeeded, 2)
        self.assertEqual(result.failures, [("b@example.com", "mailbox unavailable")])
        self.assertEqual([o.email for o in result.outcomes], ["a@example.com", "b@example.com", "c@example.com"])

        self.assertEqual([m.to for m in mail.outbox], [["a@example.com"], ["c@example.com"]])

        logs = NotificationLogEntry.objects.order_by("id")
        self.assertEqual(logs.count(), 3)
        self.assertEqual(
            [(log.recipient_email, log.status) for log in logs],
            [("a@example.com", "sent"), ("b@example.com", "failed"), ("c@example.com", "sent")],
        )
        self.assertEqual(logs[1].error, "mailbox unavailable")
        self.assertIsNone(logs[1].provider_message_id)
        self.assertEqual(logs[0].tournament, self.tournament)

    def test_backend_rejection_counts_as_failure(self):
        dispatcher = NotificationDispatcher(connection=FlakyBackend(reject_for=["a@example.com"]))
        result = dispatcher.send(["a@example.com"], "Room", "Body")

        self.assertEqual(result.succeeded, 0)
        self.assertEqual(len(result.failures), 1)
        self.assertEqual(NotificationLogEntry.objects.get().status, NotificationLogEntry.STATUS_FAILED)

    def test_message_id_is_recorded(self):
        dispatcher = NotificationDispatcher()
        result = dispatcher.send(["a@example.com"], "Room", "Body", registration=self.registration)

        sent_id = mail.outbox[0].extra_headers["Message-ID"]
        self.assertEqual(result.outcomes[0].message_id, sent_id)
        log = NotificationLogEntry.objects.get()
        self.assertEqual(log.provider_message_id, sent_id)
        self.assertEqual(log.registration, self.registration)

    def test_html_alternative_keeps_line_breaks(self):
        NotificationDispatcher().send(["a@example.com"], "Room", "ID: 1234\nPass: <9999>")

        html, mimetype = mail.outbox[0].alternatives[0]
        self.assertEqual(mimetype, "text/html")
        self.assertEqual(html, "<p>ID: 1234<br/>Pass: &lt;9999&gt;</p>")
        self.assertEqual(mail.outbox[0].body, "ID: 1234\nPass: <9999>")

    def test_log_write_failure_is_swallowed(self):
        dispatcher = NotificationDispatcher()

        with patch(
            "notifications.dispatcher.NotificationLogEntry.objects.create",
            side_effect=DatabaseError("log table unavailable"),
        ):
            result = dispatcher.send(["a@example.com", "b@example.com"], "Room", "Body")

        self.assertEqual(result.succeeded, 2)
        self.assertEqual(len(mail.outbox), 2)
        self.assertEqual(NotificationLogEntry.objects.count(), 0)

    def test_no_dedup_across_calls(self):
        dispatcher = NotificationDispatcher()
        dispatcher.send(["a@example.com"], "Room", "Body")
        dispatcher.send(["a@example.com"], "Room", "Body")

        self.assertEqual(len(mail.outbox), 2)
        self.assertEqual(NotificationLogEntry.objects.count(), 2)

    def test_already_delivered(self):
        self.assertFalse(already_delivered(self.registration))

        NotificationDispatcher(connection=FlakyBackend(fail_for=["owner@example.com"])).send(
            ["owner@example.com"], "Room", "Body", registration=self.registration
        )
        # A failed attempt does not count
        self.assertFalse(already_delivered(self.registration))

        NotificationDispatcher().send(["owner@example.com"], "Room", "Body", registration=self.registration)
        self.assertTrue(already_delivered(self.registration))
        self.assertTrue(already_delivered(self.registration, "OWNER@example.com"))
        self.assertFalse(already_delivered(self.registration, "someone@example.com"))
        self.assertFalse(
            already_delivered(self.registration, kind=NotificationLogEntry.KIND_REGISTRATION_CONFIRMED)
        )

    def test_tournament_level_send_counts_for_its_registrations(self):
        other = Tournament.objects.create(name="Other Cup", game="valorant")
        NotificationDispatcher().send(["owner@example.com"], "Room", "Body", tournament=other)
        self.assertFalse(already_delivered(self.registration, "owner@example.com"))

        NotificationDispatcher().send(["Owner@example.com"], "Room", "Body", tournament=self.tournament)
        self.assertTrue(already_delivered(self.registration, "owner@example.com"))
        self.assertFalse(already_delivered(self.registration, "someone@example.com"))
        # Without an address only entries logged against the registration count
        self.assertFalse(already_delivered(self.registration))

    def test_log_entries_are_append_only(self):
        NotificationDispatcher().send(["a@example.com"], "Room", "Body")
        log = NotificationLogEntry.objects.get()

        log.status = NotificationLogEntry.STATUS_FAILED
        with self.assertRaises(ValueError):
            log.save()

    def test_render_html(self):
        self.assertEqual(render_html("a\nb"), "<p>a<br/>b</p>")
