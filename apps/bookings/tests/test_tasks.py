"""Tests for booking notifications and periodic tasks."""

from __future__ import annotations

from datetime import date, timedelta
from unittest import mock

from django.core import mail
from django.test import TestCase, override_settings
from django.utils import timezone

from apps.bookings import services
from apps.bookings.models import Booking
from apps.bookings.tasks import complete_finished_bookings, notify_booking_rejected, notify_dates_proposed
from apps.bookings.tests.base import BookingFixturesMixin


class BookingNotificationTests(BookingFixturesMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.start = date.today() + timedelta(days=7)

    def test_owner_is_emailed_about_new_request(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            services.create_booking(
                renter=self.renter,
                equipment_id=self.equipment.id,
                start_date=self.start,
                end_date=self.start + timedelta(days=1),
                message="Pick-up in the morning <please>",
            )

        self.assertEqual(len(mail.outbox), 1)
        email = mail.outbox[0]
        self.assertEqual(email.to, ["owner@example.com"])
        self.assertIn("Concrete mixer 180L", email.subject)
        html = email.alternatives[0][0]
        self.assertIn("Moussa Ndiaye", html)
        self.assertIn("&lt;please&gt;", html)

    def test_renter_is_emailed_on_each_decision(self) -> None:
        booking = self.make_booking(self.start, self.start + timedelta(days=2))

        with self.captureOnCommitCallbacks(execute=True):
            services.approve_booking(booking)
        with self.captureOnCommitCallbacks(execute=True):
            services.start_booking(booking)
        with self.captureOnCommitCallbacks(execute=True):
            services.complete_booking(booking)

        self.assertEqual([m.to for m in mail.outbox], [["renter@example.com"]] * 3)
        self.assertIn("confirmed", mail.outbox[0].subject)
        self.assertIn("started", mail.outbox[1].subject)
        self.assertIn("Thank you", mail.outbox[2].subject)

    def test_rejection_and_proposal_emails(self) -> None:
        booking = self.make_booking(self.start, self.start + timedelta(days=2))

        with self.captureOnCommitCallbacks(execute=True):
            services.propose_dates(
                booking,
                start_date=self.start + timedelta(days=5),
                end_date=self.start + timedelta(days=6),
            )
        with self.captureOnCommitCallbacks(execute=True):
            services.reject_booking(booking, reason="Already lent out")

        self.assertEqual(len(mail.outbox), 2)
        self.assertIn("New dates proposed", mail.outbox[0].subject)
        self.assertIn("Already lent out", mail.outbox[1].body)

    def test_no_event_without_commit(self) -> None:
        booking = self.make_booking(self.start, self.start + timedelta(days=2))

        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            services.approve_booking(booking)

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(mail.outbox, [])

    @override_settings(BOOKING_NOTIFICATIONS_ENABLED=False)
    def test_notifications_can_be_disabled(self) -> None:
        booking = self.make_booking(self.start, self.start + timedelta(days=2))

        with self.captureOnCommitCallbacks(execute=True):
            services.approve_booking(booking)

        self.assertEqual(mail.outbox, [])

    def test_mail_failure_does_not_raise(self) -> None:
        booking = self.make_booking(self.start, self.start + timedelta(days=2))

        with mock.patch("apps.notifications.services.send_mail", side_effect=OSError("SMTP down")):
            self.assertFalse(notify_booking_rejected(str(booking.id)))

    def test_tasks_skip_missing_data(self) -> None:
        booking = self.make_booking(self.start, self.start + timedelta(days=2))
        booking_id = str(booking.id)

        self.assertFalse(notify_dates_proposed(booking_id))
        booking.delete()
        self.assertFalse(notify_booking_rejected(booking_id))
        self.assertEqual(mail.outbox, [])


class CompleteFinishedBookingsTests(BookingFixturesMixin, TestCase):
    def test_completes_only_rentals_past_their_return_day(self) -> None:
        today = timezone.localdate()
        finished = self.make_booking(
            today - timedelta(days=5), today - timedelta(days=1), Booking.Status.IN_PROGRESS
        )
        legacy = self.make_booking(
            today - timedelta(days=9), today - timedelta(days=7), Booking.Status.ONGOING
        )
        returning_today = self.make_booking(
            today - timedelta(days=2), today, Booking.Status.IN_PROGRESS
        )
        confirmed = self.make_booking(
            today - timedelta(days=12), today - timedelta(days=10), Booking.Status.CONFIRMED
        )

        result = complete_finished_bookings()

        self.assertEqual(result, {"completed": 2})
        statuses = dict(Booking.objects.values_list("id", "status"))
        self.assertEqual(statuses[finished.id], Booking.Status.COMPLETED)
        self.assertEqual(statuses[legacy.id], Booking.Status.COMPLETED)
        self.assertEqual(statuses[returning_today.id], Booking.Status.IN_PROGRESS)
        self.assertEqual(statuses[confirmed.id], Booking.Status.CONFIRMED)
