"""Integration tests for booking API endpoints."""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from decimal import Decimal

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.bookings.tests.base import BookingFixturesMixin
from apps.equipment.models import Equipment


class BookingCreationAPITests(BookingFixturesMixin, APITestCase):
    """Covers creation, conflicts and the equipment checks of a rental request."""

    def setUp(self) -> None:
        super().setUp()
        self.client.force_authenticate(self.renter)
        self.list_url = reverse("booking-list")
        self.start = date.today() + timedelta(days=3)

    def _payload(self, start: date, end: date, equipment_id=None) -> dict[str, str]:
        return {
            "equipment_id": str(equipment_id or self.equipment.id),
            "start_date": str(start),
            "end_date": str(end),
            "message": "Needed for a weekend job.",
        }

    def test_renter_can_request_equipment(self) -> None:
        response = self.client.post(
            self.list_url, self._payload(self.start, self.start + timedelta(days=2)), format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        booking = Booking.objects.get(pk=response.data["id"])
        self.assertEqual(booking.status, Booking.Status.PENDING)
        self.assertEqual(booking.renter, self.renter)
        self.assertEqual(booking.equipment, self.equipment)
        self.assertEqual(booking.rental_days, 3)
        self.assertEqual(booking.daily_rate, Decimal("15000.00"))
        self.assertEqual(booking.total_price, Decimal("45000.00"))
        self.assertEqual(response.data["owner_id"], self.owner.id)

    def test_overlapping_request_is_refused(self) -> None:
        first = self.client.post(
            self.list_url, self._payload(self.start, self.start + timedelta(days=2)), format="json"
        )
        self.assertEqual(first.status_code, status.HTTP_201_CREATED, first.data)

        self.client.force_authenticate(self.other_renter)
        second = self.client.post(
            self.list_url,
            self._payload(self.start + timedelta(days=1), self.start + timedelta(days=4)),
            format="json",
        )

        self.assertEqual(second.status_code, status.HTTP_409_CONFLICT, second.data)
        self.assertEqual(second.data["conflicting_bookings"][0]["id"], first.data["id"])
        self.assertEqual(Booking.objects.count(), 1)

    def test_handover_day_is_not_shared(self) -> None:
        end = self.start + timedelta(days=2)
        self.client.post(self.list_url, self._payload(self.start, end), format="json")

        same_day = self.client.post(self.list_url, self._payload(end, end + timedelta(days=2)), format="json")
        next_day = self.client.post(
            self.list_url,
            self._payload(end + timedelta(days=1), end + timedelta(days=3)),
            format="json",
        )

        self.assertEqual(same_day.status_code, status.HTTP_409_CONFLICT, same_day.data)
        self.assertEqual(next_day.status_code, status.HTTP_201_CREATED, next_day.data)

    def test_invalid_period(self) -> None:
        response = self.client.post(self.list_url, self._payload(self.start, self.start), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "The end date must be after the start date.")

    def test_owner_cannot_book_own_equipment(self) -> None:
        self.client.force_authenticate(self.owner)

        response = self.client.post(
            self.list_url, self._payload(self.start, self.start + timedelta(days=1)), format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Booking.objects.exists())

    def test_unavailable_equipment_cannot_be_booked(self) -> None:
        self.equipment.status = Equipment.Status.UNAVAILABLE
        self.equipment.save()

        response = self.client.post(
            self.list_url, self._payload(self.start, self.start + timedelta(days=1)), format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_equipment(self) -> None:
        response = self.client.post(
            self.list_url,
            self._payload(self.start, self.start + timedelta(days=1), equipment_id=uuid.uuid4()),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class BookingWorkflowAPITests(BookingFixturesMixin, APITestCase):
    """Covers the owner decisions and the rental lifecycle."""

    def setUp(self) -> None:
        super().setUp()
        self.start = date.today() + timedelta(days=5)
        self.booking = self.make_booking(self.start, self.start + timedelta(days=3))
        self.client.force_authenticate(self.owner)

    def _post(self, name: str, booking: Booking | None = None, data: dict | None = None):
        url = reverse(f"booking-{name}", args=[(booking or self.booking).id])
        return self.client.post(url, data or {}, format="json")

    def test_owner_approves_request(self) -> None:
        response = self._post("approve")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CONFIRMED)
        self.assertIsNotNone(self.booking.decided_at)

    def test_approval_is_refused_when_dates_are_taken(self) -> None:
        self.make_booking(
            self.start + timedelta(days=3),
            self.start + timedelta(days=6),
            Booking.Status.CONFIRMED,
            renter=self.other_renter,
        )

        response = self._post("approve")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PENDING)

    def test_approving_one_of_two_pending_requests(self) -> None:
        competing = self.make_booking(self.start, self.start + timedelta(days=1), renter=self.other_renter)

        first = self._post("approve")
        second = self._post("approve", competing)

        self.assertEqual(first.status_code, status.HTTP_200_OK, first.data)
        self.assertEqual(second.status_code, status.HTTP_409_CONFLICT, second.data)

    def test_decided_booking_cannot_be_approved_again(self) -> None:
        self._post("approve")

        response = self._post("approve")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_renter_cannot_approve(self) -> None:
        self.client.force_authenticate(self.renter)

        response = self._post("approve")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_outsider_cannot_see_booking(self) -> None:
        self.client.force_authenticate(self.other_renter)

        response = self.client.get(reverse("booking-detail", args=[self.booking.id]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_owner_rejects_request(self) -> None:
        response = self._post("reject", data={"reason": "Under maintenance"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.REJECTED)
        self.assertEqual(self.booking.rejection_reason, "Under maintenance")

    def test_owner_proposes_free_dates(self) -> None:
        proposed_start = self.start + timedelta(days=10)
        response = self._post(
            "propose-dates",
            data={
                "start_date": str(proposed_start),
                "end_date": str(proposed_start + timedelta(days=2)),
                "message": "Available the week after.",
            },
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PENDING)
        self.assertEqual(self.booking.proposed_start_date, proposed_start)

    def test_proposed_dates_must_be_free(self) -> None:
        taken = self.make_booking(
            self.start + timedelta(days=10),
            self.start + timedelta(days=12),
            Booking.Status.CONFIRMED,
            renter=self.other_renter,
        )

        response = self._post(
            "propose-dates",
            data={"start_date": str(taken.start_date), "end_date": str(taken.end_date)},
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)

    def test_renter_changes_dates_overlapping_own_request(self) -> None:
        self.client.force_authenticate(self.renter)
        new_start = self.start + timedelta(days=1)

        response = self._post(
            "change-dates",
            data={"start_date": str(new_start), "end_date": str(new_start + timedelta(days=4))},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.start_date, new_start)
        self.assertEqual(self.booking.total_price, Decimal("75000.00"))

    def test_owner_cannot_change_renter_dates(self) -> None:
        response = self._post(
            "change-dates",
            data={"start_date": str(self.start), "end_date": str(self.start + timedelta(days=1))},
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_renter_cancels_request(self) -> None:
        self.client.force_authenticate(self.renter)

        response = self._post("cancel", data={"reason": "Plans changed"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CANCELLED)
        self.assertEqual(self.booking.cancellation_source, Booking.CancellationSource.RENTER)
        self.assertIsNotNone(self.booking.cancelled_at)

    def test_cancelled_request_frees_the_dates(self) -> None:
        self._post("cancel")
        self.client.force_authenticate(self.other_renter)

        response = self.client.post(
            reverse("booking-list"),
            {
                "equipment_id": str(self.equipment.id),
                "start_date": str(self.booking.start_date),
                "end_date": str(self.booking.end_date),
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    def test_running_rental_can_be_cancelled_and_frees_the_dates(self) -> None:
        for running_status in (Booking.Status.IN_PROGRESS, Booking.Status.ONGOING):
            with self.subTest(status=running_status):
                Booking.objects.filter(pk=self.booking.pk).update(
                    status=running_status, cancellation_source="", cancelled_at=None
                )
                Booking.objects.exclude(pk=self.booking.pk).delete()
                self.client.force_authenticate(self.renter)

                response = self._post("cancel", data={"reason": "Returned early"})

                self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
                self.booking.refresh_from_db()
                self.assertEqual(self.booking.status, Booking.Status.CANCELLED)
                self.assertEqual(self.booking.cancellation_source, Booking.CancellationSource.RENTER)

                self.client.force_authenticate(self.other_renter)
                rebook = self.client.post(
                    reverse("booking-list"),
                    {
                        "equipment_id": str(self.equipment.id),
                        "start_date": str(self.booking.start_date),
                        "end_date": str(self.booking.end_date),
                    },
                    format="json",
                )
                self.assertEqual(rebook.status_code, status.HTTP_201_CREATED, rebook.data)

    def test_full_rental_lifecycle(self) -> None:
        for action, expected in (
            ("approve", Booking.Status.CONFIRMED),
            ("start", Booking.Status.IN_PROGRESS),
            ("complete", Booking.Status.COMPLETED),
        ):
            with self.subTest(action=action):
                response = self._post(action)
                self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
                self.assertEqual(response.data["status"], expected)

    def test_pending_request_cannot_start(self) -> None:
        response = self._post("start")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_completed_rental_cannot_be_cancelled(self) -> None:
        Booking.objects.filter(pk=self.booking.pk).update(status=Booking.Status.COMPLETED)

        response = self._post("cancel")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_list_filters_by_role(self) -> None:
        own_request = self.make_booking(
            self.start + timedelta(days=20),
            self.start + timedelta(days=21),
            renter=self.owner,
            equipment=Equipment.objects.create(
                owner=self.other_renter, title="Ladder", daily_price=Decimal("2000.00")
            ),
        )

        as_owner = self.client.get(reverse("booking-list"), {"as": "owner"})
        as_renter = self.client.get(reverse("booking-list"), {"as": "renter"})
        both = self.client.get(reverse("booking-list"))

        self.assertEqual([b["id"] for b in as_owner.data["results"]], [str(self.booking.id)])
        self.assertEqual([b["id"] for b in as_renter.data["results"]], [str(own_request.id)])
        self.assertEqual(both.data["count"], 2)
