"""Fixtures shared by the booking test modules."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from apps.bookings.models import Booking
from apps.equipment.models import Equipment
from apps.users.models import User


class BookingFixturesMixin:
    """Creates an owner, two renters and one equipment item."""

    def setUp(self) -> None:
        super().setUp()  # type: ignore[misc]
        self.owner = User.objects.create_user(
            email="owner@example.com",
            password="OwnerPass123",
            first_name="Awa",
            last_name="Diop",
            role=User.RoleChoices.OWNER,
        )
        self.renter = User.objects.create_user(
            email="renter@example.com",
            password="RenterPass123",
            first_name="Moussa",
            last_name="Ndiaye",
        )
        self.other_renter = User.objects.create_user(
            email="other@example.com",
            password="OtherPass123",
            username="koffi",
        )
        self.equipment = Equipment.objects.create(
            owner=self.owner,
            title="Concrete mixer 180L",
            category="construction",
            location="Dakar",
            daily_price=Decimal("15000.00"),
        )

    def make_booking(
        self,
        start: date,
        end: date,
        status: str = Booking.Status.PENDING,
        renter=None,
        equipment=None,
    ) -> Booking:
        booking = Booking(
            equipment=equipment or self.equipment,
            renter=renter or self.renter,
            start_date=start,
            end_date=end,
            status=status,
        )
        booking.price_from_equipment()
        booking.save()
        return booking
