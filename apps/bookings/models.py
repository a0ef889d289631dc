"""Booking domain models."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import DateRange


class Booking(models.Model):
    """A renter's reservation of an equipment item for a range of days."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Awaiting owner decision")
        CONFIRMED = "confirmed", _("Confirmed")
        IN_PROGRESS = "in_progress", _("Rental in progress")
        ONGOING = "ongoing", _("Ongoing")
        REJECTED = "rejected", _("Rejected")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")

    class CancellationSource(models.TextChoices):
        RENTER = "renter", _("Renter")
        OWNER = "owner", _("Owner")
        SYSTEM = "system", _("System")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    equipment = models.ForeignKey(
        "equipment.Equipment",
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    renter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    daily_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Daily price of the equipment at the time of the request."),
    )
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="XOF")
    message = models.TextField(blank=True, help_text=_("Note from the renter to the owner."))
    rejection_reason = models.CharField(max_length=255, blank=True)
    proposed_start_date = models.DateField(null=True, blank=True)
    proposed_end_date = models.DateField(null=True, blank=True)
    proposal_message = models.TextField(blank=True)
    decided_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_source = models.CharField(
        max_length=20,
        choices=CancellationSource.choices,
        blank=True,
    )
    cancellation_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="booking_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["equipment", "status", "start_date", "end_date"], name="booking_equipment_period_idx"),
            models.Index(fields=["renter", "status"], name="booking_renter_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.id} for {self.equipment_id} ({self.start_date} - {self.end_date})"

    @property
    def period(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    @property
    def rental_days(self) -> int:
        return len(self.period)

    @property
    def owner_id(self):
        return self.equipment.owner_id

    def clean(self) -> None:
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValidationError(_("The end date must be after the start date."))

    def price_from_equipment(self) -> None:
        """Freeze the equipment's daily price and compute the total for the period."""
        self.daily_rate = self.equipment.daily_price
        self.currency = self.equipment.currency
        self.total_price = Decimal(self.rental_days) * self.daily_rate

    def can_transition_to(self, status: str) -> bool:
        return status in ALLOWED_TRANSITIONS.get(self.status, frozenset())


ALLOWED_TRANSITIONS = {
    Booking.Status.PENDING: frozenset({
        Booking.Status.CONFIRMED,
        Booking.Status.REJECTED,
        Booking.Status.CANCELLED,
    }),
    Booking.Status.CONFIRMED: frozenset({
        Booking.Status.IN_PROGRESS,
        Booking.Status.CANCELLED,
    }),
    Booking.Status.IN_PROGRESS: frozenset({Booking.Status.COMPLETED, Booking.Status.CANCELLED}),
    # Legacy synonym of in_progress written by older clients.
    Booking.Status.ONGOING: frozenset({Booking.Status.COMPLETED, Booking.Status.CANCELLED}),
}
