"""Unit tests for the pure overlap rules."""

from __future__ import annotations

from datetime import date

from django.test import SimpleTestCase

from apps.bookings.domain.availability import (
    APPROVAL_BLOCKING_STATUSES,
    CREATION_BLOCKING_STATUSES,
    AvailabilityResult,
    BookedPeriod,
    find_conflicts,
)
from shared.domain.value_objects import DateRange


def period(booking_id: str, start: date, end: date, status: str = "confirmed", renter_name=None) -> BookedPeriod:
    return BookedPeriod(id=booking_id, start_date=start, end_date=end, status=status, renter_name=renter_name)


class DateRangeTests(SimpleTestCase):
    def test_rejects_empty_or_reversed_range(self) -> None:
        with self.assertRaises(ValueError):
            DateRange(date(2024, 6, 10), date(2024, 6, 10))
        with self.assertRaises(ValueError):
            DateRange(date(2024, 6, 10), date(2024, 6, 9))

    def test_overlap_cases(self) -> None:
        base = DateRange(date(2024, 6, 5), date(2024, 6, 10))
        cases = [
            (DateRange(date(2024, 6, 1), date(2024, 6, 6)), True),  # partial left
            (DateRange(date(2024, 6, 8), date(2024, 6, 15)), True),  # partial right
            (DateRange(date(2024, 6, 6), date(2024, 6, 8)), True),  # contained
            (DateRange(date(2024, 6, 1), date(2024, 6, 20)), True),  # containing
            (DateRange(date(2024, 6, 10), date(2024, 6, 12)), True),  # shared boundary day
            (DateRange(date(2024, 6, 1), date(2024, 6, 5)), True),
            (DateRange(date(2024, 6, 11), date(2024, 6, 12)), False),
            (DateRange(date(2024, 6, 1), date(2024, 6, 4)), False),
        ]
        for other, expected in cases:
            with self.subTest(other=str(other)):
                self.assertEqual(base.overlaps_with(other), expected)
                self.assertEqual(other.overlaps_with(base), expected)

    def test_same_day_handover_tolerates_shared_boundary(self) -> None:
        first = DateRange(date(2024, 6, 5), date(2024, 6, 10))
        following = DateRange(date(2024, 6, 10), date(2024, 6, 12))

        self.assertTrue(first.overlaps_with(following))
        self.assertFalse(first.overlaps_with(following, allow_same_day_handover=True))
        self.assertTrue(
            first.overlaps_with(DateRange(date(2024, 6, 9), date(2024, 6, 12)), allow_same_day_handover=True)
        )

    def test_length_counts_both_boundary_days(self) -> None:
        rental = DateRange(date(2024, 7, 1), date(2024, 7, 5))
        self.assertEqual(len(rental), 5)
        self.assertTrue(rental.contains(date(2024, 7, 5)))
        self.assertFalse(rental.contains(date(2024, 7, 6)))


class FindConflictsTests(SimpleTestCase):
    def test_returns_only_overlapping_bookings_in_input_order(self) -> None:
        bookings = [
            period("a", date(2024, 7, 1), date(2024, 7, 5)),
            period("b", date(2024, 7, 10), date(2024, 7, 12)),
            period("c", date(2024, 7, 4), date(2024, 7, 6)),
        ]
        candidate = DateRange(date(2024, 7, 4), date(2024, 7, 8))

        conflicts = find_conflicts(candidate, bookings)

        self.assertEqual([c.id for c in conflicts], ["a", "c"])

    def test_no_bookings_means_no_conflicts(self) -> None:
        candidate = DateRange(date(2024, 7, 4), date(2024, 7, 8))
        self.assertEqual(find_conflicts(candidate, []), [])

    def test_result_is_valid_exactly_when_conflict_free(self) -> None:
        self.assertTrue(AvailabilityResult.from_conflicts([]).valid)

        conflict = period("a", date(2024, 7, 1), date(2024, 7, 5))
        result = AvailabilityResult.from_conflicts(iter([conflict]))
        self.assertFalse(result.valid)
        self.assertEqual(result.conflicting_ids, ["a"])

    def test_period_serialization(self) -> None:
        booked = period("a", date(2024, 7, 1), date(2024, 7, 5))

        self.assertEqual(
            booked.to_dict(),
            {
                "id": "a",
                "start_date": "2024-07-01",
                "end_date": "2024-07-05",
                "status": "confirmed",
                "renter_name": "Unknown",
            },
        )
        self.assertNotIn("renter_name", booked.to_dict(include_renter=False))

    def test_blocking_status_sets_differ(self) -> None:
        self.assertIn("pending", CREATION_BLOCKING_STATUSES)
        self.assertNotIn("pending", APPROVAL_BLOCKING_STATUSES)
        self.assertIn("ongoing", APPROVAL_BLOCKING_STATUSES)
        self.assertNotIn("ongoing", CREATION_BLOCKING_STATUSES)
        for status in ("rejected", "completed", "cancelled"):
            self.assertNotIn(status, CREATION_BLOCKING_STATUSES)
            self.assertNotIn(status, APPROVAL_BLOCKING_STATUSES)
