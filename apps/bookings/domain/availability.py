"""
Availability rules

Pure overlap logic shared by the validation endpoints and by every write
that puts a booking on an equipment's calendar. Nothing in this module
touches the database: callers pass in the already-filtered bookings.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from shared.domain.value_objects import DateRange


# Statuses that occupy the equipment when a new request is made or dates change.
# Pending requests block too, so two renters cannot both request the same days.
CREATION_BLOCKING_STATUSES = frozenset({"pending", "confirmed", "in_progress"})

# Statuses that block an owner from approving a pending request. Other pending
# requests are resolved by the owner's decisions and do not count.
APPROVAL_BLOCKING_STATUSES = frozenset({"confirmed", "in_progress", "ongoing"})


@dataclass(frozen=True)
class BookedPeriod:
    """A booking as seen by the overlap check"""
    id: str
    start_date: date
    end_date: date
    status: str
    renter_name: Optional[str] = None

    @property
    def dates(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    def to_dict(self, *, include_renter: bool = True) -> dict:
        data = {
            'id': self.id,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'status': self.status,
        }
        if include_renter:
            data['renter_name'] = self.renter_name or 'Unknown'
        return data


@dataclass(frozen=True)
class AvailabilityResult:
    """
    Outcome of an availability check

    valid is False exactly when conflicts is non-empty.
    """
    valid: bool
    conflicts: List[BookedPeriod] = field(default_factory=list)

    @classmethod
    def from_conflicts(cls, conflicts: Iterable[BookedPeriod]) -> 'AvailabilityResult':
        conflicts = list(conflicts)
        return cls(valid=not conflicts, conflicts=conflicts)

    @property
    def conflicting_ids(self) -> List[str]:
        return [c.id for c in self.conflicts]


def find_conflicts(
    candidate: DateRange,
    bookings: Iterable[BookedPeriod],
    *,
    allow_same_day_handover: bool = False,
) -> List[BookedPeriod]:
    """
    Return the bookings whose period overlaps the candidate range

    Bookings are returned in their input order. Status filtering is the
    caller's job.
    """
    return [
        booking for booking in bookings
        if booking.dates.overlaps_with(candidate, allow_same_day_handover=allow_same_day_handover)
    ]
