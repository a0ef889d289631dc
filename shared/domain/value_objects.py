"""
Common Value Objects

Value objects used across multiple domains:
- DateRange: Represents a rental period (first day to last day)
"""

from dataclasses import dataclass
from datetime import date

from shared.domain.base import ValueObject


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a rental period from start_date to end_date, both inclusive.
    Equipment is picked up on start_date and returned on end_date, so the
    item is occupied on both days.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date >= self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must be before end date ({self.end_date})")

    def overlaps_with(self, other: 'DateRange', *, allow_same_day_handover: bool = False) -> bool:
        """
        Check if this range overlaps with another

        Both boundaries are inclusive: a rental returned on day D and another
        picked up on day D overlap. With allow_same_day_handover the shared
        boundary day is tolerated.

        Examples:
            - DateRange(1, 5) overlaps with DateRange(4, 8) -> True
            - DateRange(1, 10) overlaps with DateRange(10, 12) -> True
            - DateRange(1, 10) overlaps with DateRange(11, 12) -> False
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")

        if allow_same_day_handover:
            return (self.start_date < other.end_date and
                    self.end_date > other.start_date)

        # Overlap formula: start1 <= end2 AND end1 >= start2
        return (self.start_date <= other.end_date and
                self.end_date >= other.start_date)

    def contains(self, check_date: date) -> bool:
        return self.start_date <= check_date <= self.end_date

    def __len__(self) -> int:
        """Number of rental days, counting both the first and the last day."""
        return (self.end_date - self.start_date).days + 1

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
