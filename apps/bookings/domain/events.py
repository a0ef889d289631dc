"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
They are published after the surrounding transaction commits.
"""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from shared.domain.base import DomainEvent


@dataclass
class BookingRequested(DomainEvent):
    """
    Event: A renter sent a new request (-> PENDING)

    Triggers:
    - Notify the equipment owner
    """
    booking_id: UUID = None
    equipment_id: UUID = None


@dataclass
class BookingApproved(DomainEvent):
    """
    Event: The owner accepted a request (PENDING -> CONFIRMED)

    Triggers:
    - Send acceptance email to the renter
    """
    booking_id: UUID = None
    equipment_id: UUID = None


@dataclass
class BookingRejected(DomainEvent):
    """
    Event: The owner declined a request (PENDING -> REJECTED)

    Triggers:
    - Send rejection email to the renter
    """
    booking_id: UUID = None
    equipment_id: UUID = None
    reason: str = ''


@dataclass
class BookingDatesProposed(DomainEvent):
    """
    Event: The owner suggested other dates for a pending request

    Triggers:
    - Send date proposal email to the renter
    """
    booking_id: UUID = None
    equipment_id: UUID = None
    proposed_start_date: date = None
    proposed_end_date: date = None


@dataclass
class BookingCancelled(DomainEvent):
    """Event: Booking was cancelled by the renter, the owner or the system"""
    booking_id: UUID = None
    equipment_id: UUID = None
    source: str = ''
    old_status: str = ''


@dataclass
class BookingStarted(DomainEvent):
    """
    Event: Equipment handed over to the renter (CONFIRMED -> IN_PROGRESS)

    Triggers:
    - Send rental started email to the renter
    """
    booking_id: UUID = None
    equipment_id: UUID = None


@dataclass
class BookingCompleted(DomainEvent):
    """
    Event: Equipment returned (IN_PROGRESS -> COMPLETED)

    Triggers:
    - Send rental completed email to the renter
    """
    booking_id: UUID = None
    equipment_id: UUID = None
