"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in bookings/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from bookings.domain.value_objects import (
    BookingId,
    Capacity,
    ClassInstanceId,
    CreditSource,
    MemberId,
    StudioId,
)


class ClassStatus(Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BookingStatus(Enum):
    BOOKED = "booked"
    CONFIRMED = "confirmed"
    WAITLISTED = "waitlisted"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def holds_seat(self) -> bool:
        return self in (BookingStatus.BOOKED, BookingStatus.CONFIRMED)

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.CANCELLED, BookingStatus.NO_SHOW)


ACTIVE_STATUSES = (BookingStatus.BOOKED, BookingStatus.CONFIRMED)
TERMINAL_STATUSES = (BookingStatus.CANCELLED, BookingStatus.NO_SHOW)


class SubscriptionStatus(Enum):
    ACTIVE = "active"
    PAST_DUE = "past_due"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class PlanType(Enum):
    UNLIMITED = "unlimited"
    LIMITED = "limited"


@dataclass(frozen=True)
class ClassInstance:
    """One scheduled occurrence of a class. Read-only for the booking engine."""

    id: ClassInstanceId
    studio_id: StudioId
    name: str
    starts_at: datetime
    max_capacity: Capacity
    status: ClassStatus
    cancellation_window_hours: int | None = None

    @property
    def is_bookable(self) -> bool:
        return self.status is ClassStatus.SCHEDULED


@dataclass(frozen=True)
class Booking:
    """A member's claim on a seat (or a waitlist place) in one class instance."""

    id: BookingId
    class_instance_id: ClassInstanceId
    member_id: MemberId
    status: BookingStatus
    credit_source: CreditSource = CreditSource.NONE
    credit_source_id: UUID | None = None
    waitlist_position: int | None = None
    booked_at: datetime | None = None
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
    credit_refunded_at: datetime | None = None


@dataclass(frozen=True)
class CompClassGrant:
    """Free, staff-granted class credits."""

    id: UUID
    member_id: MemberId
    studio_id: StudioId
    remaining_classes: int
    expires_at: datetime | None = None

    def is_usable(self, now: datetime) -> bool:
        return self.remaining_classes > 0 and (self.expires_at is None or self.expires_at > now)


@dataclass(frozen=True)
class Subscription:
    """A member's recurring plan at one studio."""

    id: UUID
    member_id: MemberId
    studio_id: StudioId
    status: SubscriptionStatus
    plan_type: PlanType
    class_limit: int | None = None
    classes_used_this_period: int = 0


@dataclass(frozen=True)
class ClassPack:
    """A prepaid bundle of classes, consumed oldest first."""

    id: UUID
    member_id: MemberId
    studio_id: StudioId
    remaining_classes: int
    created_at: datetime
    expires_at: datetime | None = None

    def is_usable(self, now: datetime) -> bool:
        return self.remaining_classes > 0 and (self.expires_at is None or self.expires_at > now)


@dataclass(frozen=True)
class NewBooking:
    """Fields needed to insert a booking row."""

    class_instance_id: ClassInstanceId
    member_id: MemberId
    status: BookingStatus
    booked_at: datetime
    credit_source: CreditSource = CreditSource.NONE
    credit_source_id: UUID | None = None
    waitlist_position: int | None = None


@dataclass(frozen=True)
class BookingResult:
    """What a book() call hands back to the caller."""

    status: BookingStatus
    booking_id: BookingId
    credit_source: CreditSource | None = None
    remaining_credits: int | None = None
    waitlist_position: int | None = None


@dataclass(frozen=True)
class WaitlistEntry:
    position: int
    booking_id: BookingId


@dataclass(frozen=True)
class CancellationResult:
    booking_id: BookingId
    status: BookingStatus
    credit_refunded: bool
    promoted_booking_id: BookingId | None = None


@dataclass(frozen=True)
class Roster:
    """Staff view of every booking for a class, grouped by status."""

    class_instance_id: ClassInstanceId
    max_capacity: Capacity
    active: tuple[Booking, ...] = ()
    waitlist: tuple[Booking, ...] = ()
    cancelled: tuple[Booking, ...] = ()
