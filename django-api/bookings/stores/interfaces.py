"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from uuid import UUID

from bookings.domain import (
    Booking,
    BookingId,
    BookingStatus,
    ClassInstance,
    ClassInstanceId,
    ClassPack,
    CompClassGrant,
    CreditCheck,
    MemberId,
    NewBooking,
    StudioId,
    Subscription,
)


class ScheduleStore(ABC):
    """Read access to class instances owned by the scheduling subsystem."""

    @abstractmethod
    def get_class_instance(self, class_instance_id: ClassInstanceId) -> ClassInstance | None:
        """Return a class instance by ID, or None if not found."""
        ...


class BookingStore(ABC):
    """Interface for booking persistence operations."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Group writes so they are undone together on error, where the backend can."""
        ...

    @abstractmethod
    def class_lock(self, class_instance_id: ClassInstanceId) -> AbstractContextManager:
        """Serialize waitlist and capacity writes for one class instance. Must be reentrant."""
        ...

    @abstractmethod
    def get_booking(self, booking_id: BookingId) -> Booking | None:
        """Return a booking by ID, or None if not found."""
        ...

    @abstractmethod
    def find_active_booking(
        self, class_instance_id: ClassInstanceId, member_id: MemberId
    ) -> Booking | None:
        """Return the member's booking that is neither cancelled nor a no-show."""
        ...

    @abstractmethod
    def count_active(self, class_instance_id: ClassInstanceId) -> int:
        """Count booked and confirmed bookings for a class."""
        ...

    @abstractmethod
    def count_waitlisted(self, class_instance_id: ClassInstanceId) -> int:
        """Count waitlisted bookings for a class."""
        ...

    @abstractmethod
    def create_booking(self, new_booking: NewBooking) -> Booking:
        """Insert a booking row.

        Raises:
            DuplicateActiveBookingError: If the member already holds an active booking.
        """
        ...

    @abstractmethod
    def list_waitlisted(self, class_instance_id: ClassInstanceId) -> list[Booking]:
        """Return waitlisted bookings ordered by waitlist_position ascending."""
        ...

    @abstractmethod
    def list_bookings(self, class_instance_id: ClassInstanceId) -> list[Booking]:
        """Return every booking of a class, ordered by booked_at ascending."""
        ...

    @abstractmethod
    def set_waitlist_position(self, booking_id: BookingId, position: int) -> None:
        """Move a waitlisted booking to a new position."""
        ...

    @abstractmethod
    def promote_booking(
        self, booking_id: BookingId, credit_check: CreditCheck, booked_at: datetime
    ) -> bool:
        """Turn a waitlisted booking into a booked one. False if it was no longer waitlisted."""
        ...

    @abstractmethod
    def cancel_booking(
        self, booking_id: BookingId, cancelled_at: datetime, expected_status: BookingStatus
    ) -> bool:
        """Mark a booking cancelled and clear its waitlist position.

        Only applies while the booking is still in ``expected_status``. Returns
        False if the booking moved on (promoted, confirmed or already cancelled).
        """
        ...

    @abstractmethod
    def claim_credit_refund(self, booking_id: BookingId, refunded_at: datetime) -> bool:
        """Stamp credit_refunded_at once. False if a refund was already claimed."""
        ...

    @abstractmethod
    def confirm_booking(self, booking_id: BookingId, confirmed_at: datetime) -> bool:
        """Move a booked booking to confirmed. False if it was not booked."""
        ...


class CreditStore(ABC):
    """Interface over the credit sources owned by the membership subsystems.

    Only the credit ledger writes through this interface.
    """

    @abstractmethod
    def list_comp_grants(self, member_id: MemberId, studio_id: StudioId) -> list[CompClassGrant]:
        """Return grants with remaining classes, earliest expiry first, never-expiring last."""
        ...

    @abstractmethod
    def get_active_subscription(
        self, member_id: MemberId, studio_id: StudioId
    ) -> Subscription | None:
        """Return the member's active subscription at the studio.

        Raises:
            CreditIntegrityError: If more than one active subscription exists.
        """
        ...

    @abstractmethod
    def list_class_packs(self, member_id: MemberId, studio_id: StudioId) -> list[ClassPack]:
        """Return packs with remaining classes, oldest created first."""
        ...

    @abstractmethod
    def take_comp_class(self, grant_id: UUID, remaining_after: int) -> bool:
        """Set remaining to remaining_after if it is still remaining_after + 1."""
        ...

    @abstractmethod
    def return_comp_class(self, grant_id: UUID) -> bool:
        """Add one class back unless the grant is already full."""
        ...

    @abstractmethod
    def take_class_pack(self, pack_id: UUID, remaining_after: int) -> bool:
        """Set remaining to remaining_after if it is still remaining_after + 1."""
        ...

    @abstractmethod
    def return_class_pack(self, pack_id: UUID) -> bool:
        """Add one class back unless the pack is already full."""
        ...

    @abstractmethod
    def record_subscription_use(self, subscription_id: UUID, remaining_after: int) -> bool:
        """Increment classes_used_this_period if the period still has remaining_after + 1 left."""
        ...

    @abstractmethod
    def release_subscription_use(self, subscription_id: UUID) -> bool:
        """Decrement classes_used_this_period unless it is already zero."""
        ...
