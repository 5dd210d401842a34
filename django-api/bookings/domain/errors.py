"""Domain error codes for the bookings module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_ID = "INVALID_ID"
    CLASS_NOT_FOUND = "CLASS_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    NOT_BOOKABLE = "NOT_BOOKABLE"
    ALREADY_BOOKED = "ALREADY_BOOKED"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    NOT_CONFIRMABLE = "NOT_CONFIRMABLE"
    CREDIT_CONTENTION = "CREDIT_CONTENTION"
    NO_CREDITS = "NO_CREDITS"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    CREDIT_INTEGRITY = "CREDIT_INTEGRITY"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidIdError(DomainError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self, field: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message=f"Invalid {field} format",
        )
        self.field = field


class ClassNotFoundError(DomainError):
    """Raised when a class instance does not exist."""

    def __init__(self, class_instance_id: str) -> None:
        super().__init__(
            code=ErrorCode.CLASS_NOT_FOUND,
            message="Class not found",
        )
        self.class_instance_id = class_instance_id


class BookingNotFoundError(DomainError):
    """Raised when a booking does not exist."""

    def __init__(self, booking_id: str) -> None:
        super().__init__(
            code=ErrorCode.BOOKING_NOT_FOUND,
            message="Booking not found",
        )
        self.booking_id = booking_id


class NotBookableError(DomainError):
    """Raised when a class is not in the scheduled state."""

    def __init__(self, status: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_BOOKABLE,
            message="Class is not available for booking",
        )
        self.status = status


class AlreadyBookedError(DomainError):
    """Raised when the member already holds an active booking for the class."""

    def __init__(self, waitlisted: bool = False) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_BOOKED,
            message=(
                "You are already on the waitlist for this class"
                if waitlisted
                else "You already have a booking for this class"
            ),
        )
        self.waitlisted = waitlisted


class BookingAlreadyCancelledError(DomainError):
    """Raised when cancelling a booking that is already cancelled or a no-show."""

    def __init__(self, booking_id: str) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_CANCELLED,
            message="Booking is already cancelled",
        )
        self.booking_id = booking_id


class BookingNotConfirmableError(DomainError):
    """Raised when confirming a booking that does not hold a seat."""

    def __init__(self, status: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_CONFIRMABLE,
            message=f"Cannot confirm a {status} booking",
        )
        self.status = status


class CreditContentionError(DomainError):
    """Raised when the chosen credit source keeps changing under concurrent use."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.CREDIT_CONTENTION,
            message="Your credits changed while booking, please try again",
        )


class NoCreditsError(DomainError):
    """Raised when the member has no usable credit source at the studio."""

    def __init__(self, studio_id: str) -> None:
        super().__init__(
            code=ErrorCode.NO_CREDITS,
            message="No credits available, please purchase a plan or drop-in pass",
        )
        self.studio_id = studio_id


class ForbiddenError(DomainError):
    """Raised when a member acts on another member's booking."""

    def __init__(self, action: str) -> None:
        super().__init__(
            code=ErrorCode.FORBIDDEN,
            message=f"You can only {action} your own bookings",
        )
        self.action = action


class StaffOnlyError(DomainError):
    """Raised when a member without a staff role calls a studio endpoint."""

    def __init__(self, role: str | None) -> None:
        super().__init__(
            code=ErrorCode.FORBIDDEN,
            message="Only studio staff can do this",
        )
        self.role = role


class UnauthenticatedError(DomainError):
    """Raised when a request carries no member identity."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.UNAUTHENTICATED,
            message="Authentication required",
        )


class CreditIntegrityError(DomainError):
    """Raised when credit records contradict an invariant, e.g. two active subscriptions."""

    def __init__(self, member_id: str, studio_id: str) -> None:
        super().__init__(
            code=ErrorCode.CREDIT_INTEGRITY,
            message="Your membership records need attention, please contact the studio",
        )
        self.member_id = member_id
        self.studio_id = studio_id


class DuplicateActiveBookingError(Exception):
    """Raised by stores when the active-booking uniqueness constraint rejects an insert."""


class StaleCreditSourceError(Exception):
    """Raised by the ledger when a credit source no longer matches what was resolved."""

    def __init__(self, source: str, source_id: str) -> None:
        super().__init__(f"{source} {source_id} changed since it was resolved")
        self.source = source
        self.source_id = source_id
