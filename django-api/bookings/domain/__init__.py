from bookings.domain.models import (
    Booking,
    BookingResult,
    BookingStatus,
    CancellationResult,
    ClassInstance,
    ClassPack,
    ClassStatus,
    CompClassGrant,
    NewBooking,
    PlanType,
    Roster,
    Subscription,
    SubscriptionStatus,
    WaitlistEntry,
)
from bookings.domain.value_objects import (
    BookingId,
    Capacity,
    ClassInstanceId,
    CreditCheck,
    CreditSource,
    MemberId,
    StudioId,
)

__all__ = [
    "Booking",
    "BookingResult",
    "BookingStatus",
    "CancellationResult",
    "ClassInstance",
    "ClassPack",
    "ClassStatus",
    "CompClassGrant",
    "NewBooking",
    "PlanType",
    "Roster",
    "Subscription",
    "SubscriptionStatus",
    "WaitlistEntry",
    "BookingId",
    "Capacity",
    "ClassInstanceId",
    "CreditCheck",
    "CreditSource",
    "MemberId",
    "StudioId",
]
