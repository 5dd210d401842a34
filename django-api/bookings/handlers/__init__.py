from bookings.handlers.views import (
    BookClassView,
    CancelBookingView,
    ClassRosterView,
    ConfirmBookingView,
    StaffCancelBookingView,
    WaitlistPositionView,
)

__all__ = [
    "BookClassView",
    "CancelBookingView",
    "ClassRosterView",
    "ConfirmBookingView",
    "StaffCancelBookingView",
    "WaitlistPositionView",
]
