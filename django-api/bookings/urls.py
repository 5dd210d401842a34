from django.urls import path

from bookings.handlers import (
    BookClassView,
    CancelBookingView,
    ClassRosterView,
    ConfirmBookingView,
    StaffCancelBookingView,
    WaitlistPositionView,
)

urlpatterns = [
    path("classes/<str:class_id>/book", BookClassView.as_view(), name="class-book"),
    path(
        "classes/<str:class_id>/waitlist/position",
        WaitlistPositionView.as_view(),
        name="class-waitlist-position",
    ),
    path("classes/<str:class_id>/bookings", ClassRosterView.as_view(), name="class-roster"),
    path(
        "classes/<str:class_id>/bookings/<str:booking_id>",
        StaffCancelBookingView.as_view(),
        name="class-booking-cancel",
    ),
    path("bookings/<str:booking_id>", CancelBookingView.as_view(), name="booking-cancel"),
    path(
        "bookings/<str:booking_id>/confirm",
        ConfirmBookingView.as_view(),
        name="booking-confirm",
    ),
]
