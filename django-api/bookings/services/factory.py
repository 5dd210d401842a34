"""Wires the booking services to the Django stores and settings."""

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from bookings.notifications import Notifier
from bookings.services.booking_service import BookingService
from bookings.services.credit_ledger import CreditLedger
from bookings.services.credit_resolver import CreditResolver
from bookings.services.waitlist import WaitlistPromoter, WaitlistService
from bookings.stores.django_store import DjangoBookingStore, DjangoCreditStore, DjangoScheduleStore

DEFAULTS = {
    "DEFAULT_CANCELLATION_WINDOW_HOURS": 12,
    "CREDIT_DEDUCT_ATTEMPTS": 3,
    "NOTIFIER": "bookings.notifications.LoggingNotifier",
    "MEMBER_HEADER": "HTTP_X_MEMBER_ID",
    "ROLE_HEADER": "HTTP_X_MEMBER_ROLE",
    "STAFF_ROLES": ("teacher", "admin", "owner"),
}


def booking_setting(name: str):
    return getattr(settings, "STUDIO_BOOKING", {}).get(name, DEFAULTS[name])


def build_notifier() -> Notifier:
    return import_string(booking_setting("NOTIFIER"))()


def build_booking_service() -> BookingService:
    schedule = DjangoScheduleStore()
    bookings = DjangoBookingStore()
    credits = DjangoCreditStore()
    notifier = build_notifier()

    resolver = CreditResolver.default(credits, clock=timezone.now)
    ledger = CreditLedger(credits)
    waitlist = WaitlistService(bookings, clock=timezone.now)
    promoter = WaitlistPromoter(
        schedule, bookings, waitlist, resolver, ledger, notifier=notifier, clock=timezone.now
    )
    return BookingService(
        schedule,
        bookings,
        resolver,
        ledger,
        waitlist,
        promoter,
        notifier=notifier,
        clock=timezone.now,
        default_cancellation_window_hours=booking_setting("DEFAULT_CANCELLATION_WINDOW_HOURS"),
        credit_deduct_attempts=booking_setting("CREDIT_DEDUCT_ATTEMPTS"),
    )
