"""Booking service - admission control and booking lifecycle.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors

Seat counts are always derived from booking rows. Admission is optimistic:
two requests may both pass the capacity pre-check, and the post-insert
reconciliation demotes whichever one finds the class over capacity.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, TypeVar

from bookings.domain import (
    Booking,
    BookingId,
    BookingResult,
    BookingStatus,
    CancellationResult,
    ClassInstance,
    ClassInstanceId,
    CreditCheck,
    MemberId,
    NewBooking,
    Roster,
)
from bookings.domain.errors import (
    AlreadyBookedError,
    BookingAlreadyCancelledError,
    BookingNotConfirmableError,
    BookingNotFoundError,
    ClassNotFoundError,
    CreditContentionError,
    DuplicateActiveBookingError,
    ForbiddenError,
    InvalidIdError,
    NoCreditsError,
    NotBookableError,
    StaleCreditSourceError,
)
from bookings.notifications import LoggingNotifier, Notification, Notifier, send_quietly
from bookings.services.credit_ledger import CreditLedger
from bookings.services.credit_resolver import CreditResolver
from bookings.services.waitlist import WaitlistPromoter, WaitlistService
from bookings.stores.interfaces import BookingStore, ScheduleStore

logger = logging.getLogger(__name__)

IdT = TypeVar("IdT", ClassInstanceId, BookingId, MemberId)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_id(id_type: type[IdT], raw: str, field: str) -> IdT:
    try:
        return id_type.from_string(raw)
    except (TypeError, ValueError, AttributeError) as exc:
        raise InvalidIdError(field) from exc


class BookingService:
    """Books, cancels and confirms class seats for members."""

    def __init__(
        self,
        schedule: ScheduleStore,
        bookings: BookingStore,
        resolver: CreditResolver,
        ledger: CreditLedger,
        waitlist: WaitlistService,
        promoter: WaitlistPromoter,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = _utcnow,
        default_cancellation_window_hours: int = 12,
        credit_deduct_attempts: int = 3,
    ) -> None:
        self._schedule = schedule
        self._bookings = bookings
        self._resolver = resolver
        self._ledger = ledger
        self._waitlist = waitlist
        self._promoter = promoter
        self._notifier = notifier or LoggingNotifier()
        self._clock = clock
        self._default_window = timedelta(hours=default_cancellation_window_hours)
        self._credit_deduct_attempts = max(credit_deduct_attempts, 1)

    def book(self, class_instance_id: str, member_id: str) -> BookingResult:
        """Admit a member to a class, or waitlist them when it is full.

        Raises:
            InvalidIdError: If an ID is not a valid UUID.
            ClassNotFoundError: If the class does not exist.
            NotBookableError: If the class is not scheduled.
            AlreadyBookedError: If the member already booked or is waitlisted.
            NoCreditsError: If the member has nothing to pay with.
            CreditContentionError: If the credit kept changing under concurrent bookings.
            CreditIntegrityError: If the member has more than one active subscription.
        """
        class_id = _parse_id(ClassInstanceId, class_instance_id, "class ID")
        member = _parse_id(MemberId, member_id, "member ID")
        instance = self._get_class(class_id)
        if not instance.is_bookable:
            raise NotBookableError(instance.status.value)

        existing = self._bookings.find_active_booking(class_id, member)
        if existing is not None:
            raise AlreadyBookedError(waitlisted=existing.status is BookingStatus.WAITLISTED)

        # A full class must never consume a credit.
        if self._bookings.count_active(class_id) >= instance.max_capacity.value:
            return self._join_waitlist(class_id, member)

        with self._bookings.atomic():
            check = self._deduct_first_available(member, instance)
            booking = self._insert_booked(class_id, member, check)

        demoted = self._reconcile_capacity(instance, booking, check)
        if demoted is not None:
            return demoted

        logger.info(
            "Booked member %s into class %s using %s", member, class_id, check.source.value
        )
        send_quietly(
            self._notifier,
            Notification(
                user_id=str(member),
                studio_id=str(instance.studio_id),
                type="booking_confirmed",
                title="Booking Confirmed",
                body=f"You're booked for {instance.name} on {instance.starts_at:%Y-%m-%d}",
                data={
                    "classId": str(class_id),
                    "bookingId": str(booking.id),
                    "screen": "BookingDetail",
                },
            ),
        )
        return BookingResult(
            status=BookingStatus.BOOKED,
            booking_id=booking.id,
            credit_source=check.source,
            remaining_credits=check.remaining_after,
        )

    def cancel(self, booking_id: str, member_id: str) -> CancellationResult:
        """Cancel the member's own booking and hand the seat to the waitlist.

        The credit is refunded only when cancelling inside the studio's
        cancellation window.

        Raises:
            InvalidIdError: If an ID is not a valid UUID.
            BookingNotFoundError: If the booking does not exist.
            ForbiddenError: If the booking belongs to someone else.
            BookingAlreadyCancelledError: If the booking is already cancelled or a no-show.
        """
        booking = self._get_booking(_parse_id(BookingId, booking_id, "booking ID"))
        if booking.member_id != _parse_id(MemberId, member_id, "member ID"):
            raise ForbiddenError("cancel")
        return self._cancel(booking, honour_window=True)

    def cancel_as_staff(self, class_instance_id: str, booking_id: str) -> CancellationResult:
        """Cancel any booking of a class on behalf of the studio. Always refunds."""
        class_id = _parse_id(ClassInstanceId, class_instance_id, "class ID")
        booking = self._get_booking(_parse_id(BookingId, booking_id, "booking ID"))
        if booking.class_instance_id != class_id:
            raise BookingNotFoundError(booking_id)

        result = self._cancel(booking, honour_window=False)
        instance = self._schedule.get_class_instance(class_id)
        send_quietly(
            self._notifier,
            Notification(
                user_id=str(booking.member_id),
                studio_id=str(instance.studio_id) if instance else "",
                type="booking_cancelled",
                title="Booking Cancelled",
                body="Your booking has been cancelled by staff.",
                data={
                    "classId": str(class_id),
                    "bookingId": str(booking.id),
                    "screen": "BookingDetail",
                },
            ),
        )
        return result

    def confirm(self, booking_id: str, member_id: str) -> Booking:
        """Confirm attendance for a booked seat. Confirming twice is a no-op."""
        booking = self._get_booking(_parse_id(BookingId, booking_id, "booking ID"))
        if booking.member_id != _parse_id(MemberId, member_id, "member ID"):
            raise ForbiddenError("confirm")
        if booking.status is BookingStatus.CONFIRMED:
            return booking
        if booking.status is not BookingStatus.BOOKED:
            raise BookingNotConfirmableError(booking.status.value)

        if not self._bookings.confirm_booking(booking.id, self._clock()):
            current = self._get_booking(booking.id)
            if current.status is not BookingStatus.CONFIRMED:
                raise BookingNotConfirmableError(current.status.value)
            return current
        return self._get_booking(booking.id)

    def waitlist_position(self, class_instance_id: str, member_id: str) -> int | None:
        class_id = _parse_id(ClassInstanceId, class_instance_id, "class ID")
        self._get_class(class_id)
        return self._waitlist.position_of(class_id, _parse_id(MemberId, member_id, "member ID"))

    def roster(self, class_instance_id: str) -> Roster:
        """Every booking of a class grouped into active, waitlist and cancelled."""
        class_id = _parse_id(ClassInstanceId, class_instance_id, "class ID")
        instance = self._get_class(class_id)
        bookings = self._bookings.list_bookings(class_id)
        waitlist = sorted(
            (b for b in bookings if b.status is BookingStatus.WAITLISTED),
            key=lambda b: b.waitlist_position or 0,
        )
        return Roster(
            class_instance_id=class_id,
            max_capacity=instance.max_capacity,
            active=tuple(b for b in bookings if b.status.holds_seat),
            waitlist=tuple(waitlist),
            cancelled=tuple(b for b in bookings if b.status.is_terminal),
        )

    def fill_open_seats(self, class_instance_id: ClassInstanceId) -> list[Booking]:
        return self._promoter.fill_open_seats(class_instance_id)

    def _get_class(self, class_id: ClassInstanceId) -> ClassInstance:
        instance = self._schedule.get_class_instance(class_id)
        if instance is None:
            raise ClassNotFoundError(str(class_id))
        return instance

    def _get_booking(self, booking_id: BookingId) -> Booking:
        booking = self._bookings.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(str(booking_id))
        return booking

    def _join_waitlist(self, class_id: ClassInstanceId, member: MemberId) -> BookingResult:
        entry = self._waitlist.add(class_id, member)
        return BookingResult(
            status=BookingStatus.WAITLISTED,
            booking_id=entry.booking_id,
            waitlist_position=entry.position,
        )

    def _deduct_first_available(self, member: MemberId, instance: ClassInstance) -> CreditCheck:
        for _ in range(self._credit_deduct_attempts):
            check = self._resolver.resolve(member, instance.studio_id)
            if not check.has_credits:
                raise NoCreditsError(str(instance.studio_id))
            try:
                self._ledger.deduct(check)
            except StaleCreditSourceError as exc:
                logger.info("Credit changed during booking, re-resolving: %s", exc)
                continue
            return check
        raise CreditContentionError()

    def _insert_booked(
        self, class_id: ClassInstanceId, member: MemberId, check: CreditCheck
    ) -> Booking:
        try:
            return self._bookings.create_booking(
                NewBooking(
                    class_instance_id=class_id,
                    member_id=member,
                    status=BookingStatus.BOOKED,
                    booked_at=self._clock(),
                    credit_source=check.source,
                    credit_source_id=check.source_id,
                )
            )
        except DuplicateActiveBookingError as exc:
            self._compensate(check)
            raise AlreadyBookedError() from exc
        except Exception:
            self._compensate(check)
            raise

    def _compensate(self, check: CreditCheck) -> None:
        try:
            self._ledger.refund(check)
        except Exception:
            logger.exception(
                "Compensating refund failed for %s %s", check.source.value, check.source_id
            )

    def _reconcile_capacity(
        self, instance: ClassInstance, booking: Booking, check: CreditCheck
    ) -> BookingResult | None:
        with self._bookings.class_lock(instance.id):
            if self._bookings.count_active(instance.id) <= instance.max_capacity.value:
                return None

            now = self._clock()
            if self._cancel_current(booking.id, now) is None:
                return None
            if self._bookings.claim_credit_refund(booking.id, now):
                self._ledger.refund(check)
            logger.info(
                "Class %s over capacity after insert, moving member %s to the waitlist",
                instance.id,
                booking.member_id,
            )
            return self._join_waitlist(instance.id, booking.member_id)

    def _cancel_current(self, booking_id: BookingId, now: datetime) -> Booking | None:
        """Cancel the booking in whatever state it is in right now.

        Returns the row as it was just before cancelling, or None if it was
        already cancelled. A promotion or confirmation racing with the cancel
        makes the conditional update miss, so the row is re-read and retried.
        """
        while True:
            current = self._get_booking(booking_id)
            if current.status.is_terminal:
                return None
            if self._bookings.cancel_booking(booking_id, now, current.status):
                return current

    def _cancel(self, booking: Booking, honour_window: bool) -> CancellationResult:
        if booking.status.is_terminal:
            raise BookingAlreadyCancelledError(str(booking.id))

        now = self._clock()
        refunded = False
        with self._bookings.class_lock(booking.class_instance_id):
            cancelled = self._cancel_current(booking.id, now)
            if cancelled is None:
                raise BookingAlreadyCancelledError(str(booking.id))

            # The credit to return is the one on the row we cancelled, which a
            # promotion may have charged after the caller read the booking.
            check = CreditCheck.charged_to(cancelled.credit_source, cancelled.credit_source_id)
            if cancelled.status.holds_seat and check.has_credits:
                instance = self._schedule.get_class_instance(cancelled.class_instance_id)
                if not honour_window or self._within_window(instance, now):
                    if self._bookings.claim_credit_refund(cancelled.id, now):
                        refunded = self._ledger.refund(check)

        logger.info(
            "Cancelled booking %s (member %s), credit refunded: %s",
            booking.id,
            booking.member_id,
            refunded,
        )
        promoted = self._promoter.promote(booking.class_instance_id)
        return CancellationResult(
            booking_id=booking.id,
            status=BookingStatus.CANCELLED,
            credit_refunded=refunded,
            promoted_booking_id=promoted.id if promoted else None,
        )

    def _within_window(self, instance: ClassInstance | None, now: datetime) -> bool:
        if instance is None:
            return False
        window = self._default_window
        if instance.cancellation_window_hours is not None:
            window = timedelta(hours=instance.cancellation_window_hours)
        return instance.starts_at - now >= window
