"""Waitlist queue and promotion.

The waitlist is the ordered set of ``waitlisted`` bookings of one class,
numbered 1..N by ``waitlist_position``. Every write to that numbering
(append, promotion, compaction) runs under the store's per-class lock so
positions stay unique and contiguous.
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from bookings.domain import (
    Booking,
    BookingStatus,
    ClassInstance,
    ClassInstanceId,
    MemberId,
    NewBooking,
    WaitlistEntry,
)
from bookings.domain.errors import (
    AlreadyBookedError,
    CreditIntegrityError,
    DuplicateActiveBookingError,
    StaleCreditSourceError,
)
from bookings.notifications import LoggingNotifier, Notification, Notifier, send_quietly
from bookings.services.credit_ledger import CreditLedger
from bookings.services.credit_resolver import CreditResolver
from bookings.stores.interfaces import BookingStore, ScheduleStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WaitlistService:
    """Append, look up, list and compact a class's waitlist."""

    def __init__(self, bookings: BookingStore, clock: Callable[[], datetime] = _utcnow) -> None:
        self._bookings = bookings
        self._clock = clock

    def add(self, class_instance_id: ClassInstanceId, member_id: MemberId) -> WaitlistEntry:
        """Put the member at the back of the queue.

        Raises:
            AlreadyBookedError: If the member already holds an active booking.
        """
        with self._bookings.class_lock(class_instance_id):
            # A cancelled entry may have left a gap that nobody compacted yet.
            self.compact(class_instance_id)
            position = self._bookings.count_waitlisted(class_instance_id) + 1
            try:
                booking = self._bookings.create_booking(
                    NewBooking(
                        class_instance_id=class_instance_id,
                        member_id=member_id,
                        status=BookingStatus.WAITLISTED,
                        booked_at=self._clock(),
                        waitlist_position=position,
                    )
                )
            except DuplicateActiveBookingError as exc:
                raise AlreadyBookedError() from exc

        logger.info(
            "Member %s waitlisted for class %s at position %d",
            member_id,
            class_instance_id,
            position,
        )
        return WaitlistEntry(position=booking.waitlist_position or position, booking_id=booking.id)

    def position_of(self, class_instance_id: ClassInstanceId, member_id: MemberId) -> int | None:
        booking = self._bookings.find_active_booking(class_instance_id, member_id)
        if booking is None or booking.status is not BookingStatus.WAITLISTED:
            return None
        return booking.waitlist_position

    def list_ordered(self, class_instance_id: ClassInstanceId) -> list[Booking]:
        """Waitlisted bookings in admission order."""
        return self._bookings.list_waitlisted(class_instance_id)

    def compact(self, class_instance_id: ClassInstanceId) -> None:
        """Renumber the remaining entries 1..N, keeping their relative order."""
        with self._bookings.class_lock(class_instance_id):
            # Ascending order means every move lands on a slot that is already free.
            for expected, booking in enumerate(self.list_ordered(class_instance_id), start=1):
                if booking.waitlist_position != expected:
                    self._bookings.set_waitlist_position(booking.id, expected)


class WaitlistPromoter:
    """Moves the first waitlisted member who can pay into a freed seat."""

    def __init__(
        self,
        schedule: ScheduleStore,
        bookings: BookingStore,
        waitlist: WaitlistService,
        resolver: CreditResolver,
        ledger: CreditLedger,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._schedule = schedule
        self._bookings = bookings
        self._waitlist = waitlist
        self._resolver = resolver
        self._ledger = ledger
        self._notifier = notifier or LoggingNotifier()
        self._clock = clock

    def promote(self, class_instance_id: ClassInstanceId) -> Booking | None:
        """Promote at most one member, then close the gap in the queue.

        Members without a usable credit are skipped and keep their place.
        Returns the promoted booking, or None when nobody could be promoted.
        """
        with self._bookings.class_lock(class_instance_id):
            instance = self._schedule.get_class_instance(class_instance_id)
            promoted = None
            if instance is not None and self._has_open_seat(instance):
                promoted = self._promote_first_eligible(instance)
            self._waitlist.compact(class_instance_id)

        if promoted is not None and instance is not None:
            send_quietly(
                self._notifier,
                Notification(
                    user_id=str(promoted.member_id),
                    studio_id=str(instance.studio_id),
                    type="waitlist_promoted",
                    title="You're in!",
                    body=f"A spot opened up in {instance.name}, you're in!",
                    data={
                        "classId": str(class_instance_id),
                        "bookingId": str(promoted.id),
                        "screen": "BookingDetail",
                    },
                ),
            )
        return promoted

    def fill_open_seats(self, class_instance_id: ClassInstanceId) -> list[Booking]:
        """Promote once per open seat, e.g. after the class capacity was raised."""
        instance = self._schedule.get_class_instance(class_instance_id)
        if instance is None:
            return []
        open_seats = instance.max_capacity.value - self._bookings.count_active(class_instance_id)
        promoted = []
        for _ in range(max(open_seats, 0)):
            booking = self.promote(class_instance_id)
            if booking is None:
                break
            promoted.append(booking)
        return promoted

    def _has_open_seat(self, instance: ClassInstance) -> bool:
        if not instance.is_bookable:
            return False
        return self._bookings.count_active(instance.id) < instance.max_capacity.value

    def _promote_first_eligible(self, instance: ClassInstance) -> Booking | None:
        for entry in self._waitlist.list_ordered(instance.id):
            try:
                check = self._resolver.resolve(entry.member_id, instance.studio_id)
                if not check.has_credits:
                    logger.debug("Waitlisted member %s has no credits, skipping", entry.member_id)
                    continue
                self._ledger.deduct(check)
            except (StaleCreditSourceError, CreditIntegrityError) as exc:
                logger.warning("Skipping waitlisted booking %s: %s", entry.id, exc)
                continue

            if not self._bookings.promote_booking(entry.id, check, self._clock()):
                # Left the waitlist while we were deciding.
                self._ledger.refund(check)
                continue

            logger.info(
                "Promoted booking %s (member %s) from waitlist of class %s",
                entry.id,
                entry.member_id,
                instance.id,
            )
            return self._bookings.get_booking(entry.id)
        return None
