"""Django ORM implementations of the booking stores."""

from contextlib import AbstractContextManager, contextmanager
from datetime import datetime
from typing import Iterator
from uuid import UUID
from zoneinfo import ZoneInfo

from django.db import IntegrityError, transaction
from django.db.models import F

from bookings import models
from bookings.domain import (
    Booking,
    BookingId,
    BookingStatus,
    Capacity,
    ClassInstance,
    ClassInstanceId,
    ClassPack,
    ClassStatus,
    CompClassGrant,
    CreditCheck,
    CreditSource,
    MemberId,
    NewBooking,
    PlanType,
    StudioId,
    Subscription,
    SubscriptionStatus,
)
from bookings.domain.errors import CreditIntegrityError, DuplicateActiveBookingError
from bookings.domain.models import ACTIVE_STATUSES, TERMINAL_STATUSES
from bookings.stores.interfaces import BookingStore, CreditStore, ScheduleStore

_ACTIVE = [status.value for status in ACTIVE_STATUSES]
_TERMINAL = [status.value for status in TERMINAL_STATUSES]


def _booking_to_domain(row: models.Booking) -> Booking:
    return Booking(
        id=BookingId(row.id),
        class_instance_id=ClassInstanceId(row.class_instance_id),
        member_id=MemberId(row.user_id),
        status=BookingStatus(row.status),
        credit_source=CreditSource(row.credit_source),
        credit_source_id=row.credit_source_id,
        waitlist_position=row.waitlist_position,
        booked_at=row.booked_at,
        confirmed_at=row.confirmed_at,
        cancelled_at=row.cancelled_at,
        credit_refunded_at=row.credit_refunded_at,
    )


class DjangoScheduleStore(ScheduleStore):
    """Reads class instances from the scheduling tables."""

    def get_class_instance(self, class_instance_id: ClassInstanceId) -> ClassInstance | None:
        row = (
            models.ClassInstance.objects.select_related("studio")
            .filter(pk=class_instance_id.value)
            .first()
        )
        if row is None:
            return None
        starts_at = datetime.combine(row.date, row.start_time, tzinfo=ZoneInfo(row.studio.timezone))
        return ClassInstance(
            id=ClassInstanceId(row.id),
            studio_id=StudioId(row.studio_id),
            name=row.name,
            starts_at=starts_at,
            max_capacity=Capacity(row.max_capacity),
            status=ClassStatus(row.status),
            cancellation_window_hours=row.studio.cancellation_window_hours,
        )


class DjangoBookingStore(BookingStore):
    """PostgreSQL-backed booking store using Django ORM."""

    def atomic(self) -> AbstractContextManager:
        return transaction.atomic()

    @contextmanager
    def class_lock(self, class_instance_id: ClassInstanceId) -> Iterator[None]:
        # Row lock on the class; nested calls in the same transaction are no-ops.
        with transaction.atomic():
            list(
                models.ClassInstance.objects.select_for_update()
                .filter(pk=class_instance_id.value)
                .values_list("pk", flat=True)
            )
            yield

    def get_booking(self, booking_id: BookingId) -> Booking | None:
        row = models.Booking.objects.filter(pk=booking_id.value).first()
        return _booking_to_domain(row) if row else None

    def find_active_booking(
        self, class_instance_id: ClassInstanceId, member_id: MemberId
    ) -> Booking | None:
        row = (
            models.Booking.objects.filter(
                class_instance_id=class_instance_id.value, user_id=member_id.value
            )
            .exclude(status__in=_TERMINAL)
            .first()
        )
        return _booking_to_domain(row) if row else None

    def count_active(self, class_instance_id: ClassInstanceId) -> int:
        return models.Booking.objects.filter(
            class_instance_id=class_instance_id.value, status__in=_ACTIVE
        ).count()

    def count_waitlisted(self, class_instance_id: ClassInstanceId) -> int:
        return models.Booking.objects.filter(
            class_instance_id=class_instance_id.value, status=BookingStatus.WAITLISTED.value
        ).count()

    def create_booking(self, new_booking: NewBooking) -> Booking:
        try:
            with transaction.atomic():
                row = models.Booking.objects.create(
                    class_instance_id=new_booking.class_instance_id.value,
                    user_id=new_booking.member_id.value,
                    status=new_booking.status.value,
                    waitlist_position=new_booking.waitlist_position,
                    credit_source=new_booking.credit_source.value,
                    credit_source_id=new_booking.credit_source_id,
                    booked_at=new_booking.booked_at,
                )
        except IntegrityError as exc:
            if self.find_active_booking(new_booking.class_instance_id, new_booking.member_id):
                raise DuplicateActiveBookingError(str(new_booking.class_instance_id)) from exc
            raise
        return _booking_to_domain(row)

    def list_waitlisted(self, class_instance_id: ClassInstanceId) -> list[Booking]:
        rows = models.Booking.objects.filter(
            class_instance_id=class_instance_id.value, status=BookingStatus.WAITLISTED.value
        ).order_by("waitlist_position")
        return [_booking_to_domain(row) for row in rows]

    def list_bookings(self, class_instance_id: ClassInstanceId) -> list[Booking]:
        rows = models.Booking.objects.filter(class_instance_id=class_instance_id.value).order_by(
            "booked_at", "created_at"
        )
        return [_booking_to_domain(row) for row in rows]

    def set_waitlist_position(self, booking_id: BookingId, position: int) -> None:
        models.Booking.objects.filter(
            pk=booking_id.value, status=BookingStatus.WAITLISTED.value
        ).update(waitlist_position=position)

    def promote_booking(
        self, booking_id: BookingId, credit_check: CreditCheck, booked_at: datetime
    ) -> bool:
        updated = models.Booking.objects.filter(
            pk=booking_id.value, status=BookingStatus.WAITLISTED.value
        ).update(
            status=BookingStatus.BOOKED.value,
            waitlist_position=None,
            credit_source=credit_check.source.value,
            credit_source_id=credit_check.source_id,
            booked_at=booked_at,
        )
        return updated == 1

    def cancel_booking(
        self, booking_id: BookingId, cancelled_at: datetime, expected_status: BookingStatus
    ) -> bool:
        if expected_status.is_terminal:
            return False
        updated = models.Booking.objects.filter(
            pk=booking_id.value, status=expected_status.value
        ).update(
            status=BookingStatus.CANCELLED.value,
            waitlist_position=None,
            cancelled_at=cancelled_at,
        )
        return updated == 1

    def claim_credit_refund(self, booking_id: BookingId, refunded_at: datetime) -> bool:
        updated = models.Booking.objects.filter(
            pk=booking_id.value, credit_refunded_at__isnull=True
        ).update(credit_refunded_at=refunded_at)
        return updated == 1

    def confirm_booking(self, booking_id: BookingId, confirmed_at: datetime) -> bool:
        updated = models.Booking.objects.filter(
            pk=booking_id.value, status=BookingStatus.BOOKED.value
        ).update(status=BookingStatus.CONFIRMED.value, confirmed_at=confirmed_at)
        return updated == 1


class DjangoCreditStore(CreditStore):
    """Credit sources read and written through Django ORM."""

    def list_comp_grants(self, member_id: MemberId, studio_id: StudioId) -> list[CompClassGrant]:
        rows = models.CompClass.objects.filter(
            user_id=member_id.value, studio_id=studio_id.value, remaining_classes__gt=0
        ).order_by(F("expires_at").asc(nulls_last=True), "created_at")
        return [
            CompClassGrant(
                id=row.id,
                member_id=member_id,
                studio_id=studio_id,
                remaining_classes=row.remaining_classes,
                expires_at=row.expires_at,
            )
            for row in rows
        ]

    def get_active_subscription(
        self, member_id: MemberId, studio_id: StudioId
    ) -> Subscription | None:
        rows = list(
            models.Subscription.objects.select_related("plan").filter(
                user_id=member_id.value,
                studio_id=studio_id.value,
                status=SubscriptionStatus.ACTIVE.value,
            )[:2]
        )
        if len(rows) > 1:
            raise CreditIntegrityError(str(member_id), str(studio_id))
        if not rows:
            return None
        row = rows[0]
        return Subscription(
            id=row.id,
            member_id=member_id,
            studio_id=studio_id,
            status=SubscriptionStatus(row.status),
            plan_type=PlanType(row.plan.plan_type),
            class_limit=row.plan.class_limit,
            classes_used_this_period=row.classes_used_this_period,
        )

    def list_class_packs(self, member_id: MemberId, studio_id: StudioId) -> list[ClassPack]:
        rows = models.ClassPack.objects.filter(
            user_id=member_id.value, studio_id=studio_id.value, remaining_classes__gt=0
        ).order_by("created_at")
        return [
            ClassPack(
                id=row.id,
                member_id=member_id,
                studio_id=studio_id,
                remaining_classes=row.remaining_classes,
                created_at=row.created_at,
                expires_at=row.expires_at,
            )
            for row in rows
        ]

    def take_comp_class(self, grant_id: UUID, remaining_after: int) -> bool:
        return self._take(models.CompClass, grant_id, remaining_after)

    def return_comp_class(self, grant_id: UUID) -> bool:
        return self._return(models.CompClass, grant_id)

    def take_class_pack(self, pack_id: UUID, remaining_after: int) -> bool:
        return self._take(models.ClassPack, pack_id, remaining_after)

    def return_class_pack(self, pack_id: UUID) -> bool:
        return self._return(models.ClassPack, pack_id)

    def record_subscription_use(self, subscription_id: UUID, remaining_after: int) -> bool:
        row = models.Subscription.objects.select_related("plan").filter(pk=subscription_id).first()
        if row is None or row.plan.class_limit is None:
            return False
        used_before = row.plan.class_limit - remaining_after - 1
        updated = models.Subscription.objects.filter(
            pk=subscription_id,
            status=SubscriptionStatus.ACTIVE.value,
            classes_used_this_period=used_before,
        ).update(classes_used_this_period=F("classes_used_this_period") + 1)
        return updated == 1

    def release_subscription_use(self, subscription_id: UUID) -> bool:
        updated = models.Subscription.objects.filter(
            pk=subscription_id, classes_used_this_period__gt=0
        ).update(classes_used_this_period=F("classes_used_this_period") - 1)
        return updated == 1

    @staticmethod
    def _take(model, source_id: UUID, remaining_after: int) -> bool:
        updated = model.objects.filter(pk=source_id, remaining_classes=remaining_after + 1).update(
            remaining_classes=remaining_after
        )
        return updated == 1

    @staticmethod
    def _return(model, source_id: UUID) -> bool:
        updated = model.objects.filter(
            pk=source_id, remaining_classes__lt=F("total_classes")
        ).update(remaining_classes=F("remaining_classes") + 1)
        return updated == 1
