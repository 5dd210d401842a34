"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models
from django.db.models import F, Q

from bookings.domain import BookingStatus, ClassStatus, CreditSource, PlanType, SubscriptionStatus


def _choices(enum_cls) -> list[tuple[str, str]]:
    return [(member.value, member.value.replace("_", " ").capitalize()) for member in enum_cls]


class Studio(models.Model):
    """Persistence model for studios (owned by studio management)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    timezone = models.CharField(max_length=64, default="UTC")
    cancellation_window_hours = models.PositiveIntegerField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class ClassInstance(models.Model):
    """Persistence model for one scheduled class occurrence."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    studio = models.ForeignKey(Studio, on_delete=models.CASCADE, related_name="classes")
    name = models.CharField(max_length=255)
    date = models.DateField()
    start_time = models.TimeField()
    max_capacity = models.PositiveIntegerField()
    status = models.CharField(
        max_length=20, choices=_choices(ClassStatus), default=ClassStatus.SCHEDULED.value
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["date", "start_time"]
        indexes = [
            models.Index(fields=["studio", "date"], name="class_studio_date_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} - {self.date} {self.start_time}"


class Booking(models.Model):
    """Persistence model for bookings. Rows are never deleted, only transitioned."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    class_instance = models.ForeignKey(
        ClassInstance, on_delete=models.CASCADE, related_name="bookings"
    )
    user_id = models.UUIDField()
    status = models.CharField(max_length=20, choices=_choices(BookingStatus))
    waitlist_position = models.PositiveIntegerField(blank=True, null=True)
    credit_source = models.CharField(
        max_length=32, choices=_choices(CreditSource), default=CreditSource.NONE.value
    )
    credit_source_id = models.UUIDField(blank=True, null=True)
    booked_at = models.DateTimeField(blank=True, null=True)
    confirmed_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    credit_refunded_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["booked_at"]
        indexes = [
            models.Index(fields=["class_instance", "status"], name="booking_class_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["class_instance", "user_id"],
                condition=~Q(
                    status__in=[BookingStatus.CANCELLED.value, BookingStatus.NO_SHOW.value]
                ),
                name="uq_booking_member_class_active",
            ),
            models.UniqueConstraint(
                fields=["class_instance", "waitlist_position"],
                condition=Q(status=BookingStatus.WAITLISTED.value),
                name="uq_booking_waitlist_position",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} - {self.status}"


class MembershipPlan(models.Model):
    """Persistence model for subscription plans."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    studio = models.ForeignKey(Studio, on_delete=models.CASCADE, related_name="plans")
    name = models.CharField(max_length=100)
    plan_type = models.CharField(max_length=20, choices=_choices(PlanType))
    class_limit = models.PositiveIntegerField(blank=True, null=True)

    def __str__(self) -> str:
        return self.name


class Subscription(models.Model):
    """Persistence model for member subscriptions."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.UUIDField()
    studio = models.ForeignKey(Studio, on_delete=models.CASCADE, related_name="subscriptions")
    plan = models.ForeignKey(
        MembershipPlan, on_delete=models.PROTECT, related_name="subscriptions"
    )
    status = models.CharField(max_length=20, choices=_choices(SubscriptionStatus))
    classes_used_this_period = models.PositiveIntegerField(default=0)
    current_period_start = models.DateTimeField(blank=True, null=True)
    current_period_end = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["user_id", "studio", "status"], name="subscription_member_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} - {self.plan}"


class CompClass(models.Model):
    """Persistence model for staff-granted free classes."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.UUIDField()
    studio = models.ForeignKey(Studio, on_delete=models.CASCADE, related_name="comp_classes")
    total_classes = models.PositiveIntegerField()
    remaining_classes = models.PositiveIntegerField()
    reason = models.CharField(max_length=255, blank=True)
    expires_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["user_id", "studio"], name="comp_class_member_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(remaining_classes__lte=F("total_classes")),
                name="ck_comp_class_remaining_within_total",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} - {self.remaining_classes}/{self.total_classes}"


class ClassPack(models.Model):
    """Persistence model for prepaid class packs."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.UUIDField()
    studio = models.ForeignKey(Studio, on_delete=models.CASCADE, related_name="class_packs")
    total_classes = models.PositiveIntegerField()
    remaining_classes = models.PositiveIntegerField()
    expires_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["user_id", "studio"], name="class_pack_member_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(remaining_classes__lte=F("total_classes")),
                name="ck_class_pack_remaining_within_total",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} - {self.remaining_classes}/{self.total_classes}"
