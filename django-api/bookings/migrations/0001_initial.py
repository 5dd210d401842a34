import uuid

import django.db.models.deletion
from django.db import migrations, models

CLASS_STATUS_CHOICES = [
    ("scheduled", "Scheduled"),
    ("in_progress", "In progress"),
    ("completed", "Completed"),
    ("cancelled", "Cancelled"),
]

BOOKING_STATUS_CHOICES = [
    ("booked", "Booked"),
    ("confirmed", "Confirmed"),
    ("waitlisted", "Waitlisted"),
    ("cancelled", "Cancelled"),
    ("no_show", "No show"),
]

CREDIT_SOURCE_CHOICES = [
    ("comp_class", "Comp class"),
    ("subscription_unlimited", "Subscription unlimited"),
    ("subscription_limited", "Subscription limited"),
    ("class_pack", "Class pack"),
    ("none", "None"),
]

SUBSCRIPTION_STATUS_CHOICES = [
    ("active", "Active"),
    ("past_due", "Past due"),
    ("paused", "Paused"),
    ("cancelled", "Cancelled"),
]

PLAN_TYPE_CHOICES = [
    ("unlimited", "Unlimited"),
    ("limited", "Limited"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Studio",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("timezone", models.CharField(default="UTC", max_length=64)),
                ("cancellation_window_hours", models.PositiveIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="ClassInstance",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("date", models.DateField()),
                ("start_time", models.TimeField()),
                ("max_capacity", models.PositiveIntegerField()),
                ("status", models.CharField(choices=CLASS_STATUS_CHOICES, default="scheduled", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "studio",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="classes",
                        to="bookings.studio",
                    ),
                ),
            ],
            options={
                "ordering": ["date", "start_time"],
                "indexes": [models.Index(fields=["studio", "date"], name="class_studio_date_idx")],
            },
        ),
        migrations.CreateModel(
            name="MembershipPlan",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("plan_type", models.CharField(choices=PLAN_TYPE_CHOICES, max_length=20)),
                ("class_limit", models.PositiveIntegerField(blank=True, null=True)),
                (
                    "studio",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="plans",
                        to="bookings.studio",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.UUIDField()),
                ("status", models.CharField(choices=BOOKING_STATUS_CHOICES, max_length=20)),
                ("waitlist_position", models.PositiveIntegerField(blank=True, null=True)),
                ("credit_source", models.CharField(choices=CREDIT_SOURCE_CHOICES, default="none", max_length=32)),
                ("credit_source_id", models.UUIDField(blank=True, null=True)),
                ("booked_at", models.DateTimeField(blank=True, null=True)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("credit_refunded_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "class_instance",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings",
                        to="bookings.classinstance",
                    ),
                ),
            ],
            options={
                "ordering": ["booked_at"],
                "indexes": [
                    models.Index(fields=["class_instance", "status"], name="booking_class_status_idx")
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=~models.Q(status__in=["cancelled", "no_show"]),
                        fields=("class_instance", "user_id"),
                        name="uq_booking_member_class_active",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(status="waitlisted"),
                        fields=("class_instance", "waitlist_position"),
                        name="uq_booking_waitlist_position",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Subscription",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.UUIDField()),
                ("status", models.CharField(choices=SUBSCRIPTION_STATUS_CHOICES, max_length=20)),
                ("classes_used_this_period", models.PositiveIntegerField(default=0)),
                ("current_period_start", models.DateTimeField(blank=True, null=True)),
                ("current_period_end", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "plan",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="subscriptions",
                        to="bookings.membershipplan",
                    ),
                ),
                (
                    "studio",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="subscriptions",
                        to="bookings.studio",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["user_id", "studio", "status"], name="subscription_member_idx")
                ],
            },
        ),
        migrations.CreateModel(
            name="CompClass",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.UUIDField()),
                ("total_classes", models.PositiveIntegerField()),
                ("remaining_classes", models.PositiveIntegerField()),
                ("reason", models.CharField(blank=True, max_length=255)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "studio",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="comp_classes",
                        to="bookings.studio",
                    ),
                ),
            ],
            options={
                "indexes": [models.Index(fields=["user_id", "studio"], name="comp_class_member_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(remaining_classes__lte=models.F("total_classes")),
                        name="ck_comp_class_remaining_within_total",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ClassPack",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.UUIDField()),
                ("total_classes", models.PositiveIntegerField()),
                ("remaining_classes", models.PositiveIntegerField()),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "studio",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="class_packs",
                        to="bookings.studio",
                    ),
                ),
            ],
            options={
                "indexes": [models.Index(fields=["user_id", "studio"], name="class_pack_member_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(remaining_classes__lte=models.F("total_classes")),
                        name="ck_class_pack_remaining_within_total",
                    )
                ],
            },
        ),
    ]
