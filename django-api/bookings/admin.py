from django.contrib import admin

from bookings.models import (
    Booking,
    ClassInstance,
    ClassPack,
    CompClass,
    MembershipPlan,
    Studio,
    Subscription,
)


class BookingInline(admin.TabularInline):
    model = Booking
    extra = 0
    fields = ["user_id", "status", "waitlist_position", "credit_source", "booked_at"]
    readonly_fields = fields
    can_delete = False


class ClassInstanceInline(admin.TabularInline):
    model = ClassInstance
    extra = 1


@admin.register(Studio)
class StudioAdmin(admin.ModelAdmin):
    list_display = ["name", "timezone", "cancellation_window_hours"]
    search_fields = ["name"]
    inlines = [ClassInstanceInline]


@admin.register(ClassInstance)
class ClassInstanceAdmin(admin.ModelAdmin):
    list_display = ["name", "studio", "date", "start_time", "max_capacity", "status"]
    list_filter = ["studio", "status"]
    inlines = [BookingInline]


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ["user_id", "class_instance", "status", "waitlist_position", "credit_source"]
    list_filter = ["status", "credit_source"]
    # Credit balances and seat counts only change through the booking service.
    readonly_fields = [
        "status",
        "waitlist_position",
        "credit_source",
        "credit_source_id",
        "credit_refunded_at",
    ]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(MembershipPlan)
class MembershipPlanAdmin(admin.ModelAdmin):
    list_display = ["name", "studio", "plan_type", "class_limit"]
    list_filter = ["studio", "plan_type"]


class CreditBalanceAdmin(admin.ModelAdmin):
    """Balances are set when a grant is created and only move through the credit ledger."""

    balance_fields: list[str] = []

    def get_readonly_fields(self, request, obj=None):
        readonly = list(super().get_readonly_fields(request, obj))
        if obj is not None:
            readonly.extend(self.balance_fields)
        return readonly


@admin.register(Subscription)
class SubscriptionAdmin(CreditBalanceAdmin):
    list_display = ["user_id", "studio", "plan", "status", "classes_used_this_period"]
    list_filter = ["studio", "status"]
    readonly_fields = ["classes_used_this_period"]


@admin.register(CompClass)
class CompClassAdmin(CreditBalanceAdmin):
    list_display = ["user_id", "studio", "remaining_classes", "total_classes", "expires_at"]
    list_filter = ["studio"]
    balance_fields = ["remaining_classes", "total_classes"]


@admin.register(ClassPack)
class ClassPackAdmin(CreditBalanceAdmin):
    list_display = ["user_id", "studio", "remaining_classes", "total_classes", "expires_at"]
    list_filter = ["studio"]
    balance_fields = ["remaining_classes", "total_classes"]
