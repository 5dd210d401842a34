"""Serializers for transforming domain models to API responses."""

from rest_framework import serializers


class BookingSerializer(serializers.Serializer):
    """Serializer for Booking domain model."""

    id = serializers.UUIDField(source="id.value")
    class_instance_id = serializers.UUIDField(source="class_instance_id.value")
    member_id = serializers.UUIDField(source="member_id.value")
    status = serializers.CharField(source="status.value")
    credit_source = serializers.CharField(source="credit_source.value")
    waitlist_position = serializers.IntegerField(allow_null=True)
    booked_at = serializers.DateTimeField(allow_null=True)
    confirmed_at = serializers.DateTimeField(allow_null=True)
    cancelled_at = serializers.DateTimeField(allow_null=True)


class BookingResultSerializer(serializers.Serializer):
    """Serializer for the outcome of a booking request."""

    status = serializers.CharField(source="status.value")
    booking_id = serializers.UUIDField(source="booking_id.value")
    credit_source = serializers.SerializerMethodField()
    remaining_credits = serializers.IntegerField(allow_null=True)
    waitlist_position = serializers.IntegerField(allow_null=True)
    message = serializers.SerializerMethodField()

    def get_credit_source(self, result) -> str | None:
        return result.credit_source.value if result.credit_source else None

    def get_message(self, result) -> str | None:
        if result.waitlist_position is None:
            return None
        return f"Class is full. You are #{result.waitlist_position} on the waitlist."


class CancellationResultSerializer(serializers.Serializer):
    booking_id = serializers.UUIDField(source="booking_id.value")
    status = serializers.CharField(source="status.value")
    credit_refunded = serializers.BooleanField()
    promoted_booking_id = serializers.SerializerMethodField()

    def get_promoted_booking_id(self, result) -> str | None:
        return str(result.promoted_booking_id) if result.promoted_booking_id else None


class RosterSerializer(serializers.Serializer):
    """Serializer for the staff roster of a class."""

    class_instance_id = serializers.UUIDField(source="class_instance_id.value")
    max_capacity = serializers.IntegerField(source="max_capacity.value")
    booked = BookingSerializer(source="active", many=True)
    waitlist = BookingSerializer(many=True)
    cancelled = BookingSerializer(many=True)
