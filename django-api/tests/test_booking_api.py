"""End-to-end tests for the booking HTTP API.

Run with: pytest tests/test_booking_api.py -v
"""

import uuid
from datetime import timedelta

import pytest

from bookings import models


def _book(api_client, class_instance, member_id):
    return api_client.post(
        f"/api/classes/{class_instance.pk}/book", HTTP_X_MEMBER_ID=str(member_id)
    )


def _staff_headers(role="owner"):
    return {"HTTP_X_MEMBER_ID": str(uuid.uuid4()), "HTTP_X_MEMBER_ROLE": role}


@pytest.mark.django_db
class TestBookClass:
    """Tests for POST /api/classes/{class_id}/book"""

    def test_book_open_class_returns_201(self, api_client, make_class, make_member):
        class_instance = make_class(max_capacity=10)
        member_id, pack = make_member(remaining=5)

        response = _book(api_client, class_instance, member_id)

        assert response.status_code == 201
        assert response.data["status"] == "booked"
        assert response.data["credit_source"] == "class_pack"
        assert response.data["remaining_credits"] == 4
        pack.refresh_from_db()
        assert pack.remaining_classes == 4

    def test_full_class_returns_202_with_position(self, api_client, make_class, make_member):
        class_instance = make_class(max_capacity=1)
        first, _ = make_member()
        _book(api_client, class_instance, first)
        member_id, pack = make_member(remaining=5)

        response = _book(api_client, class_instance, member_id)

        assert response.status_code == 202
        assert response.data["status"] == "waitlisted"
        assert response.data["waitlist_position"] == 1
        assert "#1 on the waitlist" in response.data["message"]
        pack.refresh_from_db()
        assert pack.remaining_classes == 5

    def test_second_booking_returns_409(self, api_client, make_class, make_member):
        class_instance = make_class(max_capacity=10)
        member_id, _ = make_member()
        _book(api_client, class_instance, member_id)

        response = _book(api_client, class_instance, member_id)

        assert response.status_code == 409
        assert response.data["code"] == "ALREADY_BOOKED"

    def test_no_credits_returns_402(self, api_client, make_class):
        response = _book(api_client, make_class(max_capacity=10), uuid.uuid4())

        assert response.status_code == 402
        assert response.data["code"] == "NO_CREDITS"
        assert models.Booking.objects.count() == 0

    def test_unknown_class_returns_404(self, api_client):
        response = api_client.post(
            f"/api/classes/{uuid.uuid4()}/book", HTTP_X_MEMBER_ID=str(uuid.uuid4())
        )

        assert response.status_code == 404
        assert response.data["code"] == "CLASS_NOT_FOUND"

    def test_invalid_class_id_returns_400(self, api_client):
        response = api_client.post(
            "/api/classes/not-a-uuid/book", HTTP_X_MEMBER_ID=str(uuid.uuid4())
        )

        assert response.status_code == 400
        assert response.data["code"] == "INVALID_ID"

    def test_cancelled_class_returns_400(self, api_client, make_class, make_member):
        member_id, _ = make_member()

        response = _book(api_client, make_class(status="cancelled"), member_id)

        assert response.status_code == 400
        assert response.data["code"] == "NOT_BOOKABLE"

    def test_missing_member_returns_401(self, api_client, make_class):
        response = api_client.post(f"/api/classes/{make_class().pk}/book")

        assert response.status_code == 401

    def test_error_body_hides_internals(self, api_client, make_class):
        response = _book(api_client, make_class(max_capacity=10), uuid.uuid4())

        assert set(response.data) == {"code", "message"}


@pytest.mark.django_db
class TestCancelBooking:
    """Tests for DELETE /api/bookings/{booking_id}"""

    def test_cancel_refunds_and_promotes(self, api_client, make_class, make_member):
        class_instance = make_class(max_capacity=1)
        member_id, pack = make_member(remaining=5)
        booking_id = _book(api_client, class_instance, member_id).data["booking_id"]
        waiting_id, waiting_pack = make_member(remaining=2)
        waiting_booking = _book(api_client, class_instance, waiting_id).data["booking_id"]

        response = api_client.delete(
            f"/api/bookings/{booking_id}", HTTP_X_MEMBER_ID=str(member_id)
        )

        assert response.status_code == 200
        assert response.data["credit_refunded"] is True
        assert response.data["promoted_booking_id"] == str(waiting_booking)
        pack.refresh_from_db()
        waiting_pack.refresh_from_db()
        assert pack.remaining_classes == 5
        assert waiting_pack.remaining_classes == 1
        assert models.Booking.objects.get(pk=waiting_booking).status == "booked"

    def test_late_cancel_keeps_credit(self, api_client, make_class, make_member):
        class_instance = make_class(starts_in=timedelta(hours=2))
        member_id, pack = make_member(remaining=5)
        booking_id = _book(api_client, class_instance, member_id).data["booking_id"]

        response = api_client.delete(
            f"/api/bookings/{booking_id}", HTTP_X_MEMBER_ID=str(member_id)
        )

        assert response.status_code == 200
        assert response.data["credit_refunded"] is False
        pack.refresh_from_db()
        assert pack.remaining_classes == 4

    def test_cancel_twice_returns_409(self, api_client, make_class, make_member):
        member_id, _ = make_member()
        booking_id = _book(api_client, make_class(), member_id).data["booking_id"]
        api_client.delete(f"/api/bookings/{booking_id}", HTTP_X_MEMBER_ID=str(member_id))

        response = api_client.delete(
            f"/api/bookings/{booking_id}", HTTP_X_MEMBER_ID=str(member_id)
        )

        assert response.status_code == 409
        assert response.data["code"] == "ALREADY_CANCELLED"

    def test_cancel_someone_elses_booking_returns_403(self, api_client, make_class, make_member):
        member_id, _ = make_member()
        booking_id = _book(api_client, make_class(), member_id).data["booking_id"]

        response = api_client.delete(
            f"/api/bookings/{booking_id}", HTTP_X_MEMBER_ID=str(uuid.uuid4())
        )

        assert response.status_code == 403

    def test_unknown_booking_returns_404(self, api_client):
        response = api_client.delete(
            f"/api/bookings/{uuid.uuid4()}", HTTP_X_MEMBER_ID=str(uuid.uuid4())
        )

        assert response.status_code == 404


@pytest.mark.django_db
class TestConfirmBooking:
    """Tests for POST /api/bookings/{booking_id}/confirm"""

    def test_confirm_own_booking(self, api_client, make_class, make_member):
        member_id, _ = make_member()
        booking_id = _book(api_client, make_class(), member_id).data["booking_id"]

        response = api_client.post(
            f"/api/bookings/{booking_id}/confirm", HTTP_X_MEMBER_ID=str(member_id)
        )

        assert response.status_code == 200
        assert response.data["status"] == "confirmed"
        assert response.data["confirmed_at"] is not None

    def test_confirm_waitlisted_booking_returns_409(self, api_client, make_class):
        member_id = uuid.uuid4()
        booking_id = _book(api_client, make_class(max_capacity=0), member_id).data["booking_id"]

        response = api_client.post(
            f"/api/bookings/{booking_id}/confirm", HTTP_X_MEMBER_ID=str(member_id)
        )

        assert response.status_code == 409
        assert response.data["code"] == "NOT_CONFIRMABLE"


@pytest.mark.django_db
class TestClassBookings:
    """Tests for the roster, staff cancellation and waitlist position endpoints."""

    def test_roster_lists_booked_and_waitlist(self, api_client, make_class, make_member):
        class_instance = make_class(max_capacity=1)
        member_id, _ = make_member()
        _book(api_client, class_instance, member_id)
        waiting_id = uuid.uuid4()
        _book(api_client, class_instance, waiting_id)

        response = api_client.get(
            f"/api/classes/{class_instance.pk}/bookings", **_staff_headers()
        )

        assert response.status_code == 200
        assert response.data["max_capacity"] == 1
        assert [b["member_id"] for b in response.data["booked"]] == [str(member_id)]
        assert [b["member_id"] for b in response.data["waitlist"]] == [str(waiting_id)]
        assert response.data["cancelled"] == []

    def test_staff_cancel_refunds_late_booking(self, api_client, make_class, make_member):
        class_instance = make_class(starts_in=timedelta(hours=1))
        member_id, pack = make_member(remaining=5)
        booking_id = _book(api_client, class_instance, member_id).data["booking_id"]

        response = api_client.delete(
            f"/api/classes/{class_instance.pk}/bookings/{booking_id}",
            **_staff_headers("teacher"),
        )

        assert response.status_code == 200
        assert response.data["credit_refunded"] is True
        pack.refresh_from_db()
        assert pack.remaining_classes == 5

    def test_waitlist_position(self, api_client, make_class):
        class_instance = make_class(max_capacity=0)
        member_id = uuid.uuid4()
        _book(api_client, class_instance, uuid.uuid4())
        _book(api_client, class_instance, member_id)

        response = api_client.get(
            f"/api/classes/{class_instance.pk}/waitlist/position",
            HTTP_X_MEMBER_ID=str(member_id),
        )

        assert response.status_code == 200
        assert response.data["waitlist_position"] == 2


@pytest.mark.django_db
class TestStaffEndpointAccess:
    """The roster and staff cancellation are closed to plain members."""

    def test_roster_without_member_returns_401(self, api_client, make_class):
        response = api_client.get(f"/api/classes/{make_class().pk}/bookings")

        assert response.status_code == 401
        assert response.data["code"] == "UNAUTHENTICATED"

    @pytest.mark.parametrize("role", [None, "member"])
    def test_roster_for_plain_member_returns_403(self, api_client, make_class, role):
        headers = {"HTTP_X_MEMBER_ID": str(uuid.uuid4())}
        if role is not None:
            headers["HTTP_X_MEMBER_ROLE"] = role

        response = api_client.get(f"/api/classes/{make_class().pk}/bookings", **headers)

        assert response.status_code == 403
        assert response.data["code"] == "FORBIDDEN"

    def test_staff_cancel_without_member_returns_401(self, api_client, make_class, make_member):
        class_instance = make_class()
        member_id, _ = make_member()
        booking_id = _book(api_client, class_instance, member_id).data["booking_id"]

        response = api_client.delete(f"/api/classes/{class_instance.pk}/bookings/{booking_id}")

        assert response.status_code == 401
        assert models.Booking.objects.get(pk=booking_id).status == "booked"

    def test_member_cannot_staff_cancel_own_late_booking(
        self, api_client, make_class, make_member
    ):
        class_instance = make_class(starts_in=timedelta(hours=1))
        member_id, pack = make_member(remaining=5)
        booking_id = _book(api_client, class_instance, member_id).data["booking_id"]

        response = api_client.delete(
            f"/api/classes/{class_instance.pk}/bookings/{booking_id}",
            HTTP_X_MEMBER_ID=str(member_id),
            HTTP_X_MEMBER_ROLE="member",
        )

        assert response.status_code == 403
        assert models.Booking.objects.get(pk=booking_id).status == "booked"
        pack.refresh_from_db()
        assert pack.remaining_classes == 4

    def test_role_header_is_case_insensitive(self, api_client, make_class):
        response = api_client.get(
            f"/api/classes/{make_class().pk}/bookings", **_staff_headers("Admin")
        )

        assert response.status_code == 200
