"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details

The authenticated member and their studio role arrive in request headers
set by the upstream authentication gateway.
"""

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from bookings.domain import BookingStatus
from bookings.domain.errors import DomainError, ErrorCode
from bookings.handlers.permissions import HasMember, IsStudioStaff, request_member_id
from bookings.handlers.serializers import (
    BookingResultSerializer,
    BookingSerializer,
    CancellationResultSerializer,
    RosterSerializer,
)
from bookings.services.factory import build_booking_service

ERROR_STATUS = {
    ErrorCode.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CLASS_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.BOOKING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.NOT_BOOKABLE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.ALREADY_BOOKED: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_CANCELLED: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_CONFIRMABLE: status.HTTP_409_CONFLICT,
    ErrorCode.CREDIT_CONTENTION: status.HTTP_409_CONFLICT,
    ErrorCode.NO_CREDITS: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.CREDIT_INTEGRITY: status.HTTP_409_CONFLICT,
}


def error_response(error: DomainError) -> Response:
    return Response(
        {"code": error.code.value, "message": error.message},
        status=ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST),
    )


class MemberAPIView(APIView):
    """Base view that resolves the calling member and maps domain errors."""

    permission_classes = [HasMember]

    def initial(self, request: Request, *args, **kwargs) -> None:
        super().initial(request, *args, **kwargs)
        self.service = build_booking_service()

    def member_id(self, request: Request) -> str:
        return request_member_id(request) or ""

    def handle_exception(self, exc: Exception) -> Response:
        if isinstance(exc, DomainError):
            return error_response(exc)
        return super().handle_exception(exc)


class BookClassView(MemberAPIView):
    """Handler for POST /api/classes/{class_id}/book"""

    def post(self, request: Request, class_id: str) -> Response:
        result = self.service.book(class_id, self.member_id(request))
        code = (
            status.HTTP_202_ACCEPTED
            if result.status is BookingStatus.WAITLISTED
            else status.HTTP_201_CREATED
        )
        return Response(BookingResultSerializer(result).data, status=code)


class WaitlistPositionView(MemberAPIView):
    """Handler for GET /api/classes/{class_id}/waitlist/position"""

    def get(self, request: Request, class_id: str) -> Response:
        position = self.service.waitlist_position(class_id, self.member_id(request))
        return Response({"class_instance_id": class_id, "waitlist_position": position})


class ClassRosterView(MemberAPIView):
    """Handler for GET /api/classes/{class_id}/bookings (staff only)"""

    permission_classes = [IsStudioStaff]

    def get(self, request: Request, class_id: str) -> Response:
        return Response(RosterSerializer(self.service.roster(class_id)).data)


class StaffCancelBookingView(MemberAPIView):
    """Handler for DELETE /api/classes/{class_id}/bookings/{booking_id} (staff only)"""

    permission_classes = [IsStudioStaff]

    def delete(self, request: Request, class_id: str, booking_id: str) -> Response:
        result = self.service.cancel_as_staff(class_id, booking_id)
        return Response(CancellationResultSerializer(result).data)


class CancelBookingView(MemberAPIView):
    """Handler for DELETE /api/bookings/{booking_id}"""

    def delete(self, request: Request, booking_id: str) -> Response:
        result = self.service.cancel(booking_id, self.member_id(request))
        return Response(CancellationResultSerializer(result).data)


class ConfirmBookingView(MemberAPIView):
    """Handler for POST /api/bookings/{booking_id}/confirm"""

    def post(self, request: Request, booking_id: str) -> Response:
        booking = self.service.confirm(booking_id, self.member_id(request))
        return Response(BookingSerializer(booking).data)
