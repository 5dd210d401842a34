"""Request permissions built on the identity headers set by the auth gateway.

Failures raise domain errors so MemberAPIView renders them with the same
``{"code", "message"}`` body as every other error.
"""

from rest_framework.permissions import BasePermission
from rest_framework.request import Request

from bookings.domain.errors import StaffOnlyError, UnauthenticatedError
from bookings.services.factory import booking_setting


def request_member_id(request: Request) -> str | None:
    return request.META.get(booking_setting("MEMBER_HEADER")) or None


def request_role(request: Request) -> str | None:
    role = request.META.get(booking_setting("ROLE_HEADER"))
    return role.strip().lower() if role else None


class HasMember(BasePermission):
    """Requires the member id header."""

    def has_permission(self, request: Request, view) -> bool:
        if request_member_id(request) is None:
            raise UnauthenticatedError()
        return True


class IsStudioStaff(HasMember):
    """Requires a member whose role is one of ``STAFF_ROLES``."""

    def has_permission(self, request: Request, view) -> bool:
        super().has_permission(request, view)
        role = request_role(request)
        if role not in booking_setting("STAFF_ROLES"):
            raise StaffOnlyError(role)
        return True
