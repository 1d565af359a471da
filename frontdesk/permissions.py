"""
Role based permission classes for hospital staff.
"""
from rest_framework.permissions import BasePermission

from .models import User

STAFF_ROLES = {
    User.ROLE_SUPER_ADMIN,
    User.ROLE_HOSPITAL_ADMIN,
    User.ROLE_DOCTOR,
    User.ROLE_RECEPTIONIST,
}
FRONT_DESK_ROLES = {User.ROLE_SUPER_ADMIN, User.ROLE_HOSPITAL_ADMIN, User.ROLE_RECEPTIONIST}


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "role", None)


class IsHospitalStaff(BasePermission):
    """Any authenticated staff role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in STAFF_ROLES


class IsFrontDesk(BasePermission):
    """Roles allowed to register patients and book appointments."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in FRONT_DESK_ROLES


class IsHospitalAdmin(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == User.ROLE_HOSPITAL_ADMIN


class IsSameHospital(BasePermission):
    """User must belong to the object's hospital (expects `obj.hospital_id`)."""
    def has_object_permission(self, request, view, obj) -> bool:
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        if getattr(user, "role", None) == User.ROLE_SUPER_ADMIN:
            return True
        return bool(getattr(user, "hospital_id", None)) and getattr(obj, "hospital_id", None) == user.hospital_id
