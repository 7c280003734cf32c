# core/permissions.py
from rest_framework.permissions import BasePermission, SAFE_METHODS


# ---- Helper functions -------------------------------------------------


def is_platform_admin(user) -> bool:
    """
    Global admin flag based on user.role (superusers always qualify).
    """
    if not user or not getattr(user, "is_authenticated", False):
        return False

    if getattr(user, "is_superuser", False):
        return True

    return getattr(user, "role", None) == "admin"


def can_view_registration(user, registration) -> bool:
    """
    Owners see their own registration; admins see everything.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return False
    return registration.user_id == user.id or is_platform_admin(user)


# ---- Permission classes -----------------------------------------------


class IsPlatformAdmin(BasePermission):
    """
    Admin-only endpoints (credential sends, manual transitions, reaper).
    """
    message = "Admin access required."

    def has_permission(self, request, view):
        return is_platform_admin(request.user)


class IsAdminOrReadOnly(BasePermission):
    """
    - SAFE methods: allowed for everyone.
    - Writes: admins only.
    """

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return is_platform_admin(request.user)
