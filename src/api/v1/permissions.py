"""Custom DRF permissions for the offer funnel API."""
from rest_framework.permissions import SAFE_METHODS, BasePermission


def is_admin(user) -> bool:
    return bool(
        user
        and user.is_authenticated
        and (user.is_superuser or getattr(user, "role", None) == "ADMIN")
    )


def user_zone_ids(user) -> list[int]:
    """Active zones a user works in; empty for anonymous users."""
    if not user or not user.is_authenticated:
        return []
    return user.zone_ids()


class IsAdminRole(BasePermission):
    """Allow access only to users with the ADMIN role (or superusers)."""

    def has_permission(self, request, view):
        return is_admin(request.user)


class IsAdminOrReadOnly(BasePermission):
    """Any authenticated user may read; only admins may write."""

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in SAFE_METHODS:
            return True
        return is_admin(request.user)


class IsZoneMember(BasePermission):
    """
    Object-level check for zone-scoped records.

    The view must expose ``get_object_zone_id(obj)``.
    """

    def has_object_permission(self, request, view, obj):
        if is_admin(request.user):
            return True
        zone_id = view.get_object_zone_id(obj)
        return zone_id is not None and zone_id in user_zone_ids(request.user)
