"""
Role-based permission classes for back-office endpoints.
"""
from rest_framework import permissions


class IsSuperAdmin(permissions.BasePermission):
    """Only the chain owner account."""
    message = 'Access denied'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.role == 'superadmin')


class IsAdminRole(permissions.BasePermission):
    """Admins and super admins."""
    message = 'Access denied'

    def has_permission(self, request, view):
        return bool(
            request.user and request.user.is_authenticated
            and request.user.role in ('superadmin', 'admin')
        )


def HasRole(*roles):
    """Build a permission class that admits the given roles."""

    class _HasRole(permissions.BasePermission):
        message = 'Access denied'

        def has_permission(self, request, view):
            return bool(
                request.user and request.user.is_authenticated
                and request.user.role in roles
            )

    _HasRole.__name__ = f"HasRole_{'_'.join(roles)}"
    return _HasRole


def is_admin_user(user):
    return getattr(user, 'role', None) in ('superadmin', 'admin')


def user_branch_scope(user):
    """Branch accounts only ever see their own outlet; others see everything."""
    if getattr(user, 'role', None) == 'branch':
        return user.branch_id
    return None
