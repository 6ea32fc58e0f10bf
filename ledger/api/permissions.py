"""
Permission classes for API access control.

Every ledger endpoint runs with a company context resolved from the caller's
membership; role checks use the permission matrix in ``ledger.roles``.
"""
from rest_framework import permissions

from ledger.roles import get_active_membership, has_any_permission
from ledger.validation import AuthenticationError, ErrorCode, PermissionError


class HasCompanyContext(permissions.BasePermission):
    """Permission: caller is signed in and belongs to a live company."""

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            raise AuthenticationError()

        membership = get_active_membership(request.user)
        if membership is None:
            raise PermissionError(
                "No company is associated with this account.",
                code=ErrorCode.COMPANY_REQUIRED,
            )

        request.membership = membership
        request.company = membership.company
        return True


class HasLedgerPermission(permissions.BasePermission):
    """
    Permission: the member's role grants what the current action needs.

    Views declare ``required_permissions`` as ``{action: permission}`` or
    ``{action: (permission, ...)}``; any listed permission is enough.
    Actions missing from the mapping are allowed.
    """

    message = "Your role does not allow this action."

    def has_permission(self, request, view):
        required = getattr(view, "required_permissions", {}).get(getattr(view, "action", None))
        if not required:
            return True
        if isinstance(required, str):
            required = (required,)
        membership = getattr(request, "membership", None)
        return has_any_permission(membership.role if membership else None, required)


def require_role_permission(request, *permissions_needed: str) -> None:
    """Inline check for rules that depend on the request body."""
    membership = getattr(request, "membership", None)
    if not has_any_permission(membership.role if membership else None, permissions_needed):
        raise PermissionError(f"Your role does not allow this action ({', '.join(permissions_needed)}).")
