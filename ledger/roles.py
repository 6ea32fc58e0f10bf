"""
Role-based permissions for company members.

Every member holds exactly one role inside a company. Permissions are plain
strings grouped by area (``invoices.*``, ``quotes.*``, ``finance.*``...).
"""
from typing import Dict, FrozenSet, Iterable, Optional

from .models import CompanyMember

Role = CompanyMember.Role

_VIEW_PERMISSIONS = frozenset({
    "company.view",
    "clients.view",
    "invoices.view",
    "quotes.view",
})

PERMISSION_MATRIX: Dict[str, FrozenSet[str]] = {
    Role.ADMIN: _VIEW_PERMISSIONS | {
        "company.manage",
        "users.view", "users.invite", "users.edit", "users.delete",
        "clients.create", "clients.edit", "clients.delete",
        "invoices.create", "invoices.edit", "invoices.delete", "invoices.markAsPaid", "invoices.void",
        "quotes.create", "quotes.edit", "quotes.delete", "quotes.accept",
        "finance.manageAccounts", "finance.recordPayments", "finance.viewReports", "finance.manageExpenses",
    },
    Role.ACCOUNTANT: _VIEW_PERMISSIONS | {
        "invoices.markAsPaid", "invoices.void",
        "quotes.accept",
        "finance.manageAccounts", "finance.recordPayments", "finance.viewReports", "finance.manageExpenses",
    },
    Role.STAFF: _VIEW_PERMISSIONS | {
        "clients.create", "clients.edit",
        "invoices.create", "invoices.edit",
        "quotes.create", "quotes.edit",
    },
}


def get_role_permissions(role: str) -> FrozenSet[str]:
    return PERMISSION_MATRIX.get(role, frozenset())


def has_permission(role: Optional[str], permission: str) -> bool:
    if not role:
        return False
    return permission in get_role_permissions(role)


def has_any_permission(role: Optional[str], permissions: Iterable[str]) -> bool:
    return any(has_permission(role, permission) for permission in permissions)


def get_active_membership(user) -> Optional[CompanyMember]:
    """Membership that scopes the user's requests: the default one, else the oldest."""
    if not user or not user.is_authenticated:
        return None
    return (
        CompanyMember.objects
        .filter(user=user, company__soft_delete=False)
        .select_related("company")
        .order_by("-is_default", "created_at", "id")
        .first()
    )


def get_current_company(user):
    membership = get_active_membership(user)
    return membership.company if membership else None
