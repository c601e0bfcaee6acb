"""
Role-based permissions for the back-office APIs.

Each role maps to a fixed permission set. DEVELOPER holds the wildcard.
"""
from typing import Dict, FrozenSet, Iterable

from arbati.models.user import UserRole

WILDCARD = "*"

USERS_VIEW = "users:view"
USERS_EDIT = "users:edit"
USERS_DELETE = "users:delete"
PRODUCTS_VIEW = "products:view"
PRODUCTS_CREATE = "products:create"
PRODUCTS_EDIT = "products:edit"
PRODUCTS_DELETE = "products:delete"
PRICES_EDIT = "prices:edit"
STOCK_VIEW = "stock:view"
STOCK_ADJUST = "stock:adjust"
SALES_VIEW = "sales:view"
SALES_CREATE = "sales:create"
INVOICES_VIEW = "invoices:view"
INVOICES_CREATE = "invoices:create"
INVOICES_CANCEL = "invoices:cancel"
CUSTOMERS_VIEW = "customers:view"
CUSTOMERS_CREATE = "customers:create"
CUSTOMERS_EDIT = "customers:edit"
CUSTOMERS_DELETE = "customers:delete"
EMPLOYEES_VIEW = "employees:view"
EMPLOYEES_MANAGE = "employees:manage"
REPORTS_VIEW = "reports:view"
REPORTS_EXPORT = "reports:export"


ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[str]] = {
    UserRole.DEVELOPER: frozenset({WILDCARD}),
    UserRole.ADMIN: frozenset({
        USERS_VIEW, USERS_EDIT, USERS_DELETE,
        PRODUCTS_VIEW, PRODUCTS_CREATE, PRODUCTS_EDIT, PRODUCTS_DELETE, PRICES_EDIT,
        STOCK_VIEW, STOCK_ADJUST,
        SALES_VIEW, SALES_CREATE,
        INVOICES_VIEW, INVOICES_CREATE, INVOICES_CANCEL,
        CUSTOMERS_VIEW, CUSTOMERS_CREATE, CUSTOMERS_EDIT, CUSTOMERS_DELETE,
        EMPLOYEES_VIEW, EMPLOYEES_MANAGE,
        REPORTS_VIEW, REPORTS_EXPORT,
    }),
    UserRole.EMPLOYEE: frozenset({
        PRODUCTS_VIEW, STOCK_VIEW,
        SALES_VIEW, SALES_CREATE,
        INVOICES_VIEW, INVOICES_CREATE,
        CUSTOMERS_VIEW, CUSTOMERS_CREATE, CUSTOMERS_EDIT,
    }),
    UserRole.CASHIER: frozenset({
        PRODUCTS_VIEW, STOCK_VIEW,
        SALES_VIEW, SALES_CREATE,
        INVOICES_VIEW, INVOICES_CREATE,
        CUSTOMERS_VIEW, CUSTOMERS_CREATE,
    }),
    UserRole.VIEWER: frozenset({
        PRODUCTS_VIEW, STOCK_VIEW, SALES_VIEW, INVOICES_VIEW, CUSTOMERS_VIEW, REPORTS_VIEW,
    }),
}


def permissions_for_role(role: UserRole) -> FrozenSet[str]:
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(granted: Iterable[str], required: str) -> bool:
    """Check a permission against a granted set. The wildcard grants everything."""
    granted = set(granted)
    return WILDCARD in granted or required in granted
