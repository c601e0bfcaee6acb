"""
Audit trail for the back office.

Every event is one JSON line on the "audit" logger: logins, record
changes (customers, stock, invoices, payments, employees), role changes
and refused permissions. Passwords and tokens never reach these records.
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from arbati.models.user import User

audit_logger = logging.getLogger("audit")


def _emit(event_type: str, level: int = logging.INFO, **fields: Any) -> None:
    record = {"timestamp": datetime.utcnow().isoformat(), "event_type": event_type}
    record.update(fields)
    # Decimal totals and enums go through str()
    audit_logger.log(level, json.dumps(record, default=str, ensure_ascii=False))


class AuditLog:
    """Audit events raised by the routes."""

    @staticmethod
    def log_authentication(action: str, email: str, ip_address: str, success: bool, reason: str = ""):
        """
        action is "login", "logout" or "failed_login".

        Usage:
            AuditLog.log_authentication("failed_login", data.email, ip, False, "bad credentials")
        """
        fields = {"email": email, "ip_address": ip_address, "success": success}
        if reason and not success:
            fields["reason"] = reason
        _emit(f"auth.{action}", logging.INFO if success else logging.WARNING, **fields)

    @staticmethod
    def log_action(
        action: str,
        resource_type: str,
        resource_id: Optional[int],
        user: User,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        A change to a business record, e.g. ("cancel", "invoice", 12) or
        ("payment", "customer", 3). resource_id is None for bulk actions
        such as exports.
        """
        fields = {"user_id": user.id, "user_email": user.email, "resource_id": resource_id}
        if changes:
            fields["changes"] = changes
        _emit(f"{resource_type}.{action}", **fields)

    @staticmethod
    def log_role_change(employee_id: int, changed_by: User, old_role: str, new_role: str):
        _emit(
            "employee.role_changed",
            employee_id=employee_id,
            changed_by=changed_by.id,
            old_role=old_role,
            new_role=new_role,
        )

    @staticmethod
    def log_access_denied(permission: str, user_id: int, role: str, path: str):
        """A request refused for a missing permission."""
        _emit("access_denied", logging.WARNING, permission=permission, user_id=user_id, role=role, path=path)
