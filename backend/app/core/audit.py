"""
Audit logging for admin operations.

Every settings change, spreadsheet upload, and inventory deletion issued
through the bot is written as one JSON line on the "audit" logger, together
with denied attempts by non-admins.
"""
import logging
import json
from datetime import datetime, timezone
from typing import Any, Optional, Dict

# Separate logger for audit events (can be shipped to centralized logging)
audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for admin actions."""

    @staticmethod
    def log_action(
        action: str,  # "update", "upload", "delete"
        resource_type: str,  # "setting", "medicines"
        pharmacy_id: Optional[int],
        user_id: int,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log an admin action.

        `pharmacy_id` is None for actions spanning every branch.

        Usage:
            AuditLog.log_action("update", "setting", 2, user_id, changes={"phone": "+998..."})
            AuditLog.log_action("delete", "medicines", None, user_id, changes={"deleted": 812})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "user_id": user_id,
            "pharmacy_id": pharmacy_id,
        }

        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, ensure_ascii=False))

    @staticmethod
    def log_access_denied(
        command: str,
        user_id: int,
        reason: str,
    ):
        """
        Log a command refused for lack of the admin role.

        Usage:
            AuditLog.log_access_denied("upload", 42, "Not super admin")
        """
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "access_denied",
            "command": command,
            "user_id": user_id,
            "reason": reason,
        }

        audit_logger.warning(json.dumps(log_entry, ensure_ascii=False))
