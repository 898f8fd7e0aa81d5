"""Audit logging for password-gate and administrator operations."""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from fastapi import Request


logger = logging.getLogger("registry.audit")

_REDACTED_KEYS = {"password", "guest_password", "admin_password", "token", "secret"}


class AuditAction(str, Enum):
    GUEST_LOGIN = "guest_login"
    ADMIN_LOGIN = "admin_login"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"

    GIFT_CREATE = "gift_create"
    GIFT_UPDATE = "gift_update"
    GIFT_DELETE = "gift_delete"

    CATEGORY_CREATE = "category_create"
    CATEGORY_UPDATE = "category_update"
    CATEGORY_DELETE = "category_delete"

    CONTRIBUTION_CREATE = "contribution_create"
    CONTRIBUTION_STATUS_CHANGE = "contribution_status_change"

    PAYMENT_METHODS_UPDATE = "payment_methods_update"
    SETTINGS_UPDATE = "settings_update"


def audit_log(
    action: AuditAction,
    request: Request | None = None,
    role: str | None = None,
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """
    Log an audit event.

    Args:
        action: The action being performed
        request: FastAPI request object (for IP, user agent, request id)
        role: Session role of the caller, if any
        details: Additional details; password/token values are redacted
        success: Whether the action was successful
    """
    event: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": action.value,
        "success": success,
    }
    if role is not None:
        event["role"] = role

    if request is not None:
        client_host = request.client.host if request.client else None
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            client_host = forwarded.split(",")[0].strip()
        event["ip"] = client_host
        event["user_agent"] = request.headers.get("User-Agent", "")[:200]
        event["request_id"] = request.headers.get("X-Request-Id", "")

    if details:
        event["details"] = {
            key: "***REDACTED***" if key in _REDACTED_KEYS else value
            for key, value in details.items()
        }

    if success:
        logger.info("AUDIT: %s", event)
    else:
        logger.warning("AUDIT: %s", event)


def audit_login(request: Request, role: str, success: bool) -> None:
    action = AuditAction.ADMIN_LOGIN if role == "admin" else AuditAction.GUEST_LOGIN
    if not success:
        action = AuditAction.LOGIN_FAILED
    audit_log(action, request=request, role=role, success=success)


def audit_admin_action(
    action: AuditAction,
    request: Request,
    details: dict[str, Any] | None = None,
) -> None:
    audit_log(action, request=request, role="admin", details=details)
