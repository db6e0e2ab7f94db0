"""Authentication module for Grade Notifier."""

from grade_notifier.auth.portal_session import (
    AuthenticationFailed,
    PortalSession,
    PortalSessionError,
    is_login_rejected,
)

__all__ = [
    "AuthenticationFailed",
    "PortalSession",
    "PortalSessionError",
    "is_login_rejected",
]
