"""Notification utilities - email.

Re-exports all notification-related functions for convenience.
"""

from src.escrow.core.notifications.email import (
    send_email,
    send_verification_code_email,
)

__all__ = [
    "send_email",
    "send_verification_code_email",
]
