"""
Invitations component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from trellis.core.ports.email import EmailResult
from trellis.ports.clock import ClockPort
from trellis.ports.repo import (
    BoardRepoPort,
    InvitationRepoPort,
    MemberRepoPort,
    UserRepoPort,
)


class NotificationDispatcherPort(Protocol):
    """Hands a rendered notification to the outbound channel."""

    def dispatch(
        self, recipient: str, subject: str, body_html: str, body_text: str
    ) -> EmailResult:
        """
        Send or queue a notification.

        Raises DeliveryError when a synchronous send fails. Background
        dispatchers return a QUEUED result and log failures themselves.
        """
        ...


__all__ = [
    "BoardRepoPort",
    "ClockPort",
    "InvitationRepoPort",
    "MemberRepoPort",
    "NotificationDispatcherPort",
    "UserRepoPort",
]
