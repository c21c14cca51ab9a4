"""
Email Adapter Interface.

Protocol-based interface for sending the invitation notification email.

Key requirements:
- Send transactional emails with an HTML body and optional plain text body
- Stateless send operation
- Delivery problems are reported through EmailResult, not exceptions

Implementation strategies:
1. DevEmailAdapter: Logs emails to console (dev/test)
2. SMTP / provider adapters: plug in behind the same EmailPort

Callers turn a failed result into a DeliveryError.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol


class EmailStatus(Enum):
    """Email send result status."""

    SENT = "sent"
    QUEUED = "queued"  # Handed to a background dispatcher
    FAILED = "failed"
    SKIPPED = "skipped"  # Dev adapter or dry-run


@dataclass
class EmailResult:
    """Result of an email send attempt."""

    status: EmailStatus
    message_id: str | None = None  # Provider's message ID
    error: str | None = None
    sent_at: datetime | None = None
    recipient: str = ""

    @property
    def ok(self) -> bool:
        return self.status is not EmailStatus.FAILED

    @classmethod
    def success(cls, recipient: str, message_id: str | None = None) -> EmailResult:
        """Create a successful send result."""
        return cls(
            status=EmailStatus.SENT,
            message_id=message_id,
            recipient=recipient,
            sent_at=datetime.now(UTC),
        )

    @classmethod
    def queued(cls, recipient: str) -> EmailResult:
        """Create a result for a send handed off to the background."""
        return cls(status=EmailStatus.QUEUED, recipient=recipient)

    @classmethod
    def skipped(cls, recipient: str, reason: str = "Dev mode") -> EmailResult:
        """Create a skipped result (dev adapter)."""
        return cls(
            status=EmailStatus.SKIPPED,
            recipient=recipient,
            error=reason,
        )

    @classmethod
    def failed(cls, recipient: str, error: str) -> EmailResult:
        """Create a failed result."""
        return cls(
            status=EmailStatus.FAILED,
            recipient=recipient,
            error=error,
        )


class EmailPort(Protocol):
    """
    Email sending interface.

    Implementations:
    - DevEmailAdapter: Logs to console (dev/test)
    """

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> EmailResult:
        """
        Send a transactional email.

        Args:
            recipient: Email address of recipient
            subject: Email subject line
            body_html: HTML body content
            body_text: Plain text body (optional, fallback)

        Returns:
            EmailResult with send outcome

        Notes:
            - Must not raise exceptions; return failed status instead
        """
        ...


# --- Error Types ---


class EmailError(Exception):
    """Base exception for email-related errors."""

    pass
