"""
Notification dispatcher tests.
"""

import logging
import threading

import pytest

from trellis.adapters.dev_email import DevEmailAdapter
from trellis.adapters.dispatch import BackgroundNotificationDispatcher, SyncNotificationDispatcher
from trellis.core.ports.email import EmailError, EmailResult, EmailStatus
from trellis.domain.errors import DeliveryError


class RaisingEmail:
    def send_email(self, recipient, subject, body_html, body_text=None) -> EmailResult:
        raise EmailError(f"Failed to send email to {recipient}: connection refused")


class BlockingEmail:
    """Holds every send until released."""

    def __init__(self) -> None:
        self.release = threading.Event()
        self.done = threading.Event()

    def send_email(self, recipient, subject, body_html, body_text=None) -> EmailResult:
        self.release.wait(timeout=5)
        self.done.set()
        return EmailResult.success(recipient)


class TestSyncDispatcher:
    def test_passes_result_through(self) -> None:
        email = DevEmailAdapter()
        result = SyncNotificationDispatcher(email).dispatch("b@x.com", "S", "<p>h</p>", "t")

        assert result.status == EmailStatus.SKIPPED
        assert email.get_last_email().subject == "S"

    def test_failed_result_raises_delivery_error(self) -> None:
        email = DevEmailAdapter(fail_recipients={"b@x.com"})
        with pytest.raises(DeliveryError) as exc_info:
            SyncNotificationDispatcher(email).dispatch("b@x.com", "S", "<p>h</p>", "t")
        assert exc_info.value.recipient == "b@x.com"

    def test_email_exception_becomes_delivery_error(self) -> None:
        with pytest.raises(DeliveryError, match="connection refused"):
            SyncNotificationDispatcher(RaisingEmail()).dispatch("b@x.com", "S", "h", "t")


class TestBackgroundDispatcher:
    def test_returns_queued_without_waiting(self) -> None:
        email = BlockingEmail()
        dispatcher = BackgroundNotificationDispatcher(email, max_workers=1)
        try:
            result = dispatcher.dispatch("b@x.com", "S", "h", "t")

            assert result.status == EmailStatus.QUEUED
            assert not email.done.is_set()
        finally:
            email.release.set()
            dispatcher.shutdown()
        assert email.done.is_set()

    def test_failures_are_logged_not_raised(self, caplog) -> None:
        dispatcher = BackgroundNotificationDispatcher(DevEmailAdapter(fail_recipients={"b@x.com"}))
        with caplog.at_level(logging.WARNING, logger="trellis.adapters.dispatch"):
            result = dispatcher.dispatch("b@x.com", "S", "h", "t")
            dispatcher.shutdown(wait=True)

        assert result.status == EmailStatus.QUEUED
        assert "Notification pending" in caplog.text
