"""
Notification dispatchers.

The invitation workflow hands a rendered notification to a dispatcher and
never lets its outcome undo the persisted invitation.

- SyncNotificationDispatcher sends before the caller is answered and reports
  failures as DeliveryError so the caller can surface a warning.
- BackgroundNotificationDispatcher is fire-and-forget: sends run on a thread
  pool, and failures are logged, never surfaced.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor

from trellis.core.ports.email import EmailError, EmailPort, EmailResult
from trellis.domain.errors import DeliveryError

logger = logging.getLogger(__name__)


def _send(email: EmailPort, recipient: str, subject: str, body_html: str, body_text: str) -> EmailResult:
    try:
        result = email.send_email(recipient, subject, body_html, body_text)
    except EmailError as e:
        raise DeliveryError(recipient, str(e)) from e

    if not result.ok:
        raise DeliveryError(recipient, result.error or "unknown error")
    return result


class SyncNotificationDispatcher:
    def __init__(self, email: EmailPort) -> None:
        self._email = email

    def dispatch(self, recipient: str, subject: str, body_html: str, body_text: str) -> EmailResult:
        """Send now. Raises DeliveryError on failure."""
        return _send(self._email, recipient, subject, body_html, body_text)


class BackgroundNotificationDispatcher:
    def __init__(self, email: EmailPort, max_workers: int = 2) -> None:
        self._email = email
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="notify"
        )

    def dispatch(self, recipient: str, subject: str, body_html: str, body_text: str) -> EmailResult:
        """Queue the send and return immediately."""
        future = self._executor.submit(
            _send, self._email, recipient, subject, body_html, body_text
        )
        future.add_done_callback(self._log_outcome)
        return EmailResult.queued(recipient)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    @staticmethod
    def _log_outcome(future: Future[EmailResult]) -> None:
        exc = future.exception()
        if exc is None:
            logger.debug("Notification delivered to %s", future.result().recipient)
        elif isinstance(exc, DeliveryError):
            logger.warning("Notification pending: %s", exc)
        else:
            logger.error("Notification dispatch crashed", exc_info=exc)
