"""
Domain error taxonomy.

NotFound and Conflict are user-facing and never retried: a logical conflict
cannot succeed on retry. Storage adapters translate uniqueness violations into
the Conflict subclasses below so raw driver errors never reach callers.
"""

from __future__ import annotations

from http import HTTPStatus


class DomainError(Exception):
    """Base exception for board/invitation errors."""

    status_code: int = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    """Board, user, invitation or token does not resolve."""

    status_code = HTTPStatus.NOT_FOUND


class ConflictError(DomainError):
    """Operation would violate a uniqueness or lifecycle invariant."""

    status_code = HTTPStatus.CONFLICT


class DuplicateTokenError(ConflictError):
    """Another invitation already holds this token."""

    def __init__(self, message: str = "invitation token already in use") -> None:
        super().__init__(message)


class DuplicatePendingInvitationError(ConflictError):
    """A pending invitation for this (board, email) already exists."""

    def __init__(self, message: str = "a pending invitation already exists") -> None:
        super().__init__(message)


class DuplicateMemberError(ConflictError):
    def __init__(self, message: str = "already a member") -> None:
        super().__init__(message)


class DuplicateTitleError(ConflictError):
    def __init__(self, message: str = "a board with this title already exists") -> None:
        super().__init__(message)


class ForbiddenError(DomainError):
    """Acting user is not a member of the board."""

    status_code = HTTPStatus.FORBIDDEN


class DeliveryError(DomainError):
    """Notification could not be delivered."""

    status_code = HTTPStatus.BAD_GATEWAY

    def __init__(self, recipient: str, error: str) -> None:
        self.recipient = recipient
        self.error = error
        super().__init__(f"Failed to deliver notification to {recipient}: {error}")
