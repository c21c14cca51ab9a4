"""
MembershipGuard - board membership checks.

Answers "is user X a member of board B?" and keeps membership unique per
(board, user). The lookup here is the fast-path rejection; the storage unique
constraint on (board_id, user_id) is what actually holds under concurrency,
and its violation surfaces as the same DuplicateMemberError.
"""

from __future__ import annotations

import logging
from uuid import UUID

from trellis.domain.entities import Member, MemberRole
from trellis.domain.errors import DuplicateMemberError, ForbiddenError

from .ports import ClockPort, MemberRepoPort

logger = logging.getLogger(__name__)

NOT_A_MEMBER_MESSAGE = "not a member of this board"


class MembershipGuard:
    def __init__(self, member_repo: MemberRepoPort, clock: ClockPort) -> None:
        self._repo = member_repo
        self._clock = clock

    def is_member(self, board_id: UUID, user_id: UUID) -> bool:
        return self._repo.get_by_board_and_user(board_id, user_id) is not None

    def ensure_not_member(self, board_id: UUID, user_id: UUID) -> None:
        """Raise DuplicateMemberError ("already a member") if the user already belongs."""
        if self.is_member(board_id, user_id):
            raise DuplicateMemberError()

    def ensure_member(self, board_id: UUID, user_id: UUID) -> Member:
        """Return the membership row, or raise ForbiddenError for non-members."""
        member = self._repo.get_by_board_and_user(board_id, user_id)
        if member is None:
            raise ForbiddenError(NOT_A_MEMBER_MESSAGE)
        return member

    def admit(
        self,
        board_id: UUID,
        user_id: UUID,
        role: MemberRole = "member",
        invitation_id: UUID | None = None,
    ) -> Member:
        """Check, then insert a membership row. Raises DuplicateMemberError."""
        self.ensure_not_member(board_id, user_id)
        now = self._clock.now_utc()
        member = Member(
            board_id=board_id,
            user_id=user_id,
            role=role,
            invitation_id=invitation_id,
            created_at=now,
            updated_at=now,
        )
        self._repo.add(member)
        logger.info("User %s joined board %s as %s", user_id, board_id, role)
        return member

    def list_members(self, board_id: UUID) -> list[Member]:
        return self._repo.list_by_board(board_id)
