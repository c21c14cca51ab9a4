from datetime import datetime
from typing import Protocol
from uuid import UUID

from trellis.domain.entities import (
    Board,
    BoardList,
    Invitation,
    InvitationStatus,
    Member,
    User,
)


class UserRepoPort(Protocol):
    def get_by_email(self, email: str) -> User | None:
        ...

    def get_by_id(self, user_id: UUID) -> User | None:
        ...

    def save(self, user: User) -> None:
        ...


class BoardRepoPort(Protocol):
    def get_by_id(self, board_id: UUID) -> Board | None:
        ...

    def get_active_by_title(self, title: str) -> Board | None:
        ...

    def list_active(self) -> list[Board]:
        """Active boards, newest first."""
        ...

    def save(self, board: Board) -> Board:
        """Upsert. Raises DuplicateTitleError if an active board holds the title."""
        ...


class MemberRepoPort(Protocol):
    def get_by_board_and_user(self, board_id: UUID, user_id: UUID) -> Member | None:
        ...

    def list_by_board(self, board_id: UUID) -> list[Member]:
        ...

    def add(self, member: Member) -> Member:
        """Insert. Raises DuplicateMemberError on an existing (board, user) pair."""
        ...


class InvitationRepoPort(Protocol):
    def get_by_token(self, token: str) -> Invitation | None:
        ...

    def list_by_board_and_email(self, board_id: UUID, email: str) -> list[Invitation]:
        ...

    def add(self, invitation: Invitation) -> Invitation:
        """
        Insert a new invitation.

        Raises DuplicateTokenError or DuplicatePendingInvitationError when a
        storage uniqueness constraint rejects the row.
        """
        ...

    def save_status(
        self,
        invitation_id: UUID,
        expected: InvitationStatus,
        new: InvitationStatus,
        now: datetime,
    ) -> bool:
        """Compare-and-set the status. Returns False if the row was not in `expected`."""
        ...

    def accept(self, invitation_id: UUID, member: Member, now: datetime) -> bool:
        """
        Atomically move a pending invitation to accepted and insert the member.

        Returns False (and inserts nothing) if the invitation is no longer
        pending. Raises DuplicateMemberError if the member already exists.
        """
        ...


class ListRepoPort(Protocol):
    def get_by_id(self, list_id: UUID) -> BoardList | None:
        ...

    def list_active_by_board(self, board_id: UUID) -> list[BoardList]:
        ...

    def next_position(self, board_id: UUID) -> int:
        ...

    def save(self, board_list: BoardList) -> BoardList:
        ...
