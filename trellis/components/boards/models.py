"""
Boards component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from uuid import UUID

from trellis.domain.entities import Board, BoardSummary, Member, User

# --- Validation Error ---


@dataclass(frozen=True)
class BoardValidationError:
    code: str
    message: str
    field_name: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class CreateBoardInput:
    title: str
    actor: User
    description: str = ""
    background_color: str | None = None


@dataclass(frozen=True)
class UpdateBoardInput:
    """Partial update; None leaves the field unchanged."""

    board_id: UUID
    actor: User
    title: str | None = None
    description: str | None = None
    background_color: str | None = None


@dataclass(frozen=True)
class DeleteBoardInput:
    board_id: UUID
    actor: User


@dataclass(frozen=True)
class GetBoardInput:
    board_id: UUID


@dataclass(frozen=True)
class ListBoardsInput:
    pass


@dataclass(frozen=True)
class ListMembersInput:
    board_id: UUID


# --- Output Models ---


@dataclass
class BoardOutput:
    success: bool = False
    status_code: int = HTTPStatus.OK
    message: str = ""
    error: str | None = None
    board: Board | None = None
    errors: list[BoardValidationError] = field(default_factory=list)


@dataclass
class BoardListOutput:
    success: bool = True
    status_code: int = HTTPStatus.OK
    boards: list[BoardSummary] = field(default_factory=list)


@dataclass
class MemberListOutput:
    success: bool = False
    status_code: int = HTTPStatus.OK
    error: str | None = None
    members: list[Member] = field(default_factory=list)
