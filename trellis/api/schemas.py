from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from trellis.domain.entities import Board, BoardList, Member, User


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase, serializes camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Envelope ---
class ApiResponse(CamelModel):
    status: int
    message: str = ""
    warning: str | None = None
    data: Any = None


# --- Users ---
class UserCreateRequest(CamelModel):
    email: str = Field(min_length=3, max_length=254)
    password: str = Field(min_length=8)
    display_name: str = Field(min_length=1, max_length=100)


class UserResponse(CamelModel):
    id: UUID
    email: str
    display_name: str
    status: Literal["active", "disabled"]
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            status=user.status,
            created_at=user.created_at,
        )


# --- Boards ---
class BoardCreateRequest(CamelModel):
    title: str
    description: str = ""
    background_color: str | None = None


class BoardUpdateRequest(CamelModel):
    title: str | None = None
    description: str | None = None
    background_color: str | None = None


class BoardResponse(CamelModel):
    board_id: UUID
    owner_id: UUID
    title: str
    description: str
    background_color: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_board(cls, board: Board) -> "BoardResponse":
        return cls(
            board_id=board.id,
            owner_id=board.owner_user_id,
            title=board.title,
            description=board.description,
            background_color=board.background_color,
            created_at=board.created_at,
            updated_at=board.updated_at,
        )


class MemberResponse(CamelModel):
    user_id: UUID
    board_id: UUID
    role: Literal["owner", "member"]
    invitation_id: UUID | None = None
    created_at: datetime

    @classmethod
    def from_member(cls, member: Member) -> "MemberResponse":
        return cls(
            user_id=member.user_id,
            board_id=member.board_id,
            role=member.role,
            invitation_id=member.invitation_id,
            created_at=member.created_at,
        )


# --- Invitations ---
class InvitationCreateRequest(CamelModel):
    member_email: str = Field(min_length=3, max_length=254)


class InvitationTokenRequest(CamelModel):
    token: str = Field(min_length=1)


class InvitationResponse(CamelModel):
    invitation_id: UUID
    board_id: UUID
    member_email: str
    status: Literal["pending", "accepted", "declined"]
    token: str | None = None
    notification: Literal["sent", "queued", "pending"] | None = None


# --- Lists ---
class ListCreateRequest(CamelModel):
    title: str


class ListResponse(CamelModel):
    list_id: UUID
    board_id: UUID
    title: str
    position: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_list(cls, board_list: BoardList) -> "ListResponse":
        return cls(
            list_id=board_list.id,
            board_id=board_list.board_id,
            title=board_list.title,
            position=board_list.position,
            created_at=board_list.created_at,
            updated_at=board_list.updated_at,
        )


def dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json")
