from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# --- Enums / Literals ---
UserStatus = Literal["active", "disabled"]
Lifecycle = Literal["active", "deleted"]
MemberRole = Literal["owner", "member"]
InvitationStatus = Literal["pending", "accepted", "declined"]

TERMINAL_INVITATION_STATUSES: frozenset[InvitationStatus] = frozenset({"accepted", "declined"})


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- User ---

class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: str
    display_name: str
    password_hash: str
    status: UserStatus = "active"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

# --- Boards ---

class Board(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    owner_user_id: UUID
    title: str
    description: str = ""
    background_color: str = "#FFFFFF"
    lifecycle: Lifecycle = "active"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.lifecycle == "active"


class BoardSummary(BaseModel):
    """Listing projection of a board, serialized in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    board_id: UUID
    owner_id: UUID
    title: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_board(cls, board: Board) -> "BoardSummary":
        return cls(
            board_id=board.id,
            owner_id=board.owner_user_id,
            title=board.title,
            created_at=board.created_at,
            updated_at=board.updated_at,
        )


class BoardList(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    board_id: UUID
    owner_user_id: UUID
    title: str
    position: int = 0
    lifecycle: Lifecycle = "active"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

# --- Membership ---

class Member(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    board_id: UUID
    user_id: UUID
    role: MemberRole = "member"
    invitation_id: UUID | None = None  # Audit back-reference only
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Invitation(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    board_id: UUID
    member_email: str
    status: InvitationStatus = "pending"
    token: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_INVITATION_STATUSES
