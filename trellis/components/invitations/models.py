from dataclasses import dataclass
from http import HTTPStatus
from typing import Literal
from uuid import UUID

from trellis.domain.entities import Invitation, Member, User

NotificationState = Literal["sent", "queued", "pending"]


@dataclass(frozen=True)
class CreateInvitationInput:
    board_id: UUID
    member_email: str
    actor: User


@dataclass(frozen=True)
class AcceptInvitationInput:
    token: str
    actor: User


@dataclass(frozen=True)
class DeclineInvitationInput:
    token: str
    actor: User


@dataclass
class InvitationOutput:
    success: bool = False
    status_code: int = HTTPStatus.OK
    message: str = ""
    error: str | None = None
    token: str | None = None
    invitation: Invitation | None = None
    notification: NotificationState | None = None
    warning: str | None = None


@dataclass
class MembershipOutput:
    success: bool = False
    status_code: int = HTTPStatus.OK
    message: str = ""
    error: str | None = None
    member: Member | None = None
    invitation: Invitation | None = None
