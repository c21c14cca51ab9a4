"""
Invitation state machine and workflow.

InvitationStateMachine owns the lifecycle of invitation rows:
create (Pending), lookup by token, and the Pending -> Accepted / Declined
transitions as compare-and-set writes.

InvitationWorkflow orchestrates MembershipGuard, TokenGenerator, the state
machine and the notification dispatcher for the create / accept / decline
use cases. It raises DomainError subclasses; component.py turns them into
outputs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from trellis.components.membership import MembershipGuard
from trellis.core.ports.email import EmailStatus
from trellis.domain.entities import Board, Invitation, Member, User
from trellis.domain.errors import (
    ConflictError,
    DeliveryError,
    DuplicatePendingInvitationError,
    DuplicateTokenError,
    NotFoundError,
)
from trellis.domain.state import INVALID_TOKEN_MESSAGE, ensure_pending, transition

from .models import NotificationState
from .notifications import render_invitation_email
from .ports import (
    BoardRepoPort,
    ClockPort,
    InvitationRepoPort,
    NotificationDispatcherPort,
    UserRepoPort,
)
from .tokens import TokenGenerator

logger = logging.getLogger(__name__)

BOARD_NOT_FOUND_MESSAGE = "board not found"
USER_NOT_FOUND_MESSAGE = "user not found"
ALREADY_JOINED_MESSAGE = "this user has already accepted an invitation to the board"


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True)
class InvitationSettings:
    accept_url: str
    decline_url: str
    email_subject: str = "You have been invited to a board"


@dataclass(frozen=True)
class CreatedInvitation:
    invitation: Invitation
    reused: bool
    notification: NotificationState


class InvitationStateMachine:
    def __init__(
        self,
        repo: InvitationRepoPort,
        tokens: TokenGenerator,
        clock: ClockPort,
    ) -> None:
        self._repo = repo
        self._tokens = tokens
        self._clock = clock

    def _token_exists(self, token: str) -> bool:
        return self._repo.get_by_token(token) is not None

    def create(self, board_id: UUID, email: str) -> Invitation:
        """Persist a brand-new Pending invitation under a fresh unique token."""
        while True:
            token = self._tokens.issue_unique(self._token_exists)
            now = self._clock.now_utc()
            invitation = Invitation(
                board_id=board_id,
                member_email=email,
                status="pending",
                token=token,
                created_at=now,
                updated_at=now,
            )
            try:
                return self._repo.add(invitation)
            except DuplicateTokenError:
                logger.warning("Invitation token taken between lookup and insert; drawing again")

    def find_by_token(self, token: str) -> Invitation:
        invitation = self._repo.get_by_token(token)
        if invitation is None:
            raise NotFoundError(INVALID_TOKEN_MESSAGE)
        return invitation

    def find_pending(self, board_id: UUID, email: str) -> Invitation | None:
        return next(
            (i for i in self._repo.list_by_board_and_email(board_id, email) if i.status == "pending"),
            None,
        )

    def open(self, board_id: UUID, email: str) -> tuple[Invitation, bool]:
        """
        Return the invitation to notify for (board, email) and whether it was reused.

        Pending rows are reused; an accepted row blocks re-inviting; declined
        rows are history and a new cycle starts with a new row.
        """
        prior = self._repo.list_by_board_and_email(board_id, email)
        if any(i.status == "accepted" for i in prior):
            raise ConflictError(ALREADY_JOINED_MESSAGE)

        pending = next((i for i in prior if i.status == "pending"), None)
        if pending is not None:
            return pending, True

        try:
            return self.create(board_id, email), False
        except DuplicatePendingInvitationError:
            # A concurrent request opened the pending row first
            pending = self.find_pending(board_id, email)
            if pending is None:
                raise
            return pending, True

    def accept(self, invitation: Invitation, member: Member) -> Invitation:
        """Pending -> Accepted, inserting the member in the same storage transaction."""
        accepted = transition(invitation, "accepted", self._clock.now_utc())
        if not self._repo.accept(invitation.id, member, accepted.updated_at):
            self._raise_lost_race(invitation)
        return accepted

    def decline(self, invitation: Invitation) -> Invitation:
        """Pending -> Declined."""
        declined = transition(invitation, "declined", self._clock.now_utc())
        if not self._repo.save_status(invitation.id, "pending", "declined", declined.updated_at):
            self._raise_lost_race(invitation)
        return declined

    def _raise_lost_race(self, invitation: Invitation) -> None:
        current = self.find_by_token(invitation.token)
        ensure_pending(current)
        raise ConflictError("invitation changed concurrently")


class InvitationWorkflow:
    def __init__(
        self,
        board_repo: BoardRepoPort,
        user_repo: UserRepoPort,
        guard: MembershipGuard,
        machine: InvitationStateMachine,
        dispatcher: NotificationDispatcherPort,
        clock: ClockPort,
        settings: InvitationSettings,
    ) -> None:
        self._boards = board_repo
        self._users = user_repo
        self._guard = guard
        self._machine = machine
        self._dispatcher = dispatcher
        self._clock = clock
        self._settings = settings

    def _get_active_board(self, board_id: UUID) -> Board:
        board = self._boards.get_by_id(board_id)
        if board is None or not board.is_active:
            raise NotFoundError(BOARD_NOT_FOUND_MESSAGE)
        return board

    def create_invitation(
        self, board_id: UUID, invitee_email: str, actor: User
    ) -> CreatedInvitation:
        email = normalize_email(invitee_email)
        board = self._get_active_board(board_id)
        self._guard.ensure_member(board.id, actor.id)

        invitee = self._users.get_by_email(email)
        if invitee is None:
            raise NotFoundError(USER_NOT_FOUND_MESSAGE)

        self._guard.ensure_not_member(board.id, invitee.id)

        invitation, reused = self._machine.open(board.id, email)
        logger.info(
            "%s invitation %s for board %s",
            "Reusing" if reused else "Created",
            invitation.id,
            board.id,
        )

        notification = self._notify(board, actor, invitation)
        return CreatedInvitation(invitation=invitation, reused=reused, notification=notification)

    def _notify(self, board: Board, inviter: User, invitation: Invitation) -> NotificationState:
        message = render_invitation_email(
            board,
            inviter,
            invitation,
            subject=self._settings.email_subject,
            accept_url=self._settings.accept_url,
            decline_url=self._settings.decline_url,
        )
        try:
            result = self._dispatcher.dispatch(
                message.recipient, message.subject, message.body_html, message.body_text
            )
        except DeliveryError as e:
            logger.warning("Invitation %s created, notification pending: %s", invitation.id, e)
            return "pending"

        return "queued" if result.status is EmailStatus.QUEUED else "sent"

    def accept_invitation(self, token: str, actor: User) -> tuple[Invitation, Member]:
        invitation = self._machine.find_by_token(token)
        ensure_pending(invitation)
        board = self._get_active_board(invitation.board_id)

        self._guard.ensure_not_member(board.id, actor.id)

        now = self._clock.now_utc()
        member = Member(
            board_id=board.id,
            user_id=actor.id,
            role="member",
            invitation_id=invitation.id,
            created_at=now,
            updated_at=now,
        )
        accepted = self._machine.accept(invitation, member)
        logger.info("Invitation %s accepted by user %s", invitation.id, actor.id)
        return accepted, member

    def decline_invitation(self, token: str, actor: User) -> Invitation:
        invitation = self._machine.find_by_token(token)
        ensure_pending(invitation)
        board = self._get_active_board(invitation.board_id)
        self._guard.ensure_not_member(board.id, actor.id)

        declined = self._machine.decline(invitation)
        logger.info("Invitation %s declined by user %s", invitation.id, actor.id)
        return declined


# --- Factory ---


def create_invitation_workflow(
    *,
    board_repo: BoardRepoPort,
    user_repo: UserRepoPort,
    invitation_repo: InvitationRepoPort,
    guard: MembershipGuard,
    dispatcher: NotificationDispatcherPort,
    clock: ClockPort,
    settings: InvitationSettings,
    tokens: TokenGenerator | None = None,
) -> InvitationWorkflow:
    machine = InvitationStateMachine(invitation_repo, tokens or TokenGenerator(), clock)
    return InvitationWorkflow(
        board_repo=board_repo,
        user_repo=user_repo,
        guard=guard,
        machine=machine,
        dispatcher=dispatcher,
        clock=clock,
        settings=settings,
    )
