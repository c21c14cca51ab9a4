"""
Invitations component unit tests.

Tests for token issuance, the invitation state machine, and the
create / accept / decline workflow against in-memory repositories.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from trellis.components.invitations import (
    AcceptInvitationInput,
    CreateInvitationInput,
    DeclineInvitationInput,
    InvitationOutput,
    InvitationSettings,
    InvitationStateMachine,
    InvitationWorkflow,
    MembershipOutput,
    TokenGenerator,
    create_invitation_workflow,
    render_invitation_email,
    run,
    run_accept,
    run_create,
    run_decline,
)
from trellis.components.membership import MembershipGuard
from trellis.core.ports.email import EmailResult
from trellis.domain.entities import Board, Invitation, Member, User
from trellis.domain.errors import (
    ConflictError,
    DeliveryError,
    DuplicateMemberError,
    DuplicatePendingInvitationError,
    DuplicateTokenError,
    ForbiddenError,
    NotFoundError,
)

# --- Mock Implementations ---


class MockClock:
    def __init__(self) -> None:
        self.now = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self.now


class MockUserRepo:
    """In-memory user repository for testing."""

    def __init__(self) -> None:
        self._users: dict[UUID, User] = {}

    def get_by_email(self, email: str) -> User | None:
        for user in self._users.values():
            if user.email.lower() == email.lower():
                return user
        return None

    def get_by_id(self, user_id: UUID) -> User | None:
        return self._users.get(user_id)

    def save(self, user: User) -> None:
        self._users[user.id] = user


class MockBoardRepo:
    """In-memory board repository for testing."""

    def __init__(self) -> None:
        self._boards: dict[UUID, Board] = {}

    def get_by_id(self, board_id: UUID) -> Board | None:
        return self._boards.get(board_id)

    def get_active_by_title(self, title: str) -> Board | None:
        return next(
            (b for b in self._boards.values() if b.title == title and b.is_active), None
        )

    def list_active(self) -> list[Board]:
        return [b for b in self._boards.values() if b.is_active]

    def save(self, board: Board) -> Board:
        self._boards[board.id] = board
        return board


class MockMemberRepo:
    """In-memory member repository enforcing (board, user) uniqueness."""

    def __init__(self) -> None:
        self.members: list[Member] = []

    def get_by_board_and_user(self, board_id: UUID, user_id: UUID) -> Member | None:
        return next(
            (m for m in self.members if m.board_id == board_id and m.user_id == user_id), None
        )

    def list_by_board(self, board_id: UUID) -> list[Member]:
        return [m for m in self.members if m.board_id == board_id]

    def add(self, member: Member) -> Member:
        if self.get_by_board_and_user(member.board_id, member.user_id):
            raise DuplicateMemberError()
        self.members.append(member)
        return member


class MockInvitationRepo:
    """In-memory invitation repository enforcing the storage unique constraints."""

    def __init__(self, members: MockMemberRepo) -> None:
        self.invitations: dict[UUID, Invitation] = {}
        self._members = members

    def get_by_token(self, token: str) -> Invitation | None:
        return next((i for i in self.invitations.values() if i.token == token), None)

    def list_by_board_and_email(self, board_id: UUID, email: str) -> list[Invitation]:
        return [
            i
            for i in self.invitations.values()
            if i.board_id == board_id and i.member_email == email
        ]

    def add(self, invitation: Invitation) -> Invitation:
        if self.get_by_token(invitation.token):
            raise DuplicateTokenError()
        if any(
            i.status == "pending"
            for i in self.list_by_board_and_email(invitation.board_id, invitation.member_email)
        ):
            raise DuplicatePendingInvitationError()
        self.invitations[invitation.id] = invitation
        return invitation

    def save_status(self, invitation_id, expected, new, now) -> bool:
        current = self.invitations[invitation_id]
        if current.status != expected:
            return False
        self.invitations[invitation_id] = current.model_copy(
            update={"status": new, "updated_at": now}
        )
        return True

    def accept(self, invitation_id: UUID, member: Member, now: datetime) -> bool:
        if self.invitations[invitation_id].status != "pending":
            return False
        self._members.add(member)
        return self.save_status(invitation_id, "pending", "accepted", now)


class RecordingDispatcher:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str, str]] = []

    def dispatch(self, recipient, subject, body_html, body_text) -> EmailResult:
        self.sent.append((recipient, subject, body_html, body_text))
        return EmailResult.success(recipient)


class FailingDispatcher:
    def dispatch(self, recipient, subject, body_html, body_text) -> EmailResult:
        raise DeliveryError(recipient, "smtp down")


class QueueingDispatcher:
    def dispatch(self, recipient, subject, body_html, body_text) -> EmailResult:
        return EmailResult.queued(recipient)


# --- Fixtures ---

SETTINGS = InvitationSettings(
    accept_url="http://localhost:3000/accept-invitation",
    decline_url="http://localhost:3000/decline-invitation",
)


def _user(email: str, name: str = "User") -> User:
    return User(email=email, display_name=name, password_hash="hash")


class World:
    """Wires the workflow over in-memory repositories."""

    def __init__(self, dispatcher=None, tokens: TokenGenerator | None = None) -> None:
        self.clock = MockClock()
        self.users = MockUserRepo()
        self.boards = MockBoardRepo()
        self.members = MockMemberRepo()
        self.invitations = MockInvitationRepo(self.members)
        self.dispatcher = dispatcher or RecordingDispatcher()
        self.guard = MembershipGuard(self.members, self.clock)
        self.workflow = create_invitation_workflow(
            board_repo=self.boards,
            user_repo=self.users,
            invitation_repo=self.invitations,
            guard=self.guard,
            dispatcher=self.dispatcher,
            clock=self.clock,
            settings=SETTINGS,
            tokens=tokens,
        )

        self.owner = _user("owner@x.com", "Olive Owner")
        self.users.save(self.owner)
        self.board = Board(owner_user_id=self.owner.id, title="Sprint Plan")
        self.boards.save(self.board)
        self.guard.admit(self.board.id, self.owner.id, role="owner")

    def register(self, email: str) -> User:
        user = _user(email)
        self.users.save(user)
        return user

    def machine(self) -> InvitationStateMachine:
        return InvitationStateMachine(self.invitations, TokenGenerator(), self.clock)


@pytest.fixture
def world() -> World:
    return World()


# --- TokenGenerator ---


class TestTokenGenerator:
    def test_issue_is_uuid_shaped(self) -> None:
        token = TokenGenerator().issue()
        assert len(token) == 36
        assert UUID(token).version == 4

    def test_issue_returns_distinct_tokens(self) -> None:
        gen = TokenGenerator()
        assert len({gen.issue() for _ in range(100)}) == 100

    def test_issue_unique_skips_existing_tokens(self) -> None:
        draws = iter(["taken-1", "taken-2", "fresh"])
        gen = TokenGenerator(factory=lambda: next(draws))
        token = gen.issue_unique(lambda t: t.startswith("taken"))
        assert token == "fresh"

    def test_issue_unique_warns_past_threshold(self, caplog: pytest.LogCaptureFixture) -> None:
        draws = iter(["a", "a", "a", "b"])
        gen = TokenGenerator(factory=lambda: next(draws), collision_warn_threshold=2)

        with caplog.at_level(logging.WARNING):
            assert gen.issue_unique(lambda t: t == "a") == "b"

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1

    def test_no_warning_below_threshold(self, caplog: pytest.LogCaptureFixture) -> None:
        draws = iter(["a", "b"])
        gen = TokenGenerator(factory=lambda: next(draws), collision_warn_threshold=3)

        with caplog.at_level(logging.WARNING):
            gen.issue_unique(lambda t: t == "a")

        assert not [r for r in caplog.records if r.levelno == logging.WARNING]


# --- InvitationStateMachine ---


class TestStateMachine:
    def test_create_persists_pending(self, world: World) -> None:
        machine = world.machine()
        inv = machine.create(world.board.id, "b@x.com")

        assert inv.status == "pending"
        assert len(inv.token) == 36
        assert world.invitations.invitations[inv.id] == inv

    def test_find_by_token_round_trip(self, world: World) -> None:
        machine = world.machine()
        inv = machine.create(world.board.id, "b@x.com")
        assert machine.find_by_token(inv.token) == inv

    def test_find_by_unknown_token(self, world: World) -> None:
        with pytest.raises(NotFoundError):
            world.machine().find_by_token("nope")

    def test_create_redraws_when_insert_hits_taken_token(self, world: World) -> None:
        existing = Invitation(board_id=world.board.id, member_email="z@x.com", token="dup")
        world.invitations.invitations[existing.id] = existing

        # Lookup misses the first draw, insert then rejects it
        draws = iter(["dup", "dup", "fresh"])
        tokens = TokenGenerator(factory=lambda: next(draws))
        machine = InvitationStateMachine(world.invitations, tokens, world.clock)
        lookups = iter([False, True, False])
        machine._token_exists = lambda t: next(lookups)  # type: ignore[method-assign]

        inv = machine.create(world.board.id, "b@x.com")
        assert inv.token == "fresh"

    def test_open_reuses_pending(self, world: World) -> None:
        machine = world.machine()
        first, reused_first = machine.open(world.board.id, "b@x.com")
        second, reused_second = machine.open(world.board.id, "b@x.com")

        assert not reused_first
        assert reused_second
        assert first.token == second.token
        assert len(world.invitations.invitations) == 1

    def test_open_after_accepted_conflicts(self, world: World) -> None:
        machine = world.machine()
        inv = machine.create(world.board.id, "b@x.com")
        world.invitations.save_status(inv.id, "pending", "accepted", world.clock.now)

        with pytest.raises(ConflictError):
            machine.open(world.board.id, "b@x.com")

    def test_open_after_declined_starts_new_cycle(self, world: World) -> None:
        machine = world.machine()
        inv = machine.create(world.board.id, "b@x.com")
        world.invitations.save_status(inv.id, "pending", "declined", world.clock.now)

        fresh, reused = machine.open(world.board.id, "b@x.com")
        assert not reused
        assert fresh.token != inv.token
        assert fresh.status == "pending"

    def test_open_resolves_concurrent_pending_insert_to_winner(self, world: World) -> None:
        machine = world.machine()
        winner = Invitation(board_id=world.board.id, member_email="b@x.com", token="winner")
        real_list = world.invitations.list_by_board_and_email
        calls = {"n": 0}

        def stale_then_real(board_id, email):
            # First read happens before the concurrent insert lands
            calls["n"] += 1
            if calls["n"] == 1:
                world.invitations.invitations[winner.id] = winner
                return []
            return real_list(board_id, email)

        world.invitations.list_by_board_and_email = stale_then_real  # type: ignore[method-assign]

        inv, reused = machine.open(world.board.id, "b@x.com")
        assert reused
        assert inv.token == "winner"
        assert len(world.invitations.invitations) == 1

    def test_accept_twice_conflicts(self, world: World) -> None:
        machine = world.machine()
        inv = machine.create(world.board.id, "b@x.com")
        user = world.register("b@x.com")
        member = Member(board_id=world.board.id, user_id=user.id, invitation_id=inv.id)

        accepted = machine.accept(inv, member)
        assert accepted.status == "accepted"

        # Stale in-memory copy still says pending; storage CAS decides
        with pytest.raises(ConflictError, match="already accepted"):
            machine.accept(inv, member.model_copy(update={"id": uuid4()}))

    def test_decline_after_accept_conflicts(self, world: World) -> None:
        machine = world.machine()
        inv = machine.create(world.board.id, "b@x.com")
        user = world.register("b@x.com")
        machine.accept(inv, Member(board_id=world.board.id, user_id=user.id))

        with pytest.raises(ConflictError, match="already accepted"):
            machine.decline(inv)

    def test_decline_moves_to_declined(self, world: World) -> None:
        machine = world.machine()
        inv = machine.create(world.board.id, "b@x.com")

        declined = machine.decline(inv)
        assert declined.status == "declined"
        assert world.invitations.get_by_token(inv.token).status == "declined"


# --- InvitationWorkflow ---


class TestCreateInvitation:
    def test_unknown_board(self, world: World) -> None:
        with pytest.raises(NotFoundError):
            world.workflow.create_invitation(uuid4(), "b@x.com", world.owner)

    def test_deleted_board(self, world: World) -> None:
        world.boards.save(world.board.model_copy(update={"lifecycle": "deleted"}))
        world.register("b@x.com")
        with pytest.raises(NotFoundError):
            world.workflow.create_invitation(world.board.id, "b@x.com", world.owner)

    def test_non_member_cannot_invite(self, world: World) -> None:
        outsider = world.register("out@x.com")
        world.register("b@x.com")
        with pytest.raises(ForbiddenError):
            world.workflow.create_invitation(world.board.id, "b@x.com", outsider)

    def test_invitee_without_account(self, world: World) -> None:
        with pytest.raises(NotFoundError):
            world.workflow.create_invitation(world.board.id, "ghost@x.com", world.owner)
        assert world.invitations.invitations == {}

    def test_invitee_already_member(self, world: World) -> None:
        with pytest.raises(DuplicateMemberError, match="already a member"):
            world.workflow.create_invitation(world.board.id, "owner@x.com", world.owner)

    def test_email_is_normalized(self, world: World) -> None:
        world.register("b@x.com")
        created = world.workflow.create_invitation(world.board.id, "  B@X.com ", world.owner)
        assert created.invitation.member_email == "b@x.com"

    def test_twice_while_pending_returns_same_token(self, world: World) -> None:
        world.register("b@x.com")
        first = world.workflow.create_invitation(world.board.id, "b@x.com", world.owner)
        second = world.workflow.create_invitation(world.board.id, "b@x.com", world.owner)

        assert first.invitation.token == second.invitation.token
        assert second.reused
        assert len(world.invitations.invitations) == 1
        # Each request re-sends the notification
        assert len(world.dispatcher.sent) == 2

    def test_notification_carries_board_inviter_and_links(self, world: World) -> None:
        world.register("b@x.com")
        created = world.workflow.create_invitation(world.board.id, "b@x.com", world.owner)

        recipient, subject, body_html, body_text = world.dispatcher.sent[0]
        assert recipient == "b@x.com"
        assert subject == SETTINGS.email_subject
        assert "Sprint Plan" in body_html
        assert "Olive Owner" in body_html
        assert f"token={created.invitation.token}" in body_text
        assert SETTINGS.decline_url in body_text

    def test_delivery_failure_keeps_invitation(self) -> None:
        world = World(dispatcher=FailingDispatcher())
        world.register("b@x.com")

        created = world.workflow.create_invitation(world.board.id, "b@x.com", world.owner)

        assert created.notification == "pending"
        assert world.invitations.get_by_token(created.invitation.token) is not None

    def test_background_dispatch_reports_queued(self) -> None:
        world = World(dispatcher=QueueingDispatcher())
        world.register("b@x.com")
        created = world.workflow.create_invitation(world.board.id, "b@x.com", world.owner)
        assert created.notification == "queued"


class TestAcceptInvitation:
    def _invite(self, world: World, email: str = "b@x.com") -> tuple[User, str]:
        user = world.register(email)
        created = world.workflow.create_invitation(world.board.id, email, world.owner)
        return user, created.invitation.token

    def test_accept_admits_member(self, world: World) -> None:
        user, token = self._invite(world)

        invitation, member = world.workflow.accept_invitation(token, user)

        assert invitation.status == "accepted"
        assert member.role == "member"
        assert member.invitation_id == invitation.id
        assert world.guard.is_member(world.board.id, user.id)

    def test_unknown_token(self, world: World) -> None:
        user = world.register("b@x.com")
        with pytest.raises(NotFoundError):
            world.workflow.accept_invitation("missing", user)

    def test_accept_twice(self, world: World) -> None:
        user, token = self._invite(world)
        world.workflow.accept_invitation(token, user)

        with pytest.raises(ConflictError, match="already accepted"):
            world.workflow.accept_invitation(token, user)

    def test_declined_token_looks_invalid(self, world: World) -> None:
        user, token = self._invite(world)
        world.workflow.decline_invitation(token, user)

        with pytest.raises(NotFoundError):
            world.workflow.accept_invitation(token, user)

    def test_accept_on_deleted_board(self, world: World) -> None:
        user, token = self._invite(world)
        world.boards.save(world.board.model_copy(update={"lifecycle": "deleted"}))

        with pytest.raises(NotFoundError):
            world.workflow.accept_invitation(token, user)

    def test_already_member_via_other_path(self, world: World) -> None:
        user, token = self._invite(world)
        world.guard.admit(world.board.id, user.id)

        with pytest.raises(DuplicateMemberError):
            world.workflow.accept_invitation(token, user)
        assert world.invitations.get_by_token(token).status == "pending"

    def test_reinvite_after_accept_conflicts(self, world: World) -> None:
        user, token = self._invite(world)
        world.workflow.accept_invitation(token, user)

        # Guard fires first: the invitee is now a member
        with pytest.raises(ConflictError):
            world.workflow.create_invitation(world.board.id, "b@x.com", world.owner)


class TestDeclineInvitation:
    def test_decline(self, world: World) -> None:
        user = world.register("b@x.com")
        token = world.workflow.create_invitation(world.board.id, "b@x.com", world.owner).invitation.token

        declined = world.workflow.decline_invitation(token, user)
        assert declined.status == "declined"
        assert not world.guard.is_member(world.board.id, user.id)

    def test_decline_twice_is_invalid_token(self, world: World) -> None:
        user = world.register("b@x.com")
        token = world.workflow.create_invitation(world.board.id, "b@x.com", world.owner).invitation.token
        world.workflow.decline_invitation(token, user)

        with pytest.raises(NotFoundError):
            world.workflow.decline_invitation(token, user)

    def test_member_cannot_decline(self, world: World) -> None:
        world.register("b@x.com")
        token = world.workflow.create_invitation(world.board.id, "b@x.com", world.owner).invitation.token

        with pytest.raises(DuplicateMemberError):
            world.workflow.decline_invitation(token, world.owner)
        assert world.invitations.get_by_token(token).status == "pending"

        result = run_decline(DeclineInvitationInput(token=token, actor=world.owner), world.workflow)
        assert result.status_code == 409


# --- Shell Layer ---


class TestComponentEntryPoints:
    def test_run_create_success(self, world: World) -> None:
        world.register("b@x.com")
        result = run_create(
            CreateInvitationInput(board_id=world.board.id, member_email="b@x.com", actor=world.owner),
            world.workflow,
        )

        assert isinstance(result, InvitationOutput)
        assert result.success
        assert result.status_code == 201
        assert result.message == "Invitation sent successfully."
        assert result.warning is None
        assert result.token == result.invitation.token

    def test_run_create_warns_when_notification_pending(self) -> None:
        world = World(dispatcher=FailingDispatcher())
        world.register("b@x.com")
        result = run_create(
            CreateInvitationInput(board_id=world.board.id, member_email="b@x.com", actor=world.owner),
            world.workflow,
        )

        assert result.success
        assert result.status_code == 201
        assert result.notification == "pending"
        assert result.warning == "Invitation created, notification pending."

    def test_run_create_maps_not_found(self, world: World) -> None:
        result = run_create(
            CreateInvitationInput(board_id=world.board.id, member_email="ghost@x.com", actor=world.owner),
            world.workflow,
        )
        assert not result.success
        assert result.status_code == 404
        assert result.token is None

    def test_run_accept_and_decline(self, world: World) -> None:
        b = world.register("b@x.com")
        c = world.register("c@x.com")
        tb = run_create(CreateInvitationInput(world.board.id, "b@x.com", world.owner), world.workflow).token
        tc = run_create(CreateInvitationInput(world.board.id, "c@x.com", world.owner), world.workflow).token

        accepted = run_accept(AcceptInvitationInput(token=tb, actor=b), world.workflow)
        declined = run_decline(DeclineInvitationInput(token=tc, actor=c), world.workflow)

        assert isinstance(accepted, MembershipOutput)
        assert accepted.status_code == 201
        assert accepted.message == "Joined the board successfully."
        assert accepted.member.user_id == b.id
        assert declined.status_code == 200
        assert declined.invitation.status == "declined"

    def test_run_dispatches_on_input_type(self, world: World) -> None:
        b = world.register("b@x.com")
        created = run(CreateInvitationInput(world.board.id, "b@x.com", world.owner), workflow=world.workflow)
        accepted = run(AcceptInvitationInput(created.token, b), workflow=world.workflow)
        again = run(AcceptInvitationInput(created.token, b), workflow=world.workflow)

        assert accepted.success
        assert again.status_code == 409
        assert again.error == "already accepted"

    def test_run_rejects_unknown_input(self, world: World) -> None:
        with pytest.raises(ValueError):
            run("not an input", workflow=world.workflow)  # type: ignore[arg-type]

    def test_sprint_plan_scenario(self, world: World) -> None:
        inp = CreateInvitationInput(board_id=world.board.id, member_email="a@x.com", actor=world.owner)

        first = run_create(inp, world.workflow)
        assert first.status_code == 404

        a = world.register("a@x.com")
        second = run_create(inp, world.workflow)
        assert second.status_code == 201
        assert len(second.token) == 36

        accepted = run_accept(AcceptInvitationInput(token=second.token, actor=a), world.workflow)
        assert accepted.status_code == 201
        assert accepted.member.role == "member"
        assert world.invitations.get_by_token(second.token).status == "accepted"

        again = run_accept(AcceptInvitationInput(token=second.token, actor=a), world.workflow)
        assert again.status_code == 409
        assert again.error == "already accepted"


class TestRenderInvitationEmail:
    def test_escapes_board_title(self) -> None:
        owner = _user("o@x.com", "O")
        board = Board(owner_user_id=owner.id, title="<b>Plan</b>")
        inv = Invitation(board_id=board.id, member_email="b@x.com", token="t-1")

        message = render_invitation_email(
            board, owner, inv, subject="Hi", accept_url="http://a/accept", decline_url="http://a/decline"
        )

        assert "&lt;b&gt;Plan&lt;/b&gt;" in message.body_html
        assert "http://a/accept?token=t-1" in message.body_text
        assert message.recipient == "b@x.com"


def test_workflow_type() -> None:
    assert isinstance(World().workflow, InvitationWorkflow)
