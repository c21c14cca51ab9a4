from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from trellis.adapters.clock import SystemClock
from trellis.adapters.dev_email import DevEmailAdapter
from trellis.adapters.dispatch import (
    BackgroundNotificationDispatcher,
    SyncNotificationDispatcher,
)
from trellis.adapters.memory_cache import InMemoryCache
from trellis.adapters.sqlite.repos import (
    SQLiteBoardRepo,
    SQLiteInvitationRepo,
    SQLiteListRepo,
    SQLiteMemberRepo,
    SQLiteUserRepo,
)
from trellis.components.boards import BoardService
from trellis.components.invitations import (
    InvitationSettings,
    InvitationWorkflow,
    NotificationDispatcherPort,
    TokenGenerator,
    create_invitation_workflow,
)
from trellis.components.lists import ListService
from trellis.components.membership import MembershipGuard
from trellis.core.ports.email import EmailPort
from trellis.ports.cache import CachePort
from trellis.ports.clock import ClockPort
from trellis.rules.models import Rules


def build_dispatcher(email: EmailPort, rules: Rules) -> NotificationDispatcherPort:
    if rules.notifications.mode == "background":
        return BackgroundNotificationDispatcher(email, max_workers=rules.notifications.max_workers)
    return SyncNotificationDispatcher(email)


def invitation_settings(rules: Rules) -> InvitationSettings:
    return InvitationSettings(
        accept_url=rules.invitations.accept_url,
        decline_url=rules.invitations.decline_url,
        email_subject=rules.invitations.email_subject,
    )


@dataclass
class ServiceContext:
    board_service: BoardService
    list_service: ListService
    invitation_workflow: InvitationWorkflow
    guard: MembershipGuard
    user_repo: SQLiteUserRepo
    board_repo: SQLiteBoardRepo
    member_repo: SQLiteMemberRepo
    invitation_repo: SQLiteInvitationRepo
    list_repo: SQLiteListRepo
    cache: CachePort
    email: Any
    dispatcher: NotificationDispatcherPort
    rules: Rules
    clock: ClockPort

    @classmethod
    def create(
        cls,
        db_path: str,
        rules: Rules,
        *,
        email: EmailPort | None = None,
        cache: CachePort | None = None,
        clock: ClockPort | None = None,
    ) -> ServiceContext:
        busy_timeout = rules.storage.busy_timeout_seconds

        # Adapters
        user_repo = SQLiteUserRepo(db_path, busy_timeout)
        board_repo = SQLiteBoardRepo(db_path, busy_timeout)
        member_repo = SQLiteMemberRepo(db_path, busy_timeout)
        invitation_repo = SQLiteInvitationRepo(db_path, busy_timeout)
        list_repo = SQLiteListRepo(db_path, busy_timeout)

        clock = clock or SystemClock()
        cache = cache or InMemoryCache()
        email = email or DevEmailAdapter()
        dispatcher = build_dispatcher(email, rules)

        # Services
        guard = MembershipGuard(member_repo, clock)
        board_service = BoardService(
            board_repo,
            guard,
            cache,
            clock,
            rules.boards,
            board_list_key=rules.cache.board_list_key,
        )
        list_service = ListService(list_repo, board_repo, guard, clock, rules.lists)
        workflow = create_invitation_workflow(
            board_repo=board_repo,
            user_repo=user_repo,
            invitation_repo=invitation_repo,
            guard=guard,
            dispatcher=dispatcher,
            clock=clock,
            settings=invitation_settings(rules),
            tokens=TokenGenerator(
                collision_warn_threshold=rules.invitations.token_collision_warn_threshold
            ),
        )

        return cls(
            board_service=board_service,
            list_service=list_service,
            invitation_workflow=workflow,
            guard=guard,
            user_repo=user_repo,
            board_repo=board_repo,
            member_repo=member_repo,
            invitation_repo=invitation_repo,
            list_repo=list_repo,
            cache=cache,
            email=email,
            dispatcher=dispatcher,
            rules=rules,
            clock=clock,
        )
