import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from trellis.adapters.clock import SystemClock
from trellis.adapters.dev_email import DevEmailAdapter
from trellis.adapters.memory_cache import InMemoryCache
from trellis.adapters.sqlite.repos import (
    SQLiteBoardRepo,
    SQLiteInvitationRepo,
    SQLiteListRepo,
    SQLiteMemberRepo,
    SQLiteUserRepo,
)
from trellis.api.auth_utils import decode_access_token
from trellis.components.boards import BoardService
from trellis.components.invitations import (
    InvitationWorkflow,
    NotificationDispatcherPort,
    TokenGenerator,
    create_invitation_workflow,
)
from trellis.components.lists import ListService
from trellis.components.membership import MembershipGuard
from trellis.context import build_dispatcher, invitation_settings
from trellis.domain.entities import User
from trellis.rules.loader import load_rules
from trellis.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("TRELLIS_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "trellis.db")
        self.rules_path = self.base_dir / "rules.yaml"
        self.migrations_dir = str(self.base_dir / "migrations")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Repos ---
def get_user_repo(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path, rules.storage.busy_timeout_seconds)


def get_board_repo(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLiteBoardRepo:
    return SQLiteBoardRepo(settings.db_path, rules.storage.busy_timeout_seconds)


def get_member_repo(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLiteMemberRepo:
    return SQLiteMemberRepo(settings.db_path, rules.storage.busy_timeout_seconds)


def get_invitation_repo(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLiteInvitationRepo:
    return SQLiteInvitationRepo(settings.db_path, rules.storage.busy_timeout_seconds)


def get_list_repo(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLiteListRepo:
    return SQLiteListRepo(settings.db_path, rules.storage.busy_timeout_seconds)


# --- Process-wide singletons ---
_clock_instance: SystemClock | None = None
_cache_instance: InMemoryCache | None = None
_email_instance: DevEmailAdapter | None = None
_dispatcher_instance: NotificationDispatcherPort | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


def get_cache() -> InMemoryCache:
    """Get the board listing cache singleton."""
    global _cache_instance
    if _cache_instance is None:
        _cache_instance = InMemoryCache()
    return _cache_instance


def get_email_adapter() -> DevEmailAdapter:
    """Get email adapter singleton."""
    global _email_instance
    if _email_instance is None:
        _email_instance = DevEmailAdapter()
    return _email_instance


def get_dispatcher(
    rules: Rules = Depends(get_rules),
    email: DevEmailAdapter = Depends(get_email_adapter),
) -> NotificationDispatcherPort:
    """Get notification dispatcher singleton, chosen by rules.notifications.mode."""
    global _dispatcher_instance
    if _dispatcher_instance is None:
        _dispatcher_instance = build_dispatcher(email, rules)
    return _dispatcher_instance


def shutdown_dispatcher() -> None:
    global _dispatcher_instance
    shutdown = getattr(_dispatcher_instance, "shutdown", None)
    if shutdown is not None:
        shutdown()
    _dispatcher_instance = None


# --- Component Services ---
def get_membership_guard(
    member_repo: SQLiteMemberRepo = Depends(get_member_repo),
    clock: SystemClock = Depends(get_clock),
) -> MembershipGuard:
    return MembershipGuard(member_repo, clock)


def get_board_service(
    board_repo: SQLiteBoardRepo = Depends(get_board_repo),
    guard: MembershipGuard = Depends(get_membership_guard),
    cache: InMemoryCache = Depends(get_cache),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> BoardService:
    """Get boards component service."""
    return BoardService(
        board_repo,
        guard,
        cache,
        clock,
        rules.boards,
        board_list_key=rules.cache.board_list_key,
    )


def get_list_service(
    list_repo: SQLiteListRepo = Depends(get_list_repo),
    board_repo: SQLiteBoardRepo = Depends(get_board_repo),
    guard: MembershipGuard = Depends(get_membership_guard),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> ListService:
    """Get lists component service."""
    return ListService(list_repo, board_repo, guard, clock, rules.lists)


def get_invitation_workflow(
    board_repo: SQLiteBoardRepo = Depends(get_board_repo),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    invitation_repo: SQLiteInvitationRepo = Depends(get_invitation_repo),
    guard: MembershipGuard = Depends(get_membership_guard),
    dispatcher: NotificationDispatcherPort = Depends(get_dispatcher),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> InvitationWorkflow:
    """Get invitations component workflow."""
    return create_invitation_workflow(
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


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> User:
    # HttpOnly cookie wins over the Authorization header
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        token = cookie_token.split(" ")[1]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if user_id is None or not isinstance(user_id, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    try:
        user = user_repo.get_by_id(UUID(user_id))
    except ValueError:
        user = None
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if user.status != "active":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user",
        )

    return user
