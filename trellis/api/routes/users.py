import logging

from fastapi import APIRouter, Depends, HTTPException, status

from trellis.adapters.clock import SystemClock
from trellis.adapters.sqlite.repos import SQLiteUserRepo
from trellis.api.auth_utils import get_password_hash
from trellis.api.deps import get_clock, get_user_repo
from trellis.api.schemas import ApiResponse, UserCreateRequest, UserResponse, dump
from trellis.components.invitations import normalize_email
from trellis.domain.entities import User
from trellis.domain.errors import ConflictError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
def register_user(
    req: UserCreateRequest,
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    clock: SystemClock = Depends(get_clock),
) -> ApiResponse:
    """Register a new account."""
    email = normalize_email(req.email)
    if user_repo.get_by_email(email):
        raise HTTPException(status_code=409, detail="Email already registered")

    now = clock.now_utc()
    user = User(
        email=email,
        display_name=req.display_name.strip(),
        password_hash=get_password_hash(req.password),
        created_at=now,
        updated_at=now,
    )
    try:
        user_repo.save(user)
    except ConflictError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    logger.info("User %s registered", user.id)
    return ApiResponse(
        status=status.HTTP_201_CREATED,
        message="Registration completed.",
        data=dump(UserResponse.from_user(user)),
    )
