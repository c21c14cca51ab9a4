"""
Boards component - board lifecycle and the cached board listing.
"""

from ._impl import (
    DEFAULT_BOARD_LIST_KEY,
    BoardService,
    InvalidBoardError,
    validate_board_fields,
)
from .component import (
    run,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_members,
    run_update,
)
from .models import (
    BoardListOutput,
    BoardOutput,
    BoardValidationError,
    CreateBoardInput,
    DeleteBoardInput,
    GetBoardInput,
    ListBoardsInput,
    ListMembersInput,
    MemberListOutput,
    UpdateBoardInput,
)
from .ports import BoardRepoPort, CachePort, ClockPort, MemberRepoPort

__all__ = [
    # Entry points
    "run",
    "run_create",
    "run_update",
    "run_delete",
    "run_get",
    "run_list",
    "run_members",
    # Service
    "BoardService",
    "InvalidBoardError",
    "validate_board_fields",
    "DEFAULT_BOARD_LIST_KEY",
    # Input models
    "CreateBoardInput",
    "UpdateBoardInput",
    "DeleteBoardInput",
    "GetBoardInput",
    "ListBoardsInput",
    "ListMembersInput",
    # Output models
    "BoardOutput",
    "BoardListOutput",
    "MemberListOutput",
    "BoardValidationError",
    # Ports
    "BoardRepoPort",
    "CachePort",
    "ClockPort",
    "MemberRepoPort",
]
