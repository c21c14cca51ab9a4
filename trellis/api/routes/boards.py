from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from trellis.api.deps import get_board_service, get_current_user
from trellis.api.schemas import (
    ApiResponse,
    BoardCreateRequest,
    BoardResponse,
    BoardUpdateRequest,
    MemberResponse,
    dump,
)
from trellis.components.boards import (
    BoardOutput,
    BoardService,
    CreateBoardInput,
    DeleteBoardInput,
    GetBoardInput,
    ListBoardsInput,
    ListMembersInput,
    UpdateBoardInput,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_members,
    run_update,
)
from trellis.domain.entities import User

router = APIRouter()


def _board_response(result: BoardOutput) -> ApiResponse:
    if not result.success or result.board is None:
        detail: object = result.error
        if result.errors:
            detail = [{"code": e.code, "field": e.field_name, "message": e.message} for e in result.errors]
        raise HTTPException(status_code=result.status_code, detail=detail)

    return ApiResponse(
        status=result.status_code,
        message=result.message,
        data=dump(BoardResponse.from_board(result.board)),
    )


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
def create_board(
    req: BoardCreateRequest,
    current_user: User = Depends(get_current_user),
    service: BoardService = Depends(get_board_service),
) -> ApiResponse:
    """Create a board owned by the current user."""
    inp = CreateBoardInput(
        title=req.title,
        actor=current_user,
        description=req.description,
        background_color=req.background_color,
    )
    return _board_response(run_create(inp, service))


@router.get("", response_model=ApiResponse)
def get_board_list(
    current_user: User = Depends(get_current_user),
    service: BoardService = Depends(get_board_service),
) -> ApiResponse:
    """List active boards, newest first."""
    result = run_list(ListBoardsInput(), service)
    return ApiResponse(status=result.status_code, data=[dump(b) for b in result.boards])


@router.get("/{board_id}", response_model=ApiResponse)
def get_board_detail(
    board_id: UUID,
    current_user: User = Depends(get_current_user),
    service: BoardService = Depends(get_board_service),
) -> ApiResponse:
    return _board_response(run_get(GetBoardInput(board_id=board_id), service))


@router.put("/{board_id}", response_model=ApiResponse)
def update_board(
    board_id: UUID,
    req: BoardUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: BoardService = Depends(get_board_service),
) -> ApiResponse:
    """Update board fields (members only)."""
    inp = UpdateBoardInput(
        board_id=board_id,
        actor=current_user,
        title=req.title,
        description=req.description,
        background_color=req.background_color,
    )
    return _board_response(run_update(inp, service))


@router.delete("/{board_id}", response_model=ApiResponse)
def delete_board(
    board_id: UUID,
    current_user: User = Depends(get_current_user),
    service: BoardService = Depends(get_board_service),
) -> ApiResponse:
    """Soft delete a board (owner only)."""
    inp = DeleteBoardInput(board_id=board_id, actor=current_user)
    return _board_response(run_delete(inp, service))


@router.get("/{board_id}/members", response_model=ApiResponse)
def list_members(
    board_id: UUID,
    current_user: User = Depends(get_current_user),
    service: BoardService = Depends(get_board_service),
) -> ApiResponse:
    result = run_members(ListMembersInput(board_id=board_id), service)
    if not result.success:
        raise HTTPException(status_code=result.status_code, detail=result.error)

    return ApiResponse(
        status=result.status_code,
        data=[dump(MemberResponse.from_member(m)) for m in result.members],
    )
