from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from trellis.api.deps import get_current_user, get_list_service
from trellis.api.schemas import ApiResponse, ListCreateRequest, ListResponse, dump
from trellis.components.lists import (
    CreateListInput,
    DeleteListInput,
    GetListsInput,
    ListOutput,
    ListService,
    run_create,
    run_delete,
    run_get,
)
from trellis.domain.entities import User

# Mounted under /api/boards
router = APIRouter()


def _raise_on_failure(result: ListOutput) -> None:
    if not result.success:
        raise HTTPException(status_code=result.status_code, detail=result.error)


@router.post(
    "/{board_id}/lists",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_list(
    board_id: UUID,
    req: ListCreateRequest,
    current_user: User = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
) -> ApiResponse:
    result = run_create(CreateListInput(board_id=board_id, title=req.title, actor=current_user), service)
    _raise_on_failure(result)
    assert result.board_list is not None

    return ApiResponse(
        status=result.status_code,
        message=result.message,
        data=dump(ListResponse.from_list(result.board_list)),
    )


@router.get("/{board_id}/lists", response_model=ApiResponse)
def get_lists(
    board_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
) -> ApiResponse:
    """Active lists of a board, ordered by position."""
    result = run_get(GetListsInput(board_id=board_id), service)
    _raise_on_failure(result)

    return ApiResponse(
        status=result.status_code,
        data=[dump(ListResponse.from_list(lst)) for lst in result.lists],
    )


@router.delete("/{board_id}/lists/{list_id}", response_model=ApiResponse)
def delete_list(
    board_id: UUID,
    list_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
) -> ApiResponse:
    inp = DeleteListInput(board_id=board_id, list_id=list_id, actor=current_user)
    result = run_delete(inp, service)
    _raise_on_failure(result)

    return ApiResponse(status=result.status_code, message=result.message)
