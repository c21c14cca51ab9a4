"""
Boards component - Shell Layer.
"""

from __future__ import annotations

from http import HTTPStatus

from trellis.domain.errors import DomainError

from ._impl import BoardService, InvalidBoardError
from .models import (
    BoardListOutput,
    BoardOutput,
    CreateBoardInput,
    DeleteBoardInput,
    GetBoardInput,
    ListBoardsInput,
    ListMembersInput,
    MemberListOutput,
    UpdateBoardInput,
)

BOARD_CREATED_MESSAGE = "Board created successfully."
BOARD_UPDATED_MESSAGE = "Board updated successfully."
BOARD_DELETED_MESSAGE = "Board deleted successfully."


def _failure(e: DomainError) -> BoardOutput:
    errors = e.errors if isinstance(e, InvalidBoardError) else []
    return BoardOutput(status_code=e.status_code, error=e.message, errors=errors)


def run_create(inp: CreateBoardInput, service: BoardService) -> BoardOutput:
    try:
        board = service.create_board(
            inp.actor,
            inp.title,
            description=inp.description,
            background_color=inp.background_color,
        )
    except DomainError as e:
        return _failure(e)

    return BoardOutput(
        success=True,
        status_code=HTTPStatus.CREATED,
        message=BOARD_CREATED_MESSAGE,
        board=board,
    )


def run_update(inp: UpdateBoardInput, service: BoardService) -> BoardOutput:
    try:
        board = service.update_board(
            inp.board_id,
            inp.actor,
            title=inp.title,
            description=inp.description,
            background_color=inp.background_color,
        )
    except DomainError as e:
        return _failure(e)

    return BoardOutput(success=True, message=BOARD_UPDATED_MESSAGE, board=board)


def run_delete(inp: DeleteBoardInput, service: BoardService) -> BoardOutput:
    try:
        board = service.delete_board(inp.board_id, inp.actor)
    except DomainError as e:
        return _failure(e)

    return BoardOutput(success=True, message=BOARD_DELETED_MESSAGE, board=board)


def run_get(inp: GetBoardInput, service: BoardService) -> BoardOutput:
    try:
        board = service.get_board_detail(inp.board_id)
    except DomainError as e:
        return _failure(e)

    return BoardOutput(success=True, board=board)


def run_list(inp: ListBoardsInput, service: BoardService) -> BoardListOutput:
    return BoardListOutput(boards=service.get_board_list())


def run_members(inp: ListMembersInput, service: BoardService) -> MemberListOutput:
    try:
        members = service.list_members(inp.board_id)
    except DomainError as e:
        return MemberListOutput(status_code=e.status_code, error=e.message)

    return MemberListOutput(success=True, members=members)


def run(
    inp: CreateBoardInput
    | UpdateBoardInput
    | DeleteBoardInput
    | GetBoardInput
    | ListBoardsInput
    | ListMembersInput,
    *,
    service: BoardService,
) -> BoardOutput | BoardListOutput | MemberListOutput:
    if isinstance(inp, CreateBoardInput):
        return run_create(inp, service)
    elif isinstance(inp, UpdateBoardInput):
        return run_update(inp, service)
    elif isinstance(inp, DeleteBoardInput):
        return run_delete(inp, service)
    elif isinstance(inp, GetBoardInput):
        return run_get(inp, service)
    elif isinstance(inp, ListBoardsInput):
        return run_list(inp, service)
    elif isinstance(inp, ListMembersInput):
        return run_members(inp, service)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
