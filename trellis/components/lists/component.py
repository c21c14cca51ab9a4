"""
Lists component - Shell Layer.
"""

from __future__ import annotations

from http import HTTPStatus

from trellis.domain.errors import DomainError

from ._impl import ListService
from .models import CreateListInput, DeleteListInput, GetListsInput, ListOutput

LIST_CREATED_MESSAGE = "List created successfully."
LIST_DELETED_MESSAGE = "List deleted successfully."


def run_create(inp: CreateListInput, service: ListService) -> ListOutput:
    try:
        board_list = service.create_list(inp.board_id, inp.actor, inp.title)
    except DomainError as e:
        return ListOutput(status_code=e.status_code, error=e.message)

    return ListOutput(
        success=True,
        status_code=HTTPStatus.CREATED,
        message=LIST_CREATED_MESSAGE,
        board_list=board_list,
    )


def run_get(inp: GetListsInput, service: ListService) -> ListOutput:
    try:
        lists = service.get_lists(inp.board_id)
    except DomainError as e:
        return ListOutput(status_code=e.status_code, error=e.message)

    return ListOutput(success=True, lists=lists)


def run_delete(inp: DeleteListInput, service: ListService) -> ListOutput:
    try:
        board_list = service.delete_list(inp.board_id, inp.list_id, inp.actor)
    except DomainError as e:
        return ListOutput(status_code=e.status_code, error=e.message)

    return ListOutput(success=True, message=LIST_DELETED_MESSAGE, board_list=board_list)


def run(
    inp: CreateListInput | GetListsInput | DeleteListInput,
    *,
    service: ListService,
) -> ListOutput:
    if isinstance(inp, CreateListInput):
        return run_create(inp, service)
    elif isinstance(inp, GetListsInput):
        return run_get(inp, service)
    elif isinstance(inp, DeleteListInput):
        return run_delete(inp, service)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
