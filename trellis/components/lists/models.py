from dataclasses import dataclass, field
from http import HTTPStatus
from uuid import UUID

from trellis.domain.entities import BoardList, User


@dataclass(frozen=True)
class CreateListInput:
    board_id: UUID
    title: str
    actor: User


@dataclass(frozen=True)
class GetListsInput:
    board_id: UUID


@dataclass(frozen=True)
class DeleteListInput:
    board_id: UUID
    list_id: UUID
    actor: User


@dataclass
class ListOutput:
    success: bool = False
    status_code: int = HTTPStatus.OK
    message: str = ""
    error: str | None = None
    board_list: BoardList | None = None
    lists: list[BoardList] = field(default_factory=list)
