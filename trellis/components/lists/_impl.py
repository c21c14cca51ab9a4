"""
ListService - ordered lists inside a board.
"""

from __future__ import annotations

import logging
from uuid import UUID

from trellis.components.membership import MembershipGuard
from trellis.domain.entities import Board, BoardList, User
from trellis.domain.errors import DomainError, NotFoundError
from trellis.rules.models import ListRules

from .ports import BoardRepoPort, ClockPort, ListRepoPort

logger = logging.getLogger(__name__)

BOARD_NOT_FOUND_MESSAGE = "board not found"
LIST_NOT_FOUND_MESSAGE = "list not found"


class InvalidListError(DomainError):
    """List title failed validation."""


class ListService:
    def __init__(
        self,
        list_repo: ListRepoPort,
        board_repo: BoardRepoPort,
        guard: MembershipGuard,
        clock: ClockPort,
        rules: ListRules,
    ) -> None:
        self._lists = list_repo
        self._boards = board_repo
        self._guard = guard
        self._clock = clock
        self._rules = rules

    def _get_active_board(self, board_id: UUID) -> Board:
        board = self._boards.get_by_id(board_id)
        if board is None or not board.is_active:
            raise NotFoundError(BOARD_NOT_FOUND_MESSAGE)
        return board

    def create_list(self, board_id: UUID, actor: User, title: str) -> BoardList:
        board = self._get_active_board(board_id)
        self._guard.ensure_member(board.id, actor.id)

        title = title.strip()
        if not self._rules.title.min <= len(title) <= self._rules.title.max:
            raise InvalidListError(
                f"Title must be {self._rules.title.min}-{self._rules.title.max} characters"
            )

        now = self._clock.now_utc()
        board_list = BoardList(
            board_id=board.id,
            owner_user_id=actor.id,
            title=title,
            position=self._lists.next_position(board.id),
            created_at=now,
            updated_at=now,
        )
        board_list = self._lists.save(board_list)
        logger.info("List %s created on board %s at position %d", board_list.id, board.id, board_list.position)
        return board_list

    def get_lists(self, board_id: UUID) -> list[BoardList]:
        board = self._get_active_board(board_id)
        return self._lists.list_active_by_board(board.id)

    def delete_list(self, board_id: UUID, list_id: UUID, actor: User) -> BoardList:
        board = self._get_active_board(board_id)
        self._guard.ensure_member(board.id, actor.id)

        board_list = self._lists.get_by_id(list_id)
        if board_list is None or board_list.board_id != board.id or board_list.lifecycle != "active":
            raise NotFoundError(LIST_NOT_FOUND_MESSAGE)

        deleted = self._lists.save(
            board_list.model_copy(update={"lifecycle": "deleted", "updated_at": self._clock.now_utc()})
        )
        logger.info("List %s deleted from board %s", list_id, board.id)
        return deleted
