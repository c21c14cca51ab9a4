"""
BoardService - board lifecycle and the cached board listing.

The listing is a read-through cache under one aggregate key: a miss loads the
active boards newest first and stores the snapshot. Every mutation that can
change the listing (create, update, delete) evicts the key after the storage
write and before returning, so the next read rebuilds from storage. A reader
that loaded before such an evict cannot store its snapshot: the cache refuses
values tagged with a generation older than the last evict.
"""

from __future__ import annotations

import logging
import re
from uuid import UUID

from trellis.components.membership import MembershipGuard
from trellis.domain.entities import Board, BoardSummary, Member, User
from trellis.domain.errors import DomainError, DuplicateTitleError, ForbiddenError, NotFoundError
from trellis.rules.models import BoardRules

from .models import BoardValidationError
from .ports import BoardRepoPort, CachePort, ClockPort

logger = logging.getLogger(__name__)

DEFAULT_BOARD_LIST_KEY = "boards"
BOARD_NOT_FOUND_MESSAGE = "board not found"
NOT_OWNER_MESSAGE = "only the board owner can delete it"

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


class InvalidBoardError(DomainError):
    """Board fields failed validation."""

    def __init__(self, errors: list[BoardValidationError]) -> None:
        self.errors = errors
        super().__init__("; ".join(e.message for e in errors))


def validate_board_fields(
    rules: BoardRules,
    *,
    title: str | None = None,
    description: str | None = None,
    background_color: str | None = None,
) -> list[BoardValidationError]:
    """Validate whichever fields are given. Returns an empty list when valid."""
    errors: list[BoardValidationError] = []

    if title is not None:
        length = len(title.strip())
        if length < rules.title.min or length > rules.title.max:
            errors.append(
                BoardValidationError(
                    code="title_length",
                    message=f"Title must be {rules.title.min}-{rules.title.max} characters",
                    field_name="title",
                )
            )

    if description is not None and len(description) > rules.description_max:
        errors.append(
            BoardValidationError(
                code="description_length",
                message=f"Description exceeds {rules.description_max} characters",
                field_name="description",
            )
        )

    if background_color is not None and not _HEX_COLOR.match(background_color):
        errors.append(
            BoardValidationError(
                code="background_color",
                message="Background color must look like #RRGGBB",
                field_name="background_color",
            )
        )

    return errors


class BoardService:
    def __init__(
        self,
        board_repo: BoardRepoPort,
        guard: MembershipGuard,
        cache: CachePort,
        clock: ClockPort,
        rules: BoardRules,
        board_list_key: str = DEFAULT_BOARD_LIST_KEY,
    ) -> None:
        self._repo = board_repo
        self._guard = guard
        self._cache = cache
        self._clock = clock
        self._rules = rules
        self._key = board_list_key

    # --- Listing ---

    def get_board_list(self) -> list[BoardSummary]:
        cached = self._cache.get(self._key)
        if cached is not None:
            logger.debug("Board list cache hit")
            return list(cached)

        logger.debug("Board list cache miss")
        # Taken before loading; an evict during the load voids this snapshot
        generation = self._cache.generation(self._key)
        summaries = [BoardSummary.from_board(b) for b in self._repo.list_active()]
        self._cache.set(self._key, tuple(summaries), generation=generation)
        return summaries

    def _invalidate(self) -> None:
        self._cache.evict(self._key)

    # --- Lookups ---

    def get_board_detail(self, board_id: UUID) -> Board:
        board = self._repo.get_by_id(board_id)
        if board is None or not board.is_active:
            raise NotFoundError(BOARD_NOT_FOUND_MESSAGE)
        return board

    def list_members(self, board_id: UUID) -> list[Member]:
        board = self.get_board_detail(board_id)
        return self._guard.list_members(board.id)

    # --- Mutations ---

    def _ensure_title_free(self, title: str, board_id: UUID | None = None) -> None:
        holder = self._repo.get_active_by_title(title)
        if holder is not None and holder.id != board_id:
            raise DuplicateTitleError()

    def create_board(
        self,
        actor: User,
        title: str,
        description: str = "",
        background_color: str | None = None,
    ) -> Board:
        errors = validate_board_fields(
            self._rules,
            title=title,
            description=description,
            background_color=background_color,
        )
        if errors:
            raise InvalidBoardError(errors)

        title = title.strip()
        self._ensure_title_free(title)

        now = self._clock.now_utc()
        board = Board(
            owner_user_id=actor.id,
            title=title,
            description=description,
            background_color=background_color or self._rules.default_background_color,
            created_at=now,
            updated_at=now,
        )
        board = self._repo.save(board)
        try:
            self._guard.admit(board.id, actor.id, role="owner")
        except Exception:
            # An active board never exists without its owner membership
            logger.exception("Owner admission failed for board %s; retiring it", board.id)
            board = self._repo.save(board.model_copy(update={"lifecycle": "deleted"}))
            raise
        finally:
            self._invalidate()

        logger.info("Board %s created by user %s", board.id, actor.id)
        return board

    def update_board(
        self,
        board_id: UUID,
        actor: User,
        *,
        title: str | None = None,
        description: str | None = None,
        background_color: str | None = None,
    ) -> Board:
        board = self.get_board_detail(board_id)
        self._guard.ensure_member(board.id, actor.id)

        errors = validate_board_fields(
            self._rules,
            title=title,
            description=description,
            background_color=background_color,
        )
        if errors:
            raise InvalidBoardError(errors)

        changes: dict[str, object] = {}
        if title is not None and title.strip() != board.title:
            changes["title"] = title.strip()
            self._ensure_title_free(changes["title"], board.id)
        if description is not None:
            changes["description"] = description
        if background_color is not None:
            changes["background_color"] = background_color

        if not changes:
            return board

        changes["updated_at"] = self._clock.now_utc()
        updated = self._repo.save(board.model_copy(update=changes))
        self._invalidate()

        logger.info("Board %s updated by user %s", board.id, actor.id)
        return updated

    def delete_board(self, board_id: UUID, actor: User) -> Board:
        board = self.get_board_detail(board_id)
        if board.owner_user_id != actor.id:
            raise ForbiddenError(NOT_OWNER_MESSAGE)

        deleted = self._repo.save(
            board.model_copy(update={"lifecycle": "deleted", "updated_at": self._clock.now_utc()})
        )
        self._invalidate()

        logger.info("Board %s deleted by user %s", board.id, actor.id)
        return deleted
