"""
Invitation token generation.

Tokens are random UUID4 strings: 122 random bits, 36 URL-safe characters,
carrying no board or user information. The generator cannot guarantee global
uniqueness on its own, so callers pass a storage lookup and still rely on the
unique index on invitations.token when inserting.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from uuid import uuid4

logger = logging.getLogger(__name__)

DEFAULT_COLLISION_WARN_THRESHOLD = 3


def _uuid4_token() -> str:
    return str(uuid4())


class TokenGenerator:
    def __init__(
        self,
        factory: Callable[[], str] | None = None,
        collision_warn_threshold: int = DEFAULT_COLLISION_WARN_THRESHOLD,
    ) -> None:
        self._factory = factory or _uuid4_token
        self._warn_threshold = collision_warn_threshold

    def issue(self) -> str:
        return self._factory()

    def issue_unique(self, exists: Callable[[str], bool]) -> str:
        """
        Draw tokens until `exists` reports one unused.

        No retry cap. Repeated collisions mean a broken random source and
        are logged once past the warn threshold.
        """
        collisions = 0
        while True:
            token = self.issue()
            if not exists(token):
                return token

            collisions += 1
            logger.debug("Invitation token collision #%d", collisions)
            if collisions == self._warn_threshold + 1:
                logger.warning(
                    "Invitation token drew %d collisions in a row; check the random source",
                    collisions,
                )
