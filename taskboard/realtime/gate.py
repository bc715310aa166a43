"""Room authorization for board rooms and board channels.

Both transports ask the same three questions, in order, on every request:

1. is the board id well formed?          -> InvalidIdError
2. does the board exist?                 -> NotFoundError
3. is the user its owner or a member?    -> ForbiddenError

Nothing is remembered between calls. A connection that joined a board
earlier gets no credit for it once its membership is revoked.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .exceptions import ForbiddenError
from .exceptions import InvalidIdError
from .exceptions import NotFoundError
from .membership import MembershipOracle
from .rooms import parse_board_id
from .rooms import room_for_board

if TYPE_CHECKING:  # import for type checking only
    import uuid

    from taskboard.boards.membership import BoardAccess

logger = logging.getLogger(__name__)


class RoomAuthorizationGate:
    def __init__(self, oracle: MembershipOracle | None = None) -> None:
        self.oracle = oracle or MembershipOracle()

    async def authorize(self, user_id: int, board_id_raw: object) -> str:
        """Return the room for ``board_id_raw`` or raise a RoomRejectedError."""

        board_id = self._parse(user_id, board_id_raw)
        access = await self.oracle.alookup(board_id)
        return self._decide(user_id, board_id, access)

    def authorize_sync(self, user_id: int, board_id_raw: object) -> str:
        board_id = self._parse(user_id, board_id_raw)
        access = self.oracle.lookup(board_id)
        return self._decide(user_id, board_id, access)

    def _parse(self, user_id: int, board_id_raw: object) -> uuid.UUID:
        board_id = parse_board_id(board_id_raw)
        if board_id is None:
            logger.warning(
                "Rejected user %s: invalid board id %r", user_id, board_id_raw
            )
            msg = "Invalid board ID"
            raise InvalidIdError(msg)
        return board_id

    def _decide(
        self,
        user_id: int,
        board_id: uuid.UUID,
        access: BoardAccess | None,
    ) -> str:
        if access is None:
            logger.warning("Rejected user %s: board %s not found", user_id, board_id)
            msg = "Board not found"
            raise NotFoundError(msg)
        if not access.role_of(user_id).is_authorized:
            logger.warning(
                "Access denied: user %s attempted to join board %s", user_id, board_id
            )
            msg = "Access denied: You are not a member of this board"
            raise ForbiddenError(msg)
        return room_for_board(board_id)
