from __future__ import annotations

from typing import TYPE_CHECKING

from channels.db import database_sync_to_async

from taskboard.boards.membership import BoardAccess
from taskboard.boards.membership import load_board_access

if TYPE_CHECKING:  # import for type checking only
    import uuid


class MembershipOracle:
    """Answers who owns a board and who belongs to it, straight from the DB."""

    def lookup(self, board_id: uuid.UUID) -> BoardAccess | None:
        return load_board_access(board_id)

    @database_sync_to_async
    def alookup(self, board_id: uuid.UUID) -> BoardAccess | None:
        return self.lookup(board_id)
