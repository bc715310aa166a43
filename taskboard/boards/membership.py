"""Board membership facts.

A user is authorized on a board when they created it or are listed in its
members. The answer is always read fresh from the database: membership can
change at any time, so nothing here is cached.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

from taskboard.boards.models import Board

if TYPE_CHECKING:  # import for type checking only
    import uuid


class Membership(enum.Enum):
    OWNER = "owner"
    MEMBER = "member"
    NONE = "none"

    @property
    def is_authorized(self) -> bool:
        return self is not Membership.NONE


@dataclass(frozen=True)
class BoardAccess:
    board_id: uuid.UUID
    owner_id: int
    member_ids: frozenset[int]

    def role_of(self, user_id: int | None) -> Membership:
        if user_id is None:
            return Membership.NONE
        if int(user_id) == self.owner_id:
            return Membership.OWNER
        if int(user_id) in self.member_ids:
            return Membership.MEMBER
        return Membership.NONE


def access_for(board: Board) -> BoardAccess:
    return BoardAccess(
        board_id=board.pk,
        owner_id=int(board.created_by_id),
        member_ids=frozenset(board.members.values_list("id", flat=True)),
    )


def load_board_access(board_id: uuid.UUID) -> BoardAccess | None:
    """Return the owner/member snapshot for ``board_id`` or None if absent."""

    board = Board.objects.filter(pk=board_id).only("id", "created_by_id").first()
    if board is None:
        return None
    return access_for(board)
