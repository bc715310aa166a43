"""Permission classes for Boards API."""

from typing import Any

from rest_framework.permissions import BasePermission

from taskboard.boards.membership import Membership
from taskboard.boards.membership import access_for
from taskboard.boards.models import Board
from taskboard.boards.models import BoardList
from taskboard.boards.models import Task


def board_of(obj: Any) -> Board | None:
    if isinstance(obj, Board):
        return obj
    if isinstance(obj, BoardList):
        return obj.board
    if isinstance(obj, Task):
        return obj.board_list.board
    return None


def _role(request, obj: Any) -> Membership:
    board = board_of(obj)
    user = getattr(request, "user", None)
    if board is None or not (user and getattr(user, "is_authenticated", False)):
        return Membership.NONE
    return access_for(board).role_of(user.pk)


class IsBoardMember(BasePermission):
    """Board owner or any listed member."""

    message = "Access denied"

    def has_object_permission(self, request, view, obj) -> bool:
        return _role(request, obj).is_authorized


class IsBoardOwner(BasePermission):
    message = "Access denied"

    def has_object_permission(self, request, view, obj) -> bool:
        return _role(request, obj) is Membership.OWNER
