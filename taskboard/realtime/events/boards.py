from __future__ import annotations

import logging

from django.db.transaction import on_commit

from taskboard.realtime.exceptions import UnavailableError
from taskboard.realtime.hub import current_hub

from .domain import DomainEvent

logger = logging.getLogger(__name__)


def _dispatch(event: DomainEvent) -> None:
    try:
        hub = current_hub()
    except UnavailableError:
        logger.debug(
            "Realtime unavailable; dropping %s for %s", event.name, event.board_id
        )
        return
    hub.dispatcher.emit(event.board_id, event)


def _revoke(board_id, user_id: int) -> None:
    try:
        hub = current_hub()
    except UnavailableError:
        return
    hub.dispatcher.revoke(board_id, user_id)


def publish_board_event(event: DomainEvent) -> None:
    """Relay ``event`` to the board's room once the current transaction commits.

    Safe to call from sync Django code (views, services). If the realtime hub
    is not running, or nobody joined the room, this is a no-op.
    """

    on_commit(lambda: _dispatch(event))


def publish_list_created(board_list, data) -> None:
    publish_board_event(DomainEvent.list_created(board_list.board_id, data))


def publish_list_updated(board_list, data) -> None:
    publish_board_event(DomainEvent.list_updated(board_list.board_id, data))


def publish_list_deleted(board_id, list_id) -> None:
    publish_board_event(DomainEvent.list_deleted(board_id, list_id))


def publish_task_created(board_id, data) -> None:
    publish_board_event(DomainEvent.task_created(board_id, data))


def publish_task_updated(board_id, data) -> None:
    publish_board_event(DomainEvent.task_updated(board_id, data))


def publish_task_deleted(board_id, task_id) -> None:
    publish_board_event(DomainEvent.task_deleted(board_id, task_id))


def publish_board_updated(board, data) -> None:
    publish_board_event(DomainEvent.board_updated(board.pk, data))


def publish_member_added(board, user_id: int) -> None:
    publish_board_event(DomainEvent.board_member_added(board.pk, user_id))


def publish_member_removed(board, user_id: int) -> None:
    board_id = board.pk
    publish_board_event(DomainEvent.board_member_removed(board_id, user_id))
    # Runs after the event above, so the removed user still receives it.
    on_commit(lambda: _revoke(board_id, user_id))
