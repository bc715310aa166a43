"""Position bookkeeping for lists and tasks.

Positions are dense integers (0..n-1). Every move rewrites the position of
each sibling, so two clients reordering the same board at once are not
serialized against each other; the last write wins.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Max

from taskboard.boards.models import BoardList
from taskboard.boards.models import Task

logger = logging.getLogger(__name__)


def next_list_position(board_id) -> int:
    top = BoardList.objects.filter(board_id=board_id).aggregate(top=Max("position"))
    return 0 if top["top"] is None else top["top"] + 1


def next_task_position(board_list_id) -> int:
    top = Task.objects.filter(board_list_id=board_list_id).aggregate(
        top=Max("position")
    )
    return 0 if top["top"] is None else top["top"] + 1


def _insert_at(items: list, item, position: int) -> list:
    siblings = [i for i in items if i.pk != item.pk]
    # Out-of-range targets clamp to either end.
    index = max(0, min(position, len(siblings)))
    siblings.insert(index, item)
    return siblings


@transaction.atomic
def move_list(board_list: BoardList, position: int) -> BoardList:
    lists = list(
        BoardList.objects.select_for_update().filter(board_id=board_list.board_id)
    )
    ordered = _insert_at(lists, board_list, position)
    for index, item in enumerate(ordered):
        if item.position != index:
            BoardList.objects.filter(pk=item.pk).update(position=index)
    logger.info(
        "Moved list %s to position %s on board %s",
        board_list.pk,
        position,
        board_list.board_id,
    )
    board_list.refresh_from_db()
    return board_list


@transaction.atomic
def move_task(task: Task, position: int, target_list: BoardList | None = None) -> Task:
    """Move ``task`` to ``position`` inside ``target_list`` (default: its own).

    The source list keeps its gaps closed too, so both lists stay dense.
    """

    source_list_id = task.board_list_id
    target = target_list or task.board_list
    tasks = list(Task.objects.select_for_update().filter(board_list_id=target.pk))
    ordered = _insert_at(tasks, task, position)
    for index, item in enumerate(ordered):
        Task.objects.filter(pk=item.pk).update(position=index, board_list_id=target.pk)

    if source_list_id != target.pk:
        remaining = Task.objects.filter(board_list_id=source_list_id).order_by(
            "position", "created_at"
        )
        for index, item in enumerate(remaining):
            if item.position != index:
                Task.objects.filter(pk=item.pk).update(position=index)
        logger.info(
            "Moved task %s from list %s to list %s", task.pk, source_list_id, target.pk
        )

    task.refresh_from_db()
    return task
