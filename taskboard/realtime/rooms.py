from __future__ import annotations

import re
import uuid

# Board ids are UUIDs: canonical hyphenated form or the bare 32-char hex.
_BOARD_ID_RE = re.compile(
    r"^(?:[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}|[0-9a-f]{32})$",
    re.IGNORECASE,
)

CHANNEL_PREFIX = "private-board-"


def parse_board_id(raw: object) -> uuid.UUID | None:
    if isinstance(raw, uuid.UUID):
        return raw
    if not isinstance(raw, str) or not _BOARD_ID_RE.match(raw):
        return None
    return uuid.UUID(raw)


def _canonical(board_id: uuid.UUID | str) -> uuid.UUID:
    parsed = parse_board_id(board_id)
    if parsed is None:
        msg = f"Invalid board id: {board_id!r}"
        raise ValueError(msg)
    return parsed


def room_for_board(board_id: uuid.UUID | str) -> str:
    """Room name for a board; accepts any id form ``parse_board_id`` accepts."""

    return f"board_{_canonical(board_id)}"


def channel_for_board(board_id: uuid.UUID | str) -> str:
    return f"{CHANNEL_PREFIX}{_canonical(board_id)}"


def board_id_from_channel(channel_name: str) -> str | None:
    """Extract the raw board id from ``private-board-<id>``; None if no match."""

    if not isinstance(channel_name, str) or not channel_name.startswith(CHANNEL_PREFIX):
        return None
    raw = channel_name[len(CHANNEL_PREFIX) :]
    return raw or None
