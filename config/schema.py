"""Custom OpenAPI schema hooks for drf-spectacular.

Every operation is tagged after the innermost collection in its path, so
``/api/v1/boards/{id}/lists/`` lands under "Lists" next to ``/api/v1/lists/``.
"""

from __future__ import annotations

from typing import Any

# Method names that contain operations in the OpenAPI path item
_HTTP_METHODS = {"get", "post", "put", "patch", "delete", "options", "head"}

API_PREFIX = "/api/v1/"

SEGMENT_TAGS = {
    "boards": "Boards",
    "members": "Boards",
    "lists": "Lists",
    "tasks": "Tasks",
    "users": "Users",
    "realtime": "Realtime",
}

ALL_TAGS = list(dict.fromkeys(SEGMENT_TAGS.values()))


def assign_group_tag(path: str) -> str | None:
    """Return the tag of the last known collection segment in ``path``."""
    if not path.startswith(API_PREFIX):
        return None
    tag = None
    for segment in path[len(API_PREFIX) :].split("/"):
        if segment.startswith("{"):
            continue
        tag = SEGMENT_TAGS.get(segment, tag)
    return tag


def group_tags(result: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
    """Post-processing hook forcing exactly one tag per operation."""
    paths = result.get("paths", {})
    for path, path_item in paths.items():  # type: ignore[assignment]
        tag = assign_group_tag(path)
        if not tag:
            continue
        for method, op_obj in path_item.items():
            if method.lower() not in _HTTP_METHODS:
                continue
            if not isinstance(op_obj, dict):
                continue
            op_obj["tags"] = [tag]

    existing = {t.get("name") for t in result.get("tags", [])}
    tag_list = result.setdefault("tags", [])
    for tag in ALL_TAGS:
        if tag not in existing:
            tag_list.append({"name": tag})
    return result
