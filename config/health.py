from __future__ import annotations

from typing import Any

from django.conf import settings
from django.db import connection
from django.http import JsonResponse

from taskboard.realtime.exceptions import UnavailableError
from taskboard.realtime.hub import current_hub


def check_db() -> dict[str, Any]:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1;")
            cursor.fetchone()
    except Exception as exc:  # noqa: BLE001 - health must degrade, not crash
        return {"ok": False, "error": str(exc)}
    else:
        return {"ok": True}


def check_realtime() -> dict[str, Any]:
    if not settings.REALTIME_ENABLED:
        return {"ok": True, "enabled": False}
    try:
        hub = current_hub()
    except UnavailableError as exc:
        return {"ok": False, "error": str(exc)}
    return {
        "ok": True,
        "connections": len(hub.registry),
        "rooms": len(hub.registry.rooms()),
        "pusher": hub.channels is not None,
    }


def health(request):
    db = check_db()
    realtime = check_realtime()
    components = {"db": db, "realtime": realtime}

    all_ok = all(v.get("ok", False) for v in components.values())
    some_ok = any(v.get("ok", False) for v in components.values())

    status = "ok" if all_ok else ("degraded" if some_ok else "down")
    http_status = 200 if all_ok else 503

    return JsonResponse(
        {"status": status, "components": components},
        status=http_status,
    )
