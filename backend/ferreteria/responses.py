# Overview: Shared JSON payload shapes for API responses.

from __future__ import annotations

from typing import Any, Iterable

LOADED = "loaded"
EMPTY = "empty"


def list_payload(rows: Iterable[dict], **extra: Any) -> dict:
    """
    Wrap serialized rows for a list screen.

    `state` lets the client tell an empty table apart from one that failed to
    load (failures never reach here; they come back as an error body).
    """
    items = list(rows)
    payload = {
        "items": items,
        "count": len(items),
        "state": LOADED if items else EMPTY,
    }
    payload.update(extra)
    return payload
