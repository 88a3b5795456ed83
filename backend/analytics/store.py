from __future__ import annotations

import time
from collections import deque
from typing import Any

RECOMMENDATION = "recommendation"
CATALOG_MISMATCH = "catalog_mismatch"
GENERATION_FAILURE = "generation_failure"
ORDER = "order"

_MAX_EVENTS = 10_000

_events: deque[dict[str, Any]] = deque(maxlen=_MAX_EVENTS)


def record_event(event_type: str, data: dict[str, Any]) -> None:
    _events.append({
        "type": event_type,
        "timestamp": time.time(),
        **data,
    })


def get_events() -> list[dict[str, Any]]:
    return list(_events)


def clear_events() -> None:
    _events.clear()
