from __future__ import annotations

from collections import Counter
from typing import Any

from .store import CATALOG_MISMATCH, GENERATION_FAILURE, ORDER, RECOMMENDATION


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    requests = [e for e in events if e["type"] == RECOMMENDATION]
    total = len(requests)

    # Average response time
    times = [r["response_time_ms"] for r in requests if "response_time_ms" in r]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    mode_counter: Counter[str] = Counter(r.get("mode", "single") for r in requests)

    returned = sum(r.get("returned", 0) for r in requests)
    dropped = sum(r.get("dropped", 0) for r in requests)
    generated = returned + dropped

    # Why candidates were dropped
    mismatch_counter: Counter[str] = Counter(
        e.get("reason", "unknown") for e in events if e["type"] == CATALOG_MISMATCH
    )

    failure_counter: Counter[str] = Counter(
        e.get("reason", "unknown") for e in events if e["type"] == GENERATION_FAILURE
    )

    order_counter: Counter[str] = Counter(
        e.get("state", "unknown") for e in events if e["type"] == ORDER
    )

    return {
        "total_requests": total,
        "avg_response_time_ms": avg_time,
        "requests_by_mode": dict(mode_counter),
        "candidates": {
            "generated": generated,
            "returned": returned,
            "dropped": dropped,
            "drop_rate": round(dropped / generated * 100, 1) if generated else 0.0,
        },
        "catalog_mismatches": dict(mismatch_counter),
        "generation_failures": dict(failure_counter),
        "orders": dict(order_counter),
    }
