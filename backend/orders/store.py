from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Protocol

from .models import Order


class OrderStore(Protocol):
    async def insert(
        self,
        user_id: str,
        caterer_id: str,
        event_details: dict[str, Any],
    ) -> Order:
        """Persist one order; the store assigns ``id`` and ``created_at``."""
        ...


class InMemoryOrderStore:
    """Process-local order table.  Each insert either fully lands or raises."""

    def __init__(self) -> None:
        self._orders: dict[str, Order] = {}

    async def insert(
        self,
        user_id: str,
        caterer_id: str,
        event_details: dict[str, Any],
    ) -> Order:
        order = Order(
            id=str(uuid.uuid4()),
            user_id=user_id,
            caterer_id=caterer_id,
            event_details=dict(event_details),
            created_at=datetime.now(timezone.utc),
        )
        self._orders[order.id] = order
        return order

    async def get(self, order_id: str) -> Order | None:
        return self._orders.get(order_id)

    def all(self) -> list[Order]:
        return list(self._orders.values())

    def clear(self) -> None:
        self._orders.clear()
