from __future__ import annotations

import logging

from ..analytics.store import ORDER, record_event
from ..notifications.sms import SmsNotifier
from .models import (
    FulfillmentOutcome,
    NotificationAttempt,
    OrderRequest,
    OrderState,
)
from .store import OrderStore

logger = logging.getLogger(__name__)

CONFIRMATION_TEMPLATE = (
    "Sharp sharp! Your catering order for {event_name} is confirmed with Kai. "
    "We’ll keep you posted! \U0001F356"
)

PERSIST_FAILED_MESSAGE = "Failed to place order."
NOTIFY_FAILED_MESSAGE = "Order placed, but the SMS confirmation could not be sent."

_TRANSITIONS: dict[OrderState, set[OrderState]] = {
    OrderState.requested: {OrderState.persisted, OrderState.persist_failed},
    OrderState.persisted: {OrderState.notified, OrderState.notify_failed},
    OrderState.notified: set(),
    OrderState.notify_failed: set(),
    OrderState.persist_failed: set(),
}


def confirmation_message(event_name: str) -> str:
    return CONFIRMATION_TEMPLATE.format(event_name=event_name)


def _advance(current: OrderState, new: OrderState, request: OrderRequest) -> OrderState:
    if new not in _TRANSITIONS[current]:
        raise RuntimeError(f"Illegal order transition {current.value} -> {new.value}")
    logger.info(
        "Order for user %s / caterer %s: %s -> %s",
        request.user_id, request.caterer_id, current.value, new.value,
    )
    return new


def _finish(outcome: FulfillmentOutcome) -> FulfillmentOutcome:
    record_event(ORDER, {
        "state": outcome.state.value,
        "order_id": outcome.order.id if outcome.order else None,
    })
    return outcome


async def fulfill_order(
    request: OrderRequest,
    store: OrderStore,
    notifier: SmsNotifier,
) -> FulfillmentOutcome:
    """
    Persist the order, then attempt one SMS confirmation.

    Terminal states:
    - ``notified``: order stored and confirmation sent.
    - ``notify_failed``: order stored, SMS failed.  The order is kept and
      the SMS is not retried.
    - ``persist_failed``: nothing stored, no SMS attempted.

    The caterer id is taken as given; membership in the current catalog is
    not re-checked here.
    """
    state = OrderState.requested

    try:
        order = await store.insert(
            request.user_id,
            request.caterer_id,
            request.event_details.model_dump(),
        )
    except Exception:
        logger.error("Persisting order failed", exc_info=True)
        state = _advance(state, OrderState.persist_failed, request)
        return _finish(FulfillmentOutcome(state=state, error=PERSIST_FAILED_MESSAGE))

    state = _advance(state, OrderState.persisted, request)

    body = confirmation_message(request.event_details.event_name)
    try:
        await notifier.send(request.phone_number, body)
    except Exception as exc:
        logger.warning("SMS confirmation for order %s failed", order.id, exc_info=True)
        state = _advance(state, OrderState.notify_failed, request)
        return _finish(FulfillmentOutcome(
            state=state,
            order=order,
            notification=NotificationAttempt(
                to=request.phone_number, body=body, sent=False, error=str(exc),
            ),
            error=NOTIFY_FAILED_MESSAGE,
        ))

    state = _advance(state, OrderState.notified, request)
    return _finish(FulfillmentOutcome(
        state=state,
        order=order,
        notification=NotificationAttempt(to=request.phone_number, body=body, sent=True),
    ))
