import pytest

from backend.errors import NotificationError, OrderStoreError
from backend.orders.fulfillment import confirmation_message, fulfill_order
from backend.orders.models import OrderRequest, OrderState
from backend.orders.store import InMemoryOrderStore


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str]] = []

    async def send(self, to: str, body: str) -> None:
        self.sent.append((to, body))
        if self.fail:
            raise NotificationError("carrier rejected the message")


class FailingOrderStore:
    async def insert(self, user_id, caterer_id, event_details):
        raise OrderStoreError("insert timed out")


def _request(**overrides) -> OrderRequest:
    data = {
        "userId": "user-1",
        "catererId": "c1",
        "eventDetails": {"event_name": "Thabo's 30th", "guests": 20},
        "phoneNumber": "+27821234567",
    }
    data.update(overrides)
    return OrderRequest.model_validate(data)


@pytest.mark.asyncio
async def test_persist_then_notify():
    store = InMemoryOrderStore()
    notifier = RecordingNotifier()

    outcome = await fulfill_order(_request(), store, notifier)

    assert outcome.state is OrderState.notified
    assert outcome.order is not None
    assert outcome.order.id
    assert outcome.order.created_at is not None
    assert outcome.notification.sent is True
    assert store.all() == [outcome.order]
    assert notifier.sent == [("+27821234567", confirmation_message("Thabo's 30th"))]


def test_confirmation_template():
    message = confirmation_message("Lerato's wedding")
    assert message.startswith("Sharp sharp! Your catering order for Lerato's wedding is confirmed with Kai.")


@pytest.mark.asyncio
async def test_persist_failure_sends_nothing():
    notifier = RecordingNotifier()

    outcome = await fulfill_order(_request(), FailingOrderStore(), notifier)

    assert outcome.state is OrderState.persist_failed
    assert outcome.order is None
    assert outcome.notification is None
    assert outcome.error
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_notify_failure_keeps_order():
    store = InMemoryOrderStore()
    notifier = RecordingNotifier(fail=True)

    outcome = await fulfill_order(_request(), store, notifier)

    assert outcome.state is OrderState.notify_failed
    assert outcome.order is not None
    assert await store.get(outcome.order.id) == outcome.order
    assert outcome.notification.sent is False
    assert "carrier rejected" in outcome.notification.error
    # exactly one attempt, no retry
    assert len(notifier.sent) == 1


@pytest.mark.asyncio
async def test_unknown_caterer_still_persisted():
    # Fulfillment trusts the caller's validated selection and does not
    # re-check the catalog.
    store = InMemoryOrderStore()

    outcome = await fulfill_order(_request(catererId="never-recommended"), store, RecordingNotifier())

    assert outcome.state is OrderState.notified
    assert outcome.order.caterer_id == "never-recommended"


@pytest.mark.asyncio
async def test_extra_event_details_preserved():
    store = InMemoryOrderStore()

    outcome = await fulfill_order(_request(), store, RecordingNotifier())

    assert outcome.order.event_details == {"event_name": "Thabo's 30th", "guests": 20}


@pytest.mark.asyncio
async def test_each_order_gets_its_own_id():
    store = InMemoryOrderStore()
    notifier = RecordingNotifier()

    first = await fulfill_order(_request(), store, notifier)
    second = await fulfill_order(_request(), store, notifier)

    assert first.order.id != second.order.id
    assert len(store.all()) == 2
