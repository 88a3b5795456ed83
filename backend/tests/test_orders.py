from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from backend.app import app
from backend.dependencies import get_notifier, get_order_store
from backend.errors import NotificationError, OrderStoreError
from backend.orders.store import InMemoryOrderStore

ORDER_BODY = {
    "userId": "user-42",
    "catererId": "c1",
    "eventDetails": {"event_name": "Year-end braai", "guests": 20},
    "phoneNumber": "+27821234567",
}


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str]] = []

    async def send(self, to: str, body: str) -> None:
        self.sent.append((to, body))
        if self.fail:
            raise NotificationError("SMS provider unreachable")


class FailingOrderStore:
    async def insert(self, user_id, caterer_id, event_details):
        raise OrderStoreError("duplicate key value violates unique constraint")


@pytest.fixture
def store():
    return InMemoryOrderStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(store, notifier):
    app.dependency_overrides[get_order_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_order_confirmed(client, store, notifier):
    resp = client.post("/api/order", json=ORDER_BODY)

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "confirmed"
    order = body["order"]
    assert order["id"]
    assert order["user_id"] == "user-42"
    assert order["caterer_id"] == "c1"
    assert order["event_details"]["event_name"] == "Year-end braai"
    assert order["created_at"]
    assert len(store.all()) == 1
    assert notifier.sent[0][0] == "+27821234567"
    assert "Year-end braai" in notifier.sent[0][1]


def test_notification_failure_is_partial_with_order_id(client, store):
    app.dependency_overrides[get_notifier] = lambda: RecordingNotifier(fail=True)

    resp = client.post("/api/order", json=ORDER_BODY)

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "partial"
    assert body["order"]["id"] == store.all()[0].id
    assert body["notification"]["sent"] is False
    assert body["error"]


def test_persist_failure_sends_no_sms(client, notifier):
    app.dependency_overrides[get_order_store] = lambda: FailingOrderStore()

    resp = client.post("/api/order", json=ORDER_BODY)

    assert resp.status_code == 500
    body = resp.json()
    assert body["status"] == "persist_failed"
    assert body["error"] == "Failed to place order."
    assert "duplicate key" not in resp.text
    assert notifier.sent == []


def test_unrecommended_caterer_still_persisted(client, store):
    resp = client.post("/api/order", json=dict(ORDER_BODY, catererId="not-in-any-recommendation"))

    assert resp.status_code == 200
    assert store.all()[0].caterer_id == "not-in-any-recommendation"


@pytest.mark.parametrize("missing", ["userId", "catererId", "eventDetails", "phoneNumber"])
def test_missing_field_rejected(client, store, notifier, missing):
    body = {k: v for k, v in ORDER_BODY.items() if k != missing}

    resp = client.post("/api/order", json=body)

    assert resp.status_code == 400
    assert missing in resp.json()["error"]
    assert store.all() == []
    assert notifier.sent == []


def test_event_name_required(client):
    resp = client.post("/api/order", json=dict(ORDER_BODY, eventDetails={"guests": 20}))

    assert resp.status_code == 400


def test_malformed_json_rejected(client, store):
    resp = client.post(
        "/api/order",
        content=b"userId=1",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert store.all() == []
