from __future__ import annotations

from datetime import datetime

from .catalog.store import CatalogStore, JsonCatalogStore
from .llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from .notifications.sms import SmsNotifier, TwilioSmsNotifier
from .orders.store import InMemoryOrderStore, OrderStore
from .recommendations.prompt import Clock

_order_store = InMemoryOrderStore()


def get_catalog_store() -> CatalogStore:
    """A catalog reader; every request gets a fresh snapshot from it."""
    return JsonCatalogStore()


def get_order_store() -> OrderStore:
    return _order_store


def get_notifier() -> SmsNotifier:
    return TwilioSmsNotifier()


def get_llm_config() -> LLMConfig:
    return DEFAULT_LLM_CONFIG


def get_clock() -> Clock:
    return datetime.now
