from __future__ import annotations

from enum import Enum


class InputError(ValueError):
    """Malformed or empty client input; rejected before any external call."""


class CatalogFetchError(RuntimeError):
    """The catalog store could not be read."""


class GenerationFailureReason(str, Enum):
    disabled = "disabled"
    backend_error = "backend_error"
    no_output = "no_output"
    unparseable = "unparseable"
    schema_mismatch = "schema_mismatch"


class GenerationFailure(RuntimeError):
    """The generation backend did not produce a usable object.

    ``raw_output`` holds whatever text the backend returned, if any, so the
    failure can be diagnosed.  It never contains credentials.
    """

    def __init__(
        self,
        reason: GenerationFailureReason,
        message: str = "",
        raw_output: str | None = None,
    ) -> None:
        super().__init__(message or reason.value)
        self.reason = reason
        self.raw_output = raw_output


class NotificationError(RuntimeError):
    """An outbound notification could not be delivered."""


class OrderStoreError(RuntimeError):
    """The order store rejected or failed a write."""
