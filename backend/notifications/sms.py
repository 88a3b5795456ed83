from __future__ import annotations

import logging
from typing import Protocol

import httpx

from ..errors import NotificationError
from .config import DEFAULT_SMS_CONFIG, SmsConfig

logger = logging.getLogger(__name__)


class SmsNotifier(Protocol):
    async def send(self, to: str, body: str) -> None:
        ...


def twilio_client(config: SmsConfig = DEFAULT_SMS_CONFIG) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=f"{config.base_url}/Accounts/{config.account_sid}/",
        auth=(config.account_sid, config.auth_token),
        timeout=config.timeout,
    )


class TwilioSmsNotifier:
    """Sends SMS through the Twilio Messages REST endpoint."""

    def __init__(
        self,
        config: SmsConfig = DEFAULT_SMS_CONFIG,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._client = client

    async def _post(self, client: httpx.AsyncClient, to: str, body: str) -> None:
        response = await client.post(
            "Messages.json",
            data={"To": to, "From": self.config.from_number, "Body": body},
        )
        response.raise_for_status()

    async def send(self, to: str, body: str) -> None:
        if not self.config.configured:
            raise NotificationError("SMS delivery is not configured.")
        try:
            if self._client is not None:
                await self._post(self._client, to, body)
            else:
                async with twilio_client(self.config) as client:
                    await self._post(client, to, body)
        except httpx.HTTPStatusError as exc:
            raise NotificationError(
                f"SMS provider rejected the message ({exc.response.status_code})."
            ) from exc
        except httpx.HTTPError as exc:
            raise NotificationError(f"SMS provider unreachable: {exc}") from exc
        logger.info("Sent SMS confirmation to %s", to)
