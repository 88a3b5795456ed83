from urllib.parse import parse_qs

import httpx
import pytest

from backend.errors import NotificationError
from backend.notifications.config import SmsConfig
from backend.notifications.sms import TwilioSmsNotifier

CONFIG = SmsConfig(account_sid="AC123", auth_token="secret", from_number="+27110000000")


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=f"{CONFIG.base_url}/Accounts/{CONFIG.account_sid}/",
        auth=(CONFIG.account_sid, CONFIG.auth_token),
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_posts_message_to_twilio():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"sid": "SM1", "status": "queued"})

    notifier = TwilioSmsNotifier(CONFIG, client=_client(handler))
    await notifier.send("+27821234567", "Sharp sharp!")

    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/2010-04-01/Accounts/AC123/Messages.json"
    assert request.headers["Authorization"].startswith("Basic ")
    form = parse_qs(request.content.decode())
    assert form == {"To": ["+27821234567"], "From": ["+27110000000"], "Body": ["Sharp sharp!"]}


@pytest.mark.asyncio
async def test_provider_rejection_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"code": 21211, "message": "Invalid 'To' Phone Number"})

    notifier = TwilioSmsNotifier(CONFIG, client=_client(handler))

    with pytest.raises(NotificationError) as info:
        await notifier.send("not-a-number", "hi")

    assert "400" in str(info.value)
    assert "secret" not in str(info.value)


@pytest.mark.asyncio
async def test_network_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    notifier = TwilioSmsNotifier(CONFIG, client=_client(handler))

    with pytest.raises(NotificationError):
        await notifier.send("+27821234567", "hi")


@pytest.mark.asyncio
async def test_unconfigured_notifier_raises():
    notifier = TwilioSmsNotifier(SmsConfig(account_sid="", auth_token="", from_number=""))

    with pytest.raises(NotificationError):
        await notifier.send("+27821234567", "hi")
