"""Tests for SMSService: Twilio request shape and failure handling."""

import httpx
import pytest

from house_hunt.app.config import Settings
from house_hunt.services.sms_service import SMSService


def _settings(**overrides) -> Settings:
    values = {
        "twilio_account_sid": "AC123",
        "twilio_auth_token": "secret",
        "twilio_from_number": "+13185550000",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _service(handler, **overrides) -> SMSService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SMSService(_settings(**overrides), client=client)


@pytest.mark.asyncio
async def test_not_configured_does_not_call_twilio():
    def handler(request):
        raise AssertionError("no request expected")

    svc = _service(handler, twilio_auth_token="")
    result = await svc.send_sms("+13185551234", "hi")

    assert svc.configured is False
    assert result["ok"] is False
    assert result["error"] == "twilio_not_configured"
    await svc.aclose()


@pytest.mark.asyncio
async def test_posts_form_to_messages_endpoint():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = request.content.decode()
        return httpx.Response(201, json={"sid": "SM1", "status": "queued"})

    svc = _service(handler)
    result = await svc.send_sms("+13185551234", "code: 123456")

    assert result == {"ok": True, "sid": "SM1", "status": "queued"}
    assert seen["url"] == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
    assert seen["auth"].startswith("Basic ")
    assert "To=%2B13185551234" in seen["body"]
    assert "From=%2B13185550000" in seen["body"]
    await svc.aclose()


@pytest.mark.asyncio
async def test_http_error_status_is_reported():
    svc = _service(lambda request: httpx.Response(400, json={"message": "bad number"}))
    result = await svc.send_sms("bogus", "hi")

    assert result["ok"] is False
    assert result["error"] == "http_400"
    await svc.aclose()


@pytest.mark.asyncio
async def test_timeout_is_reported():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    svc = _service(handler)
    result = await svc.send_sms("+13185551234", "hi")

    assert result == {"ok": False, "error": "timeout", "message": "hi"}
    await svc.aclose()
