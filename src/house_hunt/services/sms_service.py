"""SMS service via the Twilio Messages REST API.

Uses HTTP Basic Auth (account SID + auth token) and form-encoded bodies.

Endpoints used:
- POST /Accounts/{sid}/Messages.json (send outbound SMS)
"""

import logging

import httpx

from house_hunt.app.config import Settings, get_settings

logger = logging.getLogger(__name__)


class SMSService:
    """Send SMS messages via Twilio.

    Holds one ``httpx.AsyncClient`` for its lifetime; the owner must call
    ``aclose()`` on shutdown.
    """

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or get_settings()
        self.client = client or httpx.AsyncClient(timeout=30.0)

    @property
    def configured(self) -> bool:
        """Check if Twilio credentials are configured."""
        return self.settings.twilio_configured

    @property
    def _messages_url(self) -> str:
        base = self.settings.twilio_api_base.rstrip("/")
        return f"{base}/Accounts/{self.settings.twilio_account_sid}/Messages.json"

    async def send_sms(self, to_number: str, message: str) -> dict:
        """Send an outbound SMS. Never raises; failures come back as ``ok=False``."""
        if not self.configured:
            logger.warning("Twilio SMS not configured, message not sent to %s", to_number)
            return {"ok": False, "error": "twilio_not_configured", "message": message}

        payload = {
            "From": self.settings.twilio_from_number,
            "To": to_number,
            "Body": message,
        }
        logger.info("Twilio send: to=%s msg_len=%d", to_number, len(message))

        try:
            resp = await self.client.post(
                self._messages_url,
                data=payload,
                auth=(self.settings.twilio_account_sid, self.settings.twilio_auth_token),
                headers={"Accept": "application/json"},
            )
        except httpx.TimeoutException:
            logger.error("Twilio request timed out for %s", to_number)
            return {"ok": False, "error": "timeout", "message": message}
        except httpx.HTTPError as e:
            logger.error("Twilio httpx error: %s", e)
            return {"ok": False, "error": str(e), "message": message}

        if 200 <= resp.status_code < 300:
            try:
                data = resp.json()
            except ValueError:
                data = {"raw": resp.text}
            logger.info("SMS sent to %s via Twilio (status=%d)", to_number, resp.status_code)
            return {"ok": True, "sid": data.get("sid"), "status": data.get("status")}

        logger.error("Twilio SMS failed (%d): %s", resp.status_code, resp.text[:300])
        return {"ok": False, "error": f"http_{resp.status_code}", "status": resp.status_code, "message": message}

    async def aclose(self) -> None:
        await self.client.aclose()
