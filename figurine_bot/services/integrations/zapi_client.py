"""
Z-API chat gateway client with dry-run mode for development.

Every outbound text/image is preceded by a "composing" presence and a short
random delay so replies read like a person typing. Calls are not retried;
failures raise ChatGatewayError for the caller to log.
"""

import asyncio
import logging
import random

import httpx

from figurine_bot.core.config import Settings
from figurine_bot.core.exceptions import ChatGatewayError
from figurine_bot.services.integrations.http_client import create_httpx_client

logger = logging.getLogger(__name__)


class ZapiClient:
    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: random.Random | None = None,
    ):
        self.settings = settings
        self._transport = transport
        self._rng = rng or random.Random()

    @property
    def dry_run(self) -> bool:
        """Dry-run when asked to, or when credentials are missing."""
        s = self.settings
        return s.chat_dry_run or not (s.zapi_instance and s.zapi_token)

    def _url(self, action: str) -> str:
        s = self.settings
        return f"{s.zapi_base_url.rstrip('/')}/instances/{s.zapi_instance}/token/{s.zapi_token}/{action}"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.zapi_client_token:
            headers["client-token"] = self.settings.zapi_client_token
        return headers

    async def _post(self, action: str, payload: dict, timeout_seconds: float) -> dict:
        try:
            async with create_httpx_client(timeout_seconds, transport=self._transport) as client:
                response = await client.post(self._url(action), headers=self._headers(), json=payload)
                response.raise_for_status()
                try:
                    return response.json()
                except ValueError:
                    return {}
        except httpx.HTTPError as e:
            logger.error(f"Z-API {action} to {payload.get('phone')} failed: {e}")
            raise ChatGatewayError(f"Z-API {action} failed: {e}") from e

    async def send_presence(self, phone: str) -> None:
        if self.dry_run:
            logger.debug(f"[DRY-RUN] Would send composing presence to {phone}")
            return
        try:
            await self._post(
                "send-presence",
                {"phone": phone, "presence": "composing"},
                self.settings.presence_timeout_seconds,
            )
        except ChatGatewayError:
            # Presence is cosmetic; the message itself still goes out
            logger.warning(f"Presence for {phone} not delivered")

    async def simulate_typing(self, phone: str) -> None:
        await self.send_presence(phone)
        low = self.settings.typing_delay_min_ms
        high = max(low, self.settings.typing_delay_max_ms)
        delay_ms = self._rng.randint(low, high) if high > 0 else 0
        if delay_ms:
            await asyncio.sleep(delay_ms / 1000)

    async def send_text(self, phone: str, message: str) -> dict:
        """
        Send a text message.

        Args:
            phone: Normalized phone (country code, digits only)
            message: Message text to send

        Returns:
            dict with status ("sent" or "dry_run") and the gateway response
        """
        await self.simulate_typing(phone)
        if self.dry_run:
            logger.info(f"[DRY-RUN] Would send text to {phone}: {message}")
            return {"status": "dry_run", "to": phone, "message": message}

        result = await self._post(
            "send-text",
            {"phone": phone, "message": message},
            self.settings.text_timeout_seconds,
        )
        return {"status": "sent", "to": phone, "response": result}

    async def send_image(self, phone: str, image: str, caption: str = "") -> dict:
        """Send an image by URL or data URI, with an optional caption."""
        await self.simulate_typing(phone)
        if self.dry_run:
            logger.info(f"[DRY-RUN] Would send image to {phone} (caption: {caption})")
            return {"status": "dry_run", "to": phone, "caption": caption}

        result = await self._post(
            "send-image",
            {"phone": phone, "image": image, "caption": caption},
            self.settings.image_timeout_seconds,
        )
        return {"status": "sent", "to": phone, "response": result}
