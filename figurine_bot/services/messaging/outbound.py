"""
Outbound messaging - renders copy keys and sends them through the chat gateway.

Gateway failures are logged here and reported as False; a reply that could
not be delivered cannot be apologized for over the same channel.
"""

import logging
from typing import Any, Protocol

from figurine_bot.core.exceptions import ChatGatewayError
from figurine_bot.services.messaging.message_composer import MessageComposer

logger = logging.getLogger(__name__)


class ChatGateway(Protocol):
    async def send_text(self, phone: str, message: str) -> dict: ...

    async def send_image(self, phone: str, image: str, caption: str = "") -> dict: ...


class Messenger:
    def __init__(self, gateway: ChatGateway, composer: MessageComposer):
        self.gateway = gateway
        self.composer = composer

    def render(self, key: str, phone: str | None = None, **params: Any) -> str:
        """
        Render a copy key. Params that are themselves replies (anything with
        `key` and `params`, e.g. a budget link line) are rendered first.
        """
        resolved = {}
        for name, value in params.items():
            if hasattr(value, "key") and hasattr(value, "params"):
                value = self.render(value.key, phone, **value.params)
            resolved[name] = value
        return self.composer.render(key, phone=phone, **resolved)

    async def send_text(self, phone: str, message: str) -> bool:
        try:
            await self.gateway.send_text(phone, message)
            return True
        except ChatGatewayError as e:
            logger.error(f"Failed to send text to {phone}: {e}", exc_info=True)
            return False

    async def send_image(self, phone: str, image: str, caption: str = "") -> bool:
        try:
            await self.gateway.send_image(phone, image, caption)
            return True
        except ChatGatewayError as e:
            logger.error(f"Failed to send image to {phone}: {e}", exc_info=True)
            return False

    async def send_reply(self, phone: str, key: str, **params: Any) -> bool:
        return await self.send_text(phone, self.render(key, phone, **params))
