"""
Assistant replies for unmatched free text on the main menu.

Uses the hot-reloaded system prompt; disabled (returns None) without an API
key. Failures are logged and also return None so the caller can fall back to
the static menu re-prompt.
"""

import logging
from collections.abc import Callable

from openai import AsyncOpenAI, OpenAIError

logger = logging.getLogger(__name__)


class AssistantClient:
    def __init__(
        self,
        api_key: str | None,
        system_prompt: Callable[[], str],
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 20.0,
        client: AsyncOpenAI | None = None,
    ):
        self.model = model
        self._system_prompt = system_prompt
        self._client = client
        if self._client is None and api_key:
            self._client = AsyncOpenAI(api_key=api_key, timeout=timeout_seconds)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def reply(self, user_message: str) -> str | None:
        if not self.enabled:
            return None
        try:
            completion = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self._system_prompt()},
                    {"role": "user", "content": user_message},
                ],
                max_tokens=180,
                temperature=0.4,
            )
        except OpenAIError as e:
            logger.error(f"Assistant reply failed: {e}", exc_info=True)
            return None

        content = completion.choices[0].message.content if completion.choices else None
        return content.strip() if content else None
