"""Claude API client."""

import asyncio

import httpx

from newsbot.config import ModelConfig
from newsbot.core import LLMClient, ModelBackendError


class ClaudeClient(LLMClient):
    """Anthropic Messages API backend."""

    def __init__(self, config: ModelConfig) -> None:
        self.api_key = config.api_key
        self.model = config.model
        self.max_tokens = config.max_tokens
        self.temperature = config.temperature
        self.timeout = config.timeout
        self.request_delay = config.request_delay
        self.base_url = "https://api.anthropic.com/v1"
        self._last_request_time = 0.0

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Call Claude once, pacing requests by ``request_delay``."""
        loop = asyncio.get_running_loop()
        time_since_last_request = loop.time() - self._last_request_time
        if time_since_last_request < self.request_delay:
            await asyncio.sleep(self.request_delay - time_since_last_request)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/messages",
                    headers={
                        "x-api-key": self.api_key,
                        "anthropic-version": "2023-06-01",
                        "content-type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "max_tokens": self.max_tokens,
                        "temperature": self.temperature,
                        "system": system_prompt,
                        "messages": [
                            {"role": "user", "content": user_prompt}
                        ],
                    },
                )
        except httpx.RequestError as e:
            raise ModelBackendError(f"claude request failed: {e}") from e
        finally:
            self._last_request_time = loop.time()

        if response.status_code != 200:
            raise ModelBackendError(
                f"claude returned {response.status_code}: {response.text[:500]}"
            )

        try:
            data = response.json()
            blocks = [b["text"] for b in data["content"] if b.get("type", "text") == "text"]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ModelBackendError(f"unexpected claude response: {e}") from e

        if not blocks:
            raise ModelBackendError("claude response has no text content")
        return "".join(blocks)
