"""OpenAI-compatible chat completions client (Ollama by default)."""

import httpx

from newsbot.config import ModelConfig
from newsbot.core import LLMClient, ModelBackendError


class ChatCompletionsClient(LLMClient):
    """Backend speaking the ``/v1/chat/completions`` protocol."""

    def __init__(self, config: ModelConfig) -> None:
        self.base_url = config.base_url.rstrip("/")
        self.model = config.model
        self.temperature = config.temperature
        self.timeout = config.timeout
        self.api_key = config.api_key
        self.auth = (config.username, config.password) if config.username else None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key and not self.auth:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.temperature,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, auth=self.auth) as client:
                response = await client.post(
                    f"{self.base_url}/v1/chat/completions",
                    headers=self._headers(),
                    json=payload,
                )
        except httpx.RequestError as e:
            raise ModelBackendError(f"send request: {e}") from e

        if response.status_code != 200:
            raise ModelBackendError(
                f"model backend returned {response.status_code}: {response.text[:500]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ModelBackendError(f"decode response: {e}") from e

        if not isinstance(data, dict):
            raise ModelBackendError("response body is not a JSON object")
        if "error" in data:
            raise ModelBackendError(f"model backend error: {data['error']}")

        choices = data.get("choices") or []
        if not choices:
            raise ModelBackendError("no choices in response")

        try:
            content = choices[0]["message"]["content"]
        except (KeyError, TypeError) as e:
            raise ModelBackendError(f"unexpected response choice: {e}") from e
        if not isinstance(content, str):
            raise ModelBackendError("response choice has no message content")
        return content
