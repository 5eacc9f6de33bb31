"""OpenAI chat-completion adapter (any OpenAI-compatible endpoint)."""

import logging
import time
from typing import Any

import httpx

from medgenius.providers.base import (
    ChatProvider,
    CompletionRequest,
    CompletionResponse,
    ProviderDownError,
    ProviderError,
    RateLimitError,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(ChatProvider):
    """
    POST /chat/completions against base_url with a bring-your-own key.

    Transport and HTTP failures become ProviderDownError (429 becomes
    RateLimitError); a 2xx reply without message content becomes
    ProviderError. All of them are NetworkErrors to the caller.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = "https://api.openai.com/v1",
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self._client = client or httpx.AsyncClient(timeout=120.0)

    @property
    def name(self) -> str:
        return "openai"

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        if not self.api_key:
            raise ProviderDownError(self.name, "OpenAI API key not configured")

        started = time.monotonic()
        data = await self._send(
            {
                "model": request.model,
                "messages": request.messages,
                "temperature": request.temperature,
                "max_tokens": request.max_tokens,
            }
        )
        content, finish_reason = self._reply(data)

        return CompletionResponse(
            content=content,
            model=data.get("model", request.model),
            provider=self.name,
            usage=data.get("usage"),
            latency_ms=int((time.monotonic() - started) * 1000),
            finish_reason=finish_reason,
        )

    async def _send(self, payload: dict[str, Any]) -> Any:
        """POST the payload and return the decoded JSON body."""
        try:
            response = await self._client.post(
                self.endpoint,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
            )
            if response.status_code == 429:
                retry_after = response.headers.get("retry-after", "")
                raise RateLimitError(
                    self.name, retry_after=int(retry_after) if retry_after.isdigit() else None
                )
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException:
            logger.warning("OpenAI request timed out")
            raise ProviderDownError(self.name, "OpenAI API request timed out")
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"OpenAI answered {status}")
            if status == 401:
                raise ProviderDownError(self.name, "Invalid OpenAI API key")
            raise ProviderDownError(self.name, f"OpenAI error: {status}")
        except httpx.HTTPError as e:
            logger.warning(f"Cannot reach OpenAI API: {e}")
            raise ProviderDownError(self.name, "Cannot connect to OpenAI API")
        except ValueError:
            raise ProviderError("OpenAI returned a non-JSON body", self.name)

    def _reply(self, data: Any) -> tuple[str, str | None]:
        """First choice's message content and finish reason."""
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise ProviderError("OpenAI response has no choices", self.name)

        choice = choices[0] if isinstance(choices, list) else None
        if not isinstance(choice, dict) or not isinstance(choice.get("message"), dict):
            raise ProviderError("OpenAI response has a malformed choice", self.name)

        content = choice["message"].get("content")
        if not isinstance(content, str):
            raise ProviderError("OpenAI response has no message content", self.name)
        return content, choice.get("finish_reason")

    async def close(self) -> None:
        await self._client.aclose()
