"""Chat provider interface, request/response types and provider errors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from medgenius.core.errors import NetworkError


@dataclass
class CompletionRequest:
    """One system + user exchange sent to a chat model."""

    messages: list[dict[str, str]]
    model: str
    temperature: float = 0.3
    max_tokens: int = 2048

    @classmethod
    def chat(
        cls,
        system: str,
        prompt: str,
        model: str,
        temperature: float = 0.3,
        max_tokens: int = 2048,
    ) -> "CompletionRequest":
        """Build a request from a system message and a single user prompt."""
        return cls(
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )


@dataclass
class CompletionResponse:
    """Raw model output plus call metadata."""

    content: str
    model: str
    provider: str
    usage: dict[str, int] | None = None  # tokens used
    latency_ms: int = 0
    finish_reason: str | None = None


class ChatProvider(ABC):
    """
    A chat-completion backend.

    Services only see this interface: tests plug in a scripted provider,
    deployments point OpenAIProvider at any compatible endpoint.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short provider label recorded on every AnalysisResult."""
        ...

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Run one completion.

        Raises:
            ProviderError: the call failed or the reply had no content
        """
        ...

    async def close(self) -> None:
        """Release HTTP resources; a no-op unless the provider holds any."""
        pass


class ProviderError(NetworkError):
    """A chat provider call failed; the provider name is the error source."""

    def __init__(self, message: str, provider: str, retryable: bool = True):
        super().__init__(message, source=provider, retryable=retryable)
        self.provider = provider


class RateLimitError(ProviderError):
    """HTTP 429 from the provider."""

    def __init__(self, provider: str, retry_after: int | None = None):
        super().__init__(f"Rate limit exceeded for {provider}", provider)
        self.retry_after = retry_after


class ProviderDownError(ProviderError):
    """The provider could not be reached or refused the request."""

    def __init__(self, provider: str, message: str = "Provider unavailable"):
        super().__init__(message, provider)
