"""
Base Analysis Service - Prompt, complete, normalize, validate.

Services are the only callers of the chat provider. Each one:
1. Builds a prompt asking for a fixed JSON shape
2. Sends it to the provider
3. Normalizes the raw output (ParseError on failure)
4. Validates the report sections for its ReportKind
"""

import logging
from abc import ABC, abstractmethod

from medgenius.core.models import AnalysisResult, ReportKind
from medgenius.core.normalizer import ResponseNormalizer
from medgenius.core.validator import Validator
from medgenius.providers import ChatProvider, CompletionRequest

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_MESSAGE = (
    "You are a helpful medical AI assistant providing accurate and useful information."
)


class AnalysisService(ABC):
    """Base class for every AI-backed lookup."""

    system_message: str = DEFAULT_SYSTEM_MESSAGE
    temperature: float = 0.3
    max_tokens: int = 2048

    def __init__(
        self,
        provider: ChatProvider,
        model: str,
        normalizer: ResponseNormalizer | None = None,
        validator: Validator | None = None,
    ):
        self.provider = provider
        self.model = model
        self.normalizer = normalizer or ResponseNormalizer()
        self.validator = validator or Validator()

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique service identifier."""
        ...

    async def _generate(
        self,
        kind: ReportKind,
        prompt: str,
        system_message: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> AnalysisResult:
        """
        Run one prompt through the provider and return a validated report.

        Raises:
            NetworkError: the provider call failed
            ParseError: the output could not be normalized or lacks sections
        """
        request = CompletionRequest.chat(
            system_message or self.system_message,
            prompt,
            model=self.model,
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.max_tokens,
        )
        response = await self.provider.complete(request)

        data = self.normalizer.parse(response.content)
        validation = self.validator.validate_report(kind, data)
        for warning in validation.warnings:
            logger.info(f"{self.name}: {warning}")

        return AnalysisResult(
            kind=kind,
            data=validation.raise_for_errors(response.content),
            provider=response.provider,
            model=response.model,
        )


def require_text(value: str | None, label: str) -> str:
    """Strip an input and reject it when empty."""
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{label} is required")
    return value
