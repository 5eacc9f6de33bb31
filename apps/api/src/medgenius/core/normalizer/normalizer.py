"""
Response Normalizer - Turn raw LLM output into a renderable value tree.

Models are asked for JSON but answer with markdown fences, commentary,
and JSON documents whose string fields contain more JSON. The normalizer
undoes all of that in three stages:

1. Extract the JSON candidate (```json fence, plain fence, brace span, raw text)
2. Decode it strictly, raising ParseError with the raw text on failure
3. Deep re-parse every string field that is itself valid JSON
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from medgenius.core.errors import ParseError

logger = logging.getLogger(__name__)


class ExtractionSource:
    """Which extraction rule produced the JSON candidate."""

    JSON_FENCE = "json_fence"
    GENERIC_FENCE = "generic_fence"
    BRACE_SPAN = "brace_span"
    RAW = "raw"


@dataclass
class NormalizerResult:
    """Result of a normalization attempt."""

    success: bool
    data: Any = None
    error: str | None = None
    raw_output: str = ""
    source: str | None = None

    def unwrap(self) -> Any:
        """Return the normalized value or raise the ParseError it carries."""
        if not self.success:
            raise ParseError(self.error or "The AI response could not be interpreted", self.raw_output)
        return self.data


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def loads_strict(text: str) -> Any:
    """json.loads that rejects NaN/Infinity like a browser JSON parser."""
    return json.loads(text, parse_constant=_reject_constant)


class ResponseNormalizer:
    """Extract, decode and deep re-parse JSON from model output."""

    # Patterns for JSON extraction, tried in order
    JSON_FENCE_PATTERN = re.compile(r"```json[ \t]*\r?\n([\s\S]*?)\r?\n[ \t]*```", re.IGNORECASE)
    GENERIC_FENCE_PATTERN = re.compile(r"```[ \t]*\r?\n([\s\S]*?)\r?\n[ \t]*```")
    BRACE_SPAN_PATTERN = re.compile(r"\{[\s\S]*\}")

    def __init__(self, containers_only: bool = False):
        # When set, "42" or "true" inside a string field stay strings
        self.containers_only = containers_only

    def extract(self, raw_output: str) -> str:
        """Return the candidate JSON substring of raw model output."""
        return self._extract_with_source(raw_output)[0]

    def decode(self, raw_output: str) -> Any:
        """
        Extract and decode the JSON value in raw model output.

        Args:
            raw_output: Raw string output from model

        Returns:
            The decoded JSON value (not yet deep re-parsed)

        Raises:
            ParseError: if no candidate decodes as JSON
        """
        candidate, source = self._extract_with_source(raw_output)
        try:
            return loads_strict(candidate)
        except ValueError as e:
            logger.warning(f"Could not decode AI response ({source}): {e}")
            raise ParseError(
                f"The AI response could not be interpreted: {e}",
                raw_text=raw_output,
            )

    def deep_parse(self, value: Any) -> Any:
        """
        Replace every string that is itself valid JSON with its parsed form.

        Re-parsed values are walked again, so a single pass reaches a fixed
        point and deep_parse(deep_parse(x)) == deep_parse(x).
        """
        if isinstance(value, str):
            if self.containers_only and not might_be_json(value):
                return value
            try:
                parsed = loads_strict(value)
            except ValueError:
                return value
            return self.deep_parse(parsed)

        if isinstance(value, list):
            return [self.deep_parse(item) for item in value]

        if isinstance(value, dict):
            return {key: self.deep_parse(item) for key, item in value.items()}

        return value

    def parse(self, raw_output: str) -> Any:
        """Decode and deep re-parse raw model output, raising ParseError on failure."""
        return self.deep_parse(self.decode(raw_output))

    def normalize(self, raw_output: str) -> NormalizerResult:
        """
        Attempt to turn raw model output into a normalized value.

        Never raises; the caller decides what to do with a failed result.
        """
        _, source = self._extract_with_source(raw_output)
        try:
            data = self.parse(raw_output)
        except ParseError as e:
            return NormalizerResult(
                success=False,
                error=e.message,
                raw_output=raw_output,
                source=source,
            )
        return NormalizerResult(success=True, data=data, raw_output=raw_output, source=source)

    def _extract_with_source(self, text: str) -> tuple[str, str]:
        match = self.JSON_FENCE_PATTERN.search(text)
        if match:
            return match.group(1).strip(), ExtractionSource.JSON_FENCE

        match = self.GENERIC_FENCE_PATTERN.search(text)
        if match:
            return match.group(1).strip(), ExtractionSource.GENERIC_FENCE

        match = self.BRACE_SPAN_PATTERN.search(text)
        if match:
            return match.group().strip(), ExtractionSource.BRACE_SPAN

        return text.strip(), ExtractionSource.RAW


def might_be_json(text: str) -> bool:
    """Check whether a string looks like a JSON object or array."""
    if not isinstance(text, str):
        return False
    text = text.strip()
    return (text.startswith("{") and text.endswith("}")) or (
        text.startswith("[") and text.endswith("]")
    )
