"""Response Normalizer - Extract, decode and deep re-parse model output."""

from medgenius.core.normalizer.normalizer import (
    ExtractionSource,
    NormalizerResult,
    ResponseNormalizer,
    loads_strict,
    might_be_json,
)

__all__ = [
    "ExtractionSource",
    "NormalizerResult",
    "ResponseNormalizer",
    "loads_strict",
    "might_be_json",
]
