"""Validator - Required sections and shape coercion for AI reports."""

from medgenius.core.validator.validator import (
    ValidationError,
    ValidationResult,
    Validator,
)

__all__ = ["ValidationError", "ValidationResult", "Validator"]
