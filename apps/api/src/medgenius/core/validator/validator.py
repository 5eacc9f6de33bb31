"""
Validator - Required sections and shape coercion for AI reports.

The normalizer guarantees a decoded value; the validator guarantees the
value has the sections each report kind is displayed from:
1. Top-level shape - object or list, per report kind
2. Required sections - present and non-null
3. Coercion - sections rendered as lists are wrapped when a model
   returned a single item

This is the second line of defense after the normalizer.
"""

from dataclasses import dataclass, field
from typing import Any

from medgenius.core.errors import ParseError
from medgenius.core.models import ReportKind


@dataclass
class ValidationError:
    """A single validation error."""

    field: str
    message: str
    code: str  # e.g., "MISSING_FIELD", "INVALID_TYPE"


@dataclass
class ValidationResult:
    """Result of validation."""

    valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    data: Any = None

    def raise_for_errors(self, raw_text: str = "") -> Any:
        """Return the coerced data or raise ParseError naming the problems."""
        if self.valid:
            return self.data
        problems = ", ".join(e.message for e in self.errors)
        raise ParseError(f"The AI response could not be interpreted: {problems}", raw_text)


class Validator:
    """
    Validate normalized AI output against report contracts.

    Enforces:
    - Object reports carry their required sections
    - List reports are lists (single objects are wrapped)
    - Sections displayed as lists are lists
    """

    OBJECT_REPORTS: dict[ReportKind, tuple[str, ...]] = {
        ReportKind.PATIENT_ANALYSIS: ("diagnosis", "riskFactors", "recommendations", "nextSteps"),
        ReportKind.DRUG_RECOMMENDATION: ("recommendations",),
        ReportKind.DRUG_INFO: ("name",),
    }

    LIST_REPORTS = frozenset(
        [ReportKind.SIDE_EFFECTS, ReportKind.INTERACTIONS, ReportKind.MOLECULES]
    )

    # Sections the UI iterates over
    LIST_SECTIONS: dict[ReportKind, tuple[str, ...]] = {
        ReportKind.PATIENT_ANALYSIS: (
            "diagnosis",
            "riskFactors",
            "recommendations",
            "nextSteps",
        ),
        ReportKind.DRUG_RECOMMENDATION: ("recommendations",),
        ReportKind.DRUG_INFO: ("usedFor", "warnings", "interactions"),
    }

    def validate_report(self, kind: ReportKind, data: Any) -> ValidationResult:
        """
        Validate and coerce a normalized report.

        Args:
            kind: Which report contract to enforce
            data: Normalized value from the ResponseNormalizer

        Returns:
            ValidationResult with coerced data if valid
        """
        if kind in self.LIST_REPORTS:
            return self._validate_list_report(kind, data)
        return self._validate_object_report(kind, data)

    def _validate_list_report(self, kind: ReportKind, data: Any) -> ValidationResult:
        if isinstance(data, list):
            return ValidationResult(valid=True, data=data)

        if isinstance(data, dict):
            return ValidationResult(
                valid=True,
                data=[data],
                warnings=[f"{kind.value}: single object wrapped in a list"],
            )

        return ValidationResult(
            valid=False,
            errors=[
                ValidationError(
                    field="$",
                    message=f"{kind.value} must be a list, got: {type(data).__name__}",
                    code="INVALID_TYPE",
                )
            ],
        )

    def _validate_object_report(self, kind: ReportKind, data: Any) -> ValidationResult:
        if not isinstance(data, dict):
            return ValidationResult(
                valid=False,
                errors=[
                    ValidationError(
                        field="$",
                        message=f"{kind.value} must be an object, got: {type(data).__name__}",
                        code="INVALID_TYPE",
                    )
                ],
            )

        errors: list[ValidationError] = []
        for required in self.OBJECT_REPORTS[kind]:
            if data.get(required) is None:
                errors.append(
                    ValidationError(
                        field=required,
                        message=f"Missing required section: {required}",
                        code="MISSING_FIELD",
                    )
                )

        if errors:
            return ValidationResult(valid=False, errors=errors)

        coerced = dict(data)
        warnings: list[str] = []
        for section in self.LIST_SECTIONS.get(kind, ()):
            if section in coerced and not isinstance(coerced[section], list):
                if coerced[section] is None:
                    coerced[section] = []
                else:
                    coerced[section] = [coerced[section]]
                warnings.append(f"{section}: wrapped in a list")

        return ValidationResult(valid=True, data=coerced, warnings=warnings)
