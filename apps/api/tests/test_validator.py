"""Tests for the report Validator."""

import pytest

from medgenius.core.errors import ParseError
from medgenius.core.models import ReportKind
from medgenius.core.validator import Validator


def make_analysis(**overrides) -> dict:
    data = {
        "diagnosis": [{"condition": "Hypertension", "confidenceLevel": "High"}],
        "riskFactors": [{"factor": "Smoking", "impact": "High"}],
        "recommendations": [{"recommendation": "Reduce salt", "priority": "High"}],
        "nextSteps": [{"step": "Blood panel", "timeline": "1 week"}],
    }
    data.update(overrides)
    return data


class TestObjectReports:
    """Test reports whose top level is an object."""

    @pytest.fixture
    def validator(self) -> Validator:
        return Validator()

    def test_valid_patient_analysis_passes(self, validator: Validator) -> None:
        """A complete analysis passes unchanged."""
        data = make_analysis()

        result = validator.validate_report(ReportKind.PATIENT_ANALYSIS, data)

        assert result.valid
        assert result.errors == []
        assert result.data == data

    def test_missing_section_fails(self, validator: Validator) -> None:
        """Each missing required section is reported."""
        data = make_analysis()
        del data["riskFactors"]
        del data["nextSteps"]

        result = validator.validate_report(ReportKind.PATIENT_ANALYSIS, data)

        assert not result.valid
        assert {e.field for e in result.errors} == {"riskFactors", "nextSteps"}
        assert all(e.code == "MISSING_FIELD" for e in result.errors)

    def test_null_section_fails(self, validator: Validator) -> None:
        """A section present but null counts as missing."""
        result = validator.validate_report(
            ReportKind.PATIENT_ANALYSIS, make_analysis(diagnosis=None)
        )

        assert not result.valid
        assert result.errors[0].field == "diagnosis"

    def test_string_diagnosis_wrapped(self, validator: Validator) -> None:
        """A diagnosis given as prose becomes a one-item list, not a list of characters."""
        data = make_analysis(diagnosis="Tension headache", riskFactors={"factor": "Stress"})

        result = validator.validate_report(ReportKind.PATIENT_ANALYSIS, data)

        assert result.valid
        assert result.data["diagnosis"] == ["Tension headache"]
        assert result.data["riskFactors"] == [{"factor": "Stress"}]
        assert "diagnosis: wrapped in a list" in result.warnings

    def test_list_where_object_expected_fails(self, validator: Validator) -> None:
        """An analysis must be an object."""
        result = validator.validate_report(ReportKind.PATIENT_ANALYSIS, [make_analysis()])

        assert not result.valid
        assert result.errors[0].code == "INVALID_TYPE"
        assert "list" in result.errors[0].message

    def test_single_recommendation_is_wrapped(self, validator: Validator) -> None:
        """A section rendered as a list is coerced when the model returned one item."""
        single = {"recommendation": "Exercise", "priority": "Medium"}

        result = validator.validate_report(
            ReportKind.PATIENT_ANALYSIS, make_analysis(recommendations=single)
        )

        assert result.valid
        assert result.data["recommendations"] == [single]
        assert result.warnings

    def test_coercion_does_not_mutate_input(self, validator: Validator) -> None:
        """The caller's value is left as it was."""
        data = make_analysis(nextSteps="See a cardiologist")

        validator.validate_report(ReportKind.PATIENT_ANALYSIS, data)

        assert data["nextSteps"] == "See a cardiologist"

    def test_drug_info_optional_list_sections(self, validator: Validator) -> None:
        """Optional list sections are coerced, absent ones left absent."""
        data = {"name": "Aspirin", "warnings": "Bleeding risk", "usedFor": None}

        result = validator.validate_report(ReportKind.DRUG_INFO, data)

        assert result.valid
        assert result.data["warnings"] == ["Bleeding risk"]
        assert result.data["usedFor"] == []
        assert "interactions" not in result.data

    def test_recommendations_required(self, validator: Validator) -> None:
        """Drug recommendations need the recommendations section."""
        result = validator.validate_report(ReportKind.DRUG_RECOMMENDATION, {"drugs": []})

        assert not result.valid
        assert result.errors[0].message == "Missing required section: recommendations"


class TestListReports:
    """Test reports whose top level is a list."""

    @pytest.fixture
    def validator(self) -> Validator:
        return Validator()

    @pytest.mark.parametrize(
        "kind", [ReportKind.SIDE_EFFECTS, ReportKind.INTERACTIONS, ReportKind.MOLECULES]
    )
    def test_list_passes(self, validator: Validator, kind: ReportKind) -> None:
        """A list is accepted as-is."""
        data = [{"name": "Nausea"}]

        result = validator.validate_report(kind, data)

        assert result.valid
        assert result.data == data

    def test_single_object_is_wrapped(self, validator: Validator) -> None:
        """One object instead of a list becomes a one-item list."""
        item = {"name": "Nausea", "probability": 0.2}

        result = validator.validate_report(ReportKind.SIDE_EFFECTS, item)

        assert result.valid
        assert result.data == [item]
        assert len(result.warnings) == 1

    def test_string_fails(self, validator: Validator) -> None:
        """A bare string is not a report."""
        result = validator.validate_report(ReportKind.MOLECULES, "no molecules")

        assert not result.valid
        assert result.errors[0].code == "INVALID_TYPE"


class TestRaiseForErrors:
    """Test conversion of validation failures into ParseError."""

    def test_valid_returns_data(self) -> None:
        """Valid results hand back the coerced data."""
        result = Validator().validate_report(ReportKind.SIDE_EFFECTS, [])

        assert result.raise_for_errors("[]") == []

    def test_invalid_raises_parse_error(self) -> None:
        """Invalid results raise with the raw model output attached."""
        result = Validator().validate_report(ReportKind.DRUG_INFO, {"genericName": "x"})

        with pytest.raises(ParseError) as exc_info:
            result.raise_for_errors('{"genericName": "x"}')

        assert exc_info.value.raw_text == '{"genericName": "x"}'
        assert "Missing required section: name" in exc_info.value.message
