"""Core domain models for MedGenius.

These models define the contracts between the services and the API:
- Users and activity log entries
- Normalized analysis results
- FAERS statistics and PubChem compounds, each tagged when placeholder
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Enums
# =============================================================================


class UserRole(str, Enum):
    """Roles a user can register with."""

    PATIENT = "patient"
    DOCTOR = "doctor"
    RESEARCHER = "researcher"


class ActivityType(str, Enum):
    """Kinds of tracked user activity."""

    SEARCH = "search"
    ANALYSIS = "analysis"
    DOWNLOAD = "download"
    VIEW = "view"
    OTHER = "other"


class ReportKind(str, Enum):
    """Shapes of AI-generated reports."""

    PATIENT_ANALYSIS = "patient_analysis"
    DRUG_RECOMMENDATION = "drug_recommendation"
    DRUG_INFO = "drug_info"
    SIDE_EFFECTS = "side_effects"
    INTERACTIONS = "interactions"
    MOLECULES = "molecules"


# =============================================================================
# Users
# =============================================================================


class User(BaseModel):
    """Public view of a registered user."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    email: str
    name: str
    role: UserRole = UserRole.PATIENT
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are unique case-insensitively."""
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class UserRecord(User):
    """Stored user document, including the password hash."""

    password_hash: str

    def public(self) -> User:
        """Strip the password hash."""
        return User.model_validate(self.model_dump(exclude={"password_hash"}))


# =============================================================================
# Activity log
# =============================================================================


class Activity(BaseModel):
    """One entry in a user's activity feed."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    type: ActivityType
    description: str
    details: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


# =============================================================================
# Analysis results
# =============================================================================


class AnalysisResult(BaseModel):
    """A normalized, validated AI report."""

    kind: ReportKind
    data: Any
    provider: str
    model: str
    created_at: datetime = Field(default_factory=_utcnow)
    is_placeholder: bool = False


# =============================================================================
# FAERS statistics
# =============================================================================


class SeverityBreakdown(BaseModel):
    """Serious-outcome counts across FAERS reports."""

    death: int = 0
    hospitalization: int = 0
    life_threatening: int = 0
    disabling: int = 0


class DrugStats(BaseModel):
    """Adverse-event statistics for a single drug."""

    drug: str
    total_reports: int = 0
    serious_events: int = 0
    recent_reports: int = 0
    common_reactions: dict[str, int] = Field(default_factory=dict)
    severity_breakdown: SeverityBreakdown = Field(default_factory=SeverityBreakdown)
    is_placeholder: bool = False
    placeholder_reason: str | None = None


class InteractionStats(BaseModel):
    """Adverse-event statistics for reports naming both drugs."""

    drug_a: str
    drug_b: str
    total_interactions: int = 0
    common_reactions: dict[str, int] = Field(default_factory=dict)
    severity_breakdown: SeverityBreakdown = Field(default_factory=SeverityBreakdown)
    is_placeholder: bool = False
    placeholder_reason: str | None = None


class OverallStats(BaseModel):
    """Year-level FAERS totals."""

    year: int
    fatal_events: int = 0
    total_errors: int = 0
    preventable_events: int = 0
    is_placeholder: bool = False
    placeholder_reason: str | None = None


# Reactions shown when statistics are unavailable
PLACEHOLDER_REACTIONS = ("nausea", "headache", "dizziness", "fatigue", "diarrhea")


# =============================================================================
# PubChem
# =============================================================================


class Compound(BaseModel):
    """Compound facts from the chemical database."""

    cid: int
    name: str
    molecular_formula: str | None = None
    molecular_weight: float | None = None
    iupac_name: str | None = None
    canonical_smiles: str | None = None
    image_url: str
