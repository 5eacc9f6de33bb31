"""MedGenius Core - Normalization, rendering and contracts."""

from medgenius.core.errors import (
    AuthError,
    CompoundNotFoundError,
    DuplicateEmailError,
    MedGeniusError,
    NetworkError,
    ParseError,
)
from medgenius.core.models import (
    Activity,
    ActivityType,
    AnalysisResult,
    Compound,
    DrugStats,
    InteractionStats,
    OverallStats,
    ReportKind,
    SeverityBreakdown,
    User,
    UserRecord,
    UserRole,
)

__all__ = [
    "Activity",
    "ActivityType",
    "AnalysisResult",
    "AuthError",
    "Compound",
    "CompoundNotFoundError",
    "DrugStats",
    "DuplicateEmailError",
    "InteractionStats",
    "MedGeniusError",
    "NetworkError",
    "OverallStats",
    "ParseError",
    "ReportKind",
    "SeverityBreakdown",
    "User",
    "UserRecord",
    "UserRole",
]
