"""MedGenius Services - AI-backed lookups and adverse-event statistics."""

from medgenius.services.base import AnalysisService
from medgenius.services.drug_discovery import DrugDiscoveryService
from medgenius.services.drug_info import DrugInfoService
from medgenius.services.drug_recommendation import DrugRecommendationService
from medgenius.services.patient_analysis import PatientAnalysisService
from medgenius.services.stats import StatsService

__all__ = [
    "AnalysisService",
    "DrugDiscoveryService",
    "DrugInfoService",
    "DrugRecommendationService",
    "PatientAnalysisService",
    "StatsService",
]
