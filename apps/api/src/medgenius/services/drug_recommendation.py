"""Drug Recommendation - Suggested drugs for a patient or a disease."""

from medgenius.core.models import AnalysisResult, ReportKind
from medgenius.services.base import AnalysisService, require_text

RECOMMENDATION_FORMAT = """Please provide your response in the following JSON format:
{
  "recommendations": [
    {
      "drugName": "string",
      "dosage": "string",
      "sideEffects": "string",
      "precautions": "string",
      "reason": "string"
    }
  ]
}

Ensure the response is valid JSON and contains at least 3 drug recommendations."""


class DrugRecommendationService(AnalysisService):
    """Recommend drugs from patient information or a named disease."""

    system_message = (
        "You are a medical AI assistant specialized in providing drug recommendations. "
        "Always respond with valid JSON in the specified format. "
        "Do not include any text outside the JSON structure."
    )
    temperature = 0.7
    max_tokens = 2000

    @property
    def name(self) -> str:
        return "drug_recommendation"

    async def for_patient(self, patient_info: str) -> AnalysisResult:
        patient_info = require_text(patient_info, "Patient information")
        prompt = (
            "Based on the following patient information, provide drug recommendations in JSON format:\n"
            f"Patient Information: {patient_info}\n\n{RECOMMENDATION_FORMAT}"
        )
        return await self._generate(ReportKind.DRUG_RECOMMENDATION, prompt)

    async def for_disease(self, disease: str) -> AnalysisResult:
        disease = require_text(disease, "Disease")
        prompt = (
            "Provide drug recommendations for treating the following disease in JSON format:\n"
            f"Disease: {disease}\n\n{RECOMMENDATION_FORMAT}"
        )
        return await self._generate(ReportKind.DRUG_RECOMMENDATION, prompt)
