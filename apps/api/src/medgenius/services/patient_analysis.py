"""
Patient Analysis - Diagnosis, risk factors, recommendations and next steps
from a free-text patient description.
"""

from medgenius.core.models import AnalysisResult, ReportKind
from medgenius.services.base import AnalysisService, require_text

PATIENT_ANALYSIS_PROMPT = """Analyze the following patient information and provide a comprehensive medical analysis.
Patient Information: {patient_info}

Please provide your analysis in the following JSON format:
{{
  "diagnosis": [
    {{"condition": "string", "confidenceLevel": "string", "description": "string"}}
  ],
  "riskFactors": [
    {{"factor": "string", "impact": "string", "description": "string"}}
  ],
  "recommendations": [
    {{"recommendation": "string", "reason": "string", "priority": "string"}}
  ],
  "nextSteps": [
    {{"step": "string", "reason": "string", "timeline": "string"}}
  ]
}}

Ensure all sections are properly filled with relevant medical information. Each section should contain at least 3 items."""


class PatientAnalysisService(AnalysisService):
    """Analyze a patient description into the four report sections."""

    system_message = (
        "You are a medical AI assistant specialized in analyzing patient information "
        "and providing comprehensive medical insights. Always respond with valid JSON "
        "in the specified format. Include detailed recommendations and next steps."
    )
    temperature = 0.7
    max_tokens = 2000

    @property
    def name(self) -> str:
        return "patient_analysis"

    async def analyze(self, patient_info: str) -> AnalysisResult:
        patient_info = require_text(patient_info, "Patient information")
        return await self._generate(
            ReportKind.PATIENT_ANALYSIS,
            PATIENT_ANALYSIS_PROMPT.format(patient_info=patient_info),
        )
