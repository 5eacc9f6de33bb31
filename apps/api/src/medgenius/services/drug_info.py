"""
Drug Information - Drug profiles, side effects and pairwise interactions.
"""

from medgenius.core.models import AnalysisResult, ReportKind
from medgenius.services.base import AnalysisService, require_text

DRUG_PROFILE_PROMPT = """Provide comprehensive information about the drug {drug}. Include:
1. Generic and brand names
2. Drug class and mechanism of action
3. Primary uses and indications
4. Common dosage forms
5. Important warnings and precautions
6. Known drug interactions

Format the response as a JSON object with the following structure:
{{
  "name": "drug name",
  "genericName": "generic name",
  "drugClass": "classification",
  "description": "brief description",
  "usedFor": ["indication1", "indication2"],
  "mechanism": "mechanism of action",
  "commonDosage": "dosing information",
  "warnings": ["warning1", "warning2"],
  "interactions": ["interaction1", "interaction2"]
}}"""

SIDE_EFFECTS_PROMPT = """Analyze and provide detailed information about the side effects of {drug}.
Include common and significant side effects, their probability of occurrence, severity levels,
and management approaches.

Format the response as a JSON array with the following structure for each side effect:
[
  {{
    "name": "side effect name",
    "probability": 0.1,
    "severity": "Mild/Moderate/Severe",
    "management": "specific management approach",
    "timeframe": "when it typically occurs",
    "riskFactors": ["risk factor 1", "risk factor 2"]
  }}
]

"probability" is a number between 0 and 1 based on clinical data.
Base your response on clinical data and medical literature. Include both common and serious side effects."""

INTERACTIONS_PROMPT = """Analyze potential drug interactions between {drug_a} and {drug_b}.
Include:
1. Type and mechanism of interaction
2. Clinical significance and severity
3. Potential outcomes
4. Management recommendations
5. Supporting evidence from medical literature

Format the response as a JSON array with the following structure:
[
  {{
    "drug1": "{drug_a}",
    "drug2": "{drug_b}",
    "mechanism": "how the interaction occurs",
    "severity": "Mild/Moderate/Severe",
    "effect": "detailed description of the interaction effect",
    "evidence": "brief reference to clinical evidence",
    "recommendation": "specific clinical recommendation"
  }}
]"""


class DrugInfoService(AnalysisService):
    """Pharmaceutical lookups for one or two named drugs."""

    temperature = 0.3

    @property
    def name(self) -> str:
        return "drug_info"

    async def describe(self, drug: str) -> AnalysisResult:
        """Drug class, mechanism, indications, dosing, warnings and interactions."""
        drug = require_text(drug, "Drug name")
        return await self._generate(
            ReportKind.DRUG_INFO,
            DRUG_PROFILE_PROMPT.format(drug=drug),
            system_message=(
                "You are a medical AI assistant specialized in pharmaceutical knowledge. "
                "Provide detailed, accurate information about medications, including their "
                "clinical uses, mechanisms, and safety profiles. Format your response in JSON."
            ),
        )

    async def side_effects(self, drug: str) -> AnalysisResult:
        """Side effects with probability, severity, management and timeframe."""
        drug = require_text(drug, "Drug name")
        return await self._generate(
            ReportKind.SIDE_EFFECTS,
            SIDE_EFFECTS_PROMPT.format(drug=drug),
            system_message=(
                "You are a medical AI assistant specialized in analyzing drug side effects. "
                "Provide detailed, evidence-based information about medication side effects, "
                "including their likelihood, severity, and management strategies. "
                "Format your response in JSON."
            ),
        )

    async def interactions(self, drug_a: str, drug_b: str) -> AnalysisResult:
        """Interactions between two drugs."""
        drug_a = require_text(drug_a, "First drug name")
        drug_b = require_text(drug_b, "Second drug name")
        return await self._generate(
            ReportKind.INTERACTIONS,
            INTERACTIONS_PROMPT.format(drug_a=drug_a, drug_b=drug_b),
            system_message=(
                "You are a medical AI assistant specialized in analyzing drug interactions. "
                "Provide detailed, evidence-based information about potential interactions "
                "between medications, including their mechanisms, clinical significance, and "
                "management strategies. Format your response in JSON."
            ),
        )
