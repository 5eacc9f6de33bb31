"""Drug Discovery - Candidate molecules for a disease and target."""

from medgenius.core.models import AnalysisResult, ReportKind
from medgenius.services.base import AnalysisService, require_text

MOLECULES_PROMPT = """Generate {count} novel drug molecules for treating {disease} with focus on {target}.
For each molecule, provide:
- A unique identifier (MOL-XXX) as "id"
- A name (Compound XX-XXXXX) as "name"
- Chemical formula as "formula"
- Target receptor as "target"
- Confidence score (0-100) as "confidence"
- Efficacy score (0-100) as "efficacy"
- Toxicity level (Low/Medium/High) as "toxicity"
- Bioavailability (Low/Medium/High) as "bioavailability"
- Synthesizability (Low/Medium/High) as "synthesizability"
- A brief description of the molecule's properties and potential benefits as "description"

Format the response as a JSON array of objects."""

MAX_MOLECULES = 10


class DrugDiscoveryService(AnalysisService):
    """Generate candidate molecules with scored properties."""

    system_message = (
        "You are a medical AI assistant specialized in drug discovery and molecular design. "
        "Generate novel drug molecules with detailed properties and analysis."
    )
    temperature = 0.7

    @property
    def name(self) -> str:
        return "drug_discovery"

    async def generate(self, disease: str, target: str, count: int = 3) -> AnalysisResult:
        disease = require_text(disease, "Disease")
        target = require_text(target, "Target")
        if not 1 <= count <= MAX_MOLECULES:
            raise ValueError(f"count must be between 1 and {MAX_MOLECULES}")

        return await self._generate(
            ReportKind.MOLECULES,
            MOLECULES_PROMPT.format(count=count, disease=disease, target=target),
        )
