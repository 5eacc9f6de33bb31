"""
Adverse-event statistics with an explicit cache and opt-in placeholders.

Real results are cached per drug (or drug pair) for the cache TTL.
When openFDA is unavailable the NetworkError propagates, unless the
caller passes allow_placeholder=True, in which case an all-zero result
tagged is_placeholder=True (with the reason) is returned instead.
Placeholders are never cached.
"""

import logging

from medgenius.clients.faers import FAERSClient
from medgenius.core.errors import NetworkError
from medgenius.core.models import (
    PLACEHOLDER_REACTIONS,
    DrugStats,
    InteractionStats,
    OverallStats,
)
from medgenius.services.base import require_text
from medgenius.storage.cache import TTLCache

logger = logging.getLogger(__name__)


def _placeholder_reactions() -> dict[str, int]:
    return {reaction: 0 for reaction in PLACEHOLDER_REACTIONS}


class StatsService:
    """FAERS statistics owned by the application, not by module state."""

    def __init__(self, client: FAERSClient, cache: TTLCache | None = None):
        self.client = client
        self.cache: TTLCache = cache or TTLCache(ttl_seconds=3600)

    async def drug_stats(self, drug: str, allow_placeholder: bool = False) -> DrugStats:
        drug = require_text(drug, "Drug name")
        key = f"drug:{drug.lower()}"

        entry = self.cache.get(key)
        if entry is not None:
            return entry.value

        try:
            stats = await self.client.get_drug_stats(drug)
        except NetworkError as e:
            if not allow_placeholder:
                raise
            logger.warning(f"Serving placeholder stats for {drug!r}: {e.message}")
            return DrugStats(
                drug=drug,
                common_reactions=_placeholder_reactions(),
                is_placeholder=True,
                placeholder_reason=e.message,
            )

        self.cache.set(key, stats)
        return stats

    async def interaction_stats(
        self, drug_a: str, drug_b: str, allow_placeholder: bool = False
    ) -> InteractionStats:
        drug_a = require_text(drug_a, "First drug name")
        drug_b = require_text(drug_b, "Second drug name")
        # Pair order does not matter
        key = "pair:" + "+".join(sorted([drug_a.lower(), drug_b.lower()]))

        entry = self.cache.get(key)
        if entry is not None:
            return entry.value

        try:
            stats = await self.client.get_interaction_stats(drug_a, drug_b)
        except NetworkError as e:
            if not allow_placeholder:
                raise
            logger.warning(f"Serving placeholder interaction stats for {drug_a!r}+{drug_b!r}: {e.message}")
            return InteractionStats(
                drug_a=drug_a,
                drug_b=drug_b,
                common_reactions=_placeholder_reactions(),
                is_placeholder=True,
                placeholder_reason=e.message,
            )

        self.cache.set(key, stats)
        return stats

    async def overall_stats(self, year: int, allow_placeholder: bool = False) -> OverallStats:
        key = f"overall:{year}"

        entry = self.cache.get(key)
        if entry is not None:
            return entry.value

        try:
            stats = await self.client.get_overall_stats(year)
        except NetworkError as e:
            if not allow_placeholder:
                raise
            logger.warning(f"Serving placeholder overall stats for {year}: {e.message}")
            return OverallStats(year=year, is_placeholder=True, placeholder_reason=e.message)

        self.cache.set(key, stats)
        return stats
