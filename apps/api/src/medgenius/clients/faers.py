"""
openFDA FAERS client - Adverse-event statistics.

Each lookup combines two queries against drug/event.json:
a count query for the most reported reactions, and the 100 most recent
reports, from which serious-event, severity and recency figures are
tallied. Failures raise NetworkError; substituting placeholder figures
is the caller's decision (see StatsService).
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from medgenius.core.errors import NetworkError
from medgenius.core.models import DrugStats, InteractionStats, OverallStats, SeverityBreakdown

logger = logging.getLogger(__name__)

REACTION_COUNT_FIELD = "patient.reaction.reactionmeddrapt.exact"
RECENT_WINDOW = timedelta(days=30)
REPORT_LIMIT = 100

# openFDA answers 404 when a search matches nothing
EMPTY_RESULT: dict[str, Any] = {"results": [], "meta": {"results": {"total": 0}}}


def _drug_clause(drug: str) -> str:
    return f'patient.drug.medicinalproduct:"{drug.replace(chr(34), "").strip()}"'


class FAERSClient:
    """Client for the openFDA adverse-event endpoint."""

    source = "faers"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = "https://api.fda.gov/drug/event.json",
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self._client = client or httpx.AsyncClient(timeout=30.0)

    async def _query(self, **params: Any) -> dict[str, Any]:
        """Run one openFDA query and return the decoded body."""
        if not self.api_key:
            raise NetworkError("FDA API key not configured", self.source, retryable=False)

        params = {k: v for k, v in params.items() if v is not None}
        params["api_key"] = self.api_key

        try:
            response = await self._client.get(self.base_url, params=params)
            if response.status_code == 404:
                return EMPTY_RESULT
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"openFDA error: {e.response.status_code}")
            raise NetworkError(f"openFDA error: {e.response.status_code}", self.source)
        except httpx.HTTPError as e:
            logger.warning(f"openFDA request failed: {e}")
            raise NetworkError("Cannot reach openFDA", self.source)
        except ValueError:
            raise NetworkError("openFDA returned a non-JSON body", self.source)

        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise NetworkError("Invalid openFDA response", self.source)
        return data

    async def _reports_and_counts(self, search: str) -> tuple[dict[str, Any], dict[str, Any]]:
        counts, reports = await asyncio.gather(
            self._query(search=search, count=REACTION_COUNT_FIELD),
            self._query(search=search, sort="receiptdate:desc", limit=REPORT_LIMIT),
        )
        return reports, counts

    async def get_drug_stats(self, drug: str, now: datetime | None = None) -> DrugStats:
        """Aggregate adverse-event statistics for one drug."""
        reports, counts = await self._reports_and_counts(_drug_clause(drug))
        now = now or datetime.now(timezone.utc)

        stats = DrugStats(drug=drug, total_reports=_total(reports))
        for report in _records(reports):
            if report.get("serious") == "1":
                stats.serious_events += 1
            _tally_severity(report, stats.severity_breakdown)
            if _is_recent(report.get("receiptdate"), now):
                stats.recent_reports += 1
            _tally_reactions(report, stats.common_reactions)

        _apply_reaction_counts(counts, stats.common_reactions)
        return stats

    async def get_interaction_stats(self, drug_a: str, drug_b: str) -> InteractionStats:
        """Aggregate adverse-event statistics for reports naming both drugs."""
        search = f"{_drug_clause(drug_a)} AND {_drug_clause(drug_b)}"
        reports, counts = await self._reports_and_counts(search)

        stats = InteractionStats(
            drug_a=drug_a,
            drug_b=drug_b,
            total_interactions=_total(reports),
        )
        for report in _records(reports):
            _tally_severity(report, stats.severity_breakdown)
            _tally_reactions(report, stats.common_reactions)

        _apply_reaction_counts(counts, stats.common_reactions)
        return stats

    async def get_overall_stats(self, year: int) -> OverallStats:
        """Year-level totals: all reports, fatal reports, serious reports."""
        window = f"receivedate:[{year}0101 TO {year}1231]"
        total, fatal, serious = await asyncio.gather(
            self._query(search=window, limit=1),
            self._query(search=f"{window} AND seriousnessdeath:1", limit=1),
            self._query(search=f"{window} AND serious:1", limit=1),
        )
        return OverallStats(
            year=year,
            fatal_events=_total(fatal),
            total_errors=_total(total),
            preventable_events=_total(serious),
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def _total(data: dict[str, Any]) -> int:
    try:
        return int(data["meta"]["results"]["total"])
    except (KeyError, TypeError, ValueError):
        return 0


def _records(data: dict[str, Any], field: str = "results") -> list[dict[str, Any]]:
    """Dict items of a list field; anything else in the list is skipped."""
    items = data.get(field)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _tally_severity(report: dict[str, Any], breakdown: SeverityBreakdown) -> None:
    if report.get("seriousnessdeath") == "1":
        breakdown.death += 1
    if report.get("seriousnesshospitalization") == "1":
        breakdown.hospitalization += 1
    if report.get("seriousnesslifethreatening") == "1":
        breakdown.life_threatening += 1
    if report.get("seriousnessdisabling") == "1":
        breakdown.disabling += 1


def _tally_reactions(report: dict[str, Any], reactions: dict[str, int]) -> None:
    patient = report.get("patient")
    if not isinstance(patient, dict):
        return
    for reaction in _records(patient, "reaction"):
        term = reaction.get("reactionmeddrapt")
        if isinstance(term, str) and term:
            key = term.lower()
            reactions[key] = reactions.get(key, 0) + 1


def _apply_reaction_counts(counts: dict[str, Any], reactions: dict[str, int]) -> None:
    """Overall counts from the count query replace per-sample tallies."""
    for result in _records(counts):
        term, count = result.get("term"), result.get("count")
        if isinstance(term, str) and term and isinstance(count, int) and count > 0:
            reactions[term.lower()] = count


def _is_recent(receiptdate: str | None, now: datetime) -> bool:
    """FAERS dates are YYYYMMDD strings."""
    if not isinstance(receiptdate, str) or not receiptdate:
        return False
    try:
        received = datetime.strptime(receiptdate, "%Y%m%d").replace(tzinfo=timezone.utc)
    except ValueError:
        return False
    return received >= now - RECENT_WINDOW
