"""Tests for the HTTP API."""

import json
import threading
from datetime import timedelta

import httpx
import pytest
from conftest import ScriptedProvider

from medgenius import main
from medgenius.auth import create_access_token, decode_access_token
from medgenius.clients import FAERSClient, PubChemClient
from medgenius.core.errors import NetworkError
from medgenius.core.models import DrugStats
from medgenius.services import (
    DrugInfoService,
    DrugRecommendationService,
    PatientAnalysisService,
    StatsService,
)
from medgenius.storage import ActivityStore, SessionCache, UsersStore
from medgenius.storage.database import Database

ANALYSIS = {
    "diagnosis": [{"condition": "Migraine", "confidenceLevel": "High"}],
    "riskFactors": [{"factor": "Stress", "impact": "Medium"}],
    "recommendations": [{"recommendation": "Hydrate", "priority": "High"}],
    "nextSteps": [{"step": "Neurology referral", "timeline": "2 weeks"}],
}


class FailingFAERSClient(FAERSClient):
    async def get_drug_stats(self, drug: str, now=None) -> DrugStats:
        raise NetworkError("Cannot reach openFDA", self.source)


class StubFAERSClient(FAERSClient):
    async def get_drug_stats(self, drug: str, now=None) -> DrugStats:
        return DrugStats(drug=drug, total_reports=4821, serious_events=120)


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
async def client(db: Database, provider: ScriptedProvider, monkeypatch):
    """API client wired to a temporary database and a scripted provider."""
    monkeypatch.setattr(main, "users_store", UsersStore(db))
    monkeypatch.setattr(main, "activity_store", ActivityStore(db))
    monkeypatch.setattr(main, "session_cache", SessionCache())
    monkeypatch.setattr(main, "patient_service", PatientAnalysisService(provider, "gpt-test"))
    monkeypatch.setattr(
        main, "recommendation_service", DrugRecommendationService(provider, "gpt-test")
    )
    monkeypatch.setattr(main, "drug_info_service", DrugInfoService(provider, "gpt-test"))
    monkeypatch.setattr(main, "stats_service", StatsService(FailingFAERSClient(api_key="k")))
    monkeypatch.setattr(
        main,
        "pubchem_client",
        PubChemClient(
            client=httpx.AsyncClient(
                transport=httpx.MockTransport(lambda r: httpx.Response(404, json={}))
            )
        ),
    )

    transport = httpx.ASGITransport(app=main.app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def register(
    client: httpx.AsyncClient, email: str = "ada@example.com", password: str = "secret123"
) -> dict:
    response = await client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "name": "Ada"},
    )
    assert response.status_code == 201
    return response.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestHealth:
    """Test public health endpoints."""

    @pytest.mark.asyncio
    async def test_api_health_is_public(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "message": "Backend is running"}


class TestAuth:
    """Test registration, login and token checks."""

    @pytest.mark.asyncio
    async def test_login_token_identifies_stored_user(self, client: httpx.AsyncClient) -> None:
        """The token subject is the registered user's id, and /me returns that user."""
        registered = await register(client)

        response = await client.post(
            "/api/auth/login", json={"email": "ADA@example.com", "password": "secret123"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == registered["user"]["id"]
        assert "password_hash" not in body["user"]
        assert decode_access_token(body["token"]) == registered["user"]["id"]

        me = await client.get("/api/auth/me", headers=bearer(body["token"]))
        assert me.status_code == 200
        assert me.json()["id"] == registered["user"]["id"]
        assert me.json()["email"] == "ada@example.com"

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_alike(
        self, client: httpx.AsyncClient
    ) -> None:
        await register(client)

        wrong = await client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "nope-nope"}
        )
        unknown = await client.post(
            "/api/auth/login", json={"email": "bob@example.com", "password": "secret123"}
        )

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json()["detail"] == unknown.json()["detail"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_password_hashing_runs_off_the_event_loop(
        self, client: httpx.AsyncClient, monkeypatch
    ) -> None:
        """bcrypt hash and verify run in worker threads, not the loop thread."""
        loop_thread = threading.get_ident()
        threads: list[int] = []
        real_hash, real_verify = main.hash_password, main.verify_password

        def hash_password(password: str) -> str:
            threads.append(threading.get_ident())
            return real_hash(password)

        def verify_password(password: str, password_hash: str) -> bool:
            threads.append(threading.get_ident())
            return real_verify(password, password_hash)

        monkeypatch.setattr(main, "hash_password", hash_password)
        monkeypatch.setattr(main, "verify_password", verify_password)

        await register(client)
        response = await client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "secret123"}
        )

        assert response.status_code == 200
        assert len(threads) == 2
        assert loop_thread not in threads

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client: httpx.AsyncClient) -> None:
        await register(client)

        response = await client.post(
            "/api/auth/register",
            json={"email": "ada@example.com", "password": "secret123", "name": "Ada"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    @pytest.mark.asyncio
    async def test_invalid_email(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/auth/register",
            json={"email": "not-an-email", "password": "secret123", "name": "Ada"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_token(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    @pytest.mark.asyncio
    async def test_tampered_token(self, client: httpx.AsyncClient) -> None:
        """A payload swapped under a valid signature is rejected."""
        registered = await register(client)
        header, _, signature = registered["token"].split(".")
        _, other_payload, _ = create_access_token("someone-else").split(".")

        response = await client.get(
            "/api/auth/me", headers=bearer(f"{header}.{other_payload}.{signature}")
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token(self, client: httpx.AsyncClient) -> None:
        registered = await register(client)
        token = create_access_token(registered["user"]["id"], expires_in=timedelta(seconds=-5))

        response = await client.get("/api/auth/me", headers=bearer(token))

        assert response.status_code == 401
        assert response.json()["detail"] == "Session expired"

    @pytest.mark.asyncio
    async def test_token_for_deleted_user(self, client: httpx.AsyncClient) -> None:
        """A valid token whose user no longer exists is not accepted by /me."""
        response = await client.get(
            "/api/auth/me", headers=bearer(create_access_token("no-such-user"))
        )

        assert response.status_code == 401


class TestPatientAnalysis:
    """Test analysis, session cache, report download and activity feed."""

    @pytest.mark.asyncio
    async def test_analysis_flow(self, client: httpx.AsyncClient, provider: ScriptedProvider) -> None:
        token = (await register(client))["token"]
        provider.outputs.append(f"```json\n{json.dumps(ANALYSIS)}\n```")

        analyzed = await client.post(
            "/api/analysis/patient",
            json={"patient_info": "Recurring headaches"},
            headers=bearer(token),
        )
        assert analyzed.status_code == 200
        assert analyzed.json()["data"] == ANALYSIS

        cached = await client.get("/api/analysis/patient", headers=bearer(token))
        assert cached.status_code == 200
        assert cached.json()["patient_info"] == "Recurring headaches"
        assert cached.json()["is_placeholder"] is False

        report = await client.get("/api/analysis/patient/report", headers=bearer(token))
        assert report.status_code == 200
        assert "attachment" in report.headers["content-disposition"]
        assert "PATIENT ANALYSIS REPORT" in report.text
        assert "Condition: Migraine" in report.text
        assert "PLACEHOLDER" not in report.text

        activities = await client.get("/api/activities", headers=bearer(token))
        assert [a["type"] for a in activities.json()] == ["download", "analysis"]

    @pytest.mark.asyncio
    async def test_parse_error_returns_raw_output(
        self, client: httpx.AsyncClient, provider: ScriptedProvider
    ) -> None:
        """Unparseable model output is a retryable 502 carrying the raw text."""
        token = (await register(client))["token"]
        provider.outputs.append("Sorry, I cannot help with that.")

        response = await client.post(
            "/api/analysis/patient",
            json={"patient_info": "Recurring headaches"},
            headers=bearer(token),
        )

        assert response.status_code == 502
        body = response.json()
        assert body["retryable"] is True
        assert body["raw_output"] == "Sorry, I cannot help with that."

    @pytest.mark.asyncio
    async def test_logout_clears_session_cache(
        self, client: httpx.AsyncClient, provider: ScriptedProvider
    ) -> None:
        token = (await register(client))["token"]
        provider.outputs.append(json.dumps(ANALYSIS))
        await client.post(
            "/api/analysis/patient", json={"patient_info": "Headaches"}, headers=bearer(token)
        )

        await client.post("/api/auth/logout", headers=bearer(token))
        response = await client.get("/api/analysis/patient", headers=bearer(token))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_recommendations_use_cached_patient_info(
        self, client: httpx.AsyncClient, provider: ScriptedProvider
    ) -> None:
        token = (await register(client))["token"]

        missing = await client.post("/api/drugs/recommendations", json={}, headers=bearer(token))
        assert missing.status_code == 400

        provider.outputs.append(json.dumps(ANALYSIS))
        await client.post(
            "/api/analysis/patient", json={"patient_info": "Chronic migraine"}, headers=bearer(token)
        )
        provider.outputs.append(json.dumps({"recommendations": [{"drugName": "Sumatriptan"}]}))

        response = await client.post("/api/drugs/recommendations", json={}, headers=bearer(token))

        assert response.status_code == 200
        assert response.json()["data"]["recommendations"][0]["drugName"] == "Sumatriptan"
        assert "Chronic migraine" in provider.requests[-1].messages[1]["content"]


class TestDrugEndpoints:
    """Test statistics and compound lookups."""

    @pytest.mark.asyncio
    async def test_stats_unavailable(self, client: httpx.AsyncClient) -> None:
        """openFDA failures are a 503 unless placeholders are requested."""
        token = (await register(client))["token"]

        response = await client.get("/api/drugs/aspirin/stats", headers=bearer(token))

        assert response.status_code == 503
        assert response.json()["retryable"] is True

    @pytest.mark.asyncio
    async def test_stats_placeholder_opt_in(self, client: httpx.AsyncClient) -> None:
        token = (await register(client))["token"]

        response = await client.get(
            "/api/drugs/aspirin/stats",
            params={"allow_placeholder": "true"},
            headers=bearer(token),
        )

        assert response.status_code == 200
        assert response.json()["is_placeholder"] is True
        assert response.json()["total_reports"] == 0

    @pytest.mark.asyncio
    async def test_side_effects_report(
        self, client: httpx.AsyncClient, provider: ScriptedProvider, monkeypatch
    ) -> None:
        """The report joins the AI side effects with the FAERS figures."""
        monkeypatch.setattr(main, "stats_service", StatsService(StubFAERSClient(api_key="k")))
        token = (await register(client))["token"]
        provider.outputs.append('[{"name": "Nausea", "probability": 0.2}]')

        response = await client.get("/api/drugs/aspirin/side-effects/report", headers=bearer(token))

        assert response.status_code == 200
        assert "side-effects-report.txt" in response.headers["content-disposition"]
        assert "SIDE EFFECTS REPORT: ASPIRIN" in response.text
        assert "Name: Nausea" in response.text
        assert "ADVERSE EVENT REPORTS" in response.text
        assert "Total Reports: 4821" in response.text
        assert "PLACEHOLDER" not in response.text

        activities = await client.get("/api/activities", headers=bearer(token))
        assert activities.json()[0]["type"] == "download"

    @pytest.mark.asyncio
    async def test_side_effects_report_placeholder_labelled(
        self, client: httpx.AsyncClient, provider: ScriptedProvider
    ) -> None:
        """Without openFDA the report is a 503, or labelled placeholder data when opted in."""
        token = (await register(client))["token"]
        provider.outputs.extend(['[{"name": "Nausea"}]', '[{"name": "Nausea"}]'])

        refused = await client.get("/api/drugs/aspirin/side-effects/report", headers=bearer(token))
        assert refused.status_code == 503

        response = await client.get(
            "/api/drugs/aspirin/side-effects/report",
            params={"allow_placeholder": "true"},
            headers=bearer(token),
        )

        assert response.status_code == 200
        assert "PLACEHOLDER DATA - not a real analysis result" in response.text
        assert "Name: Nausea" in response.text

    @pytest.mark.asyncio
    async def test_compound_not_found(self, client: httpx.AsyncClient) -> None:
        token = (await register(client))["token"]

        response = await client.get("/api/compounds/notacompound", headers=bearer(token))

        assert response.status_code == 404
        assert response.json()["retryable"] is False
