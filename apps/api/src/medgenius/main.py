"""
MedGenius API - Main FastAPI application.

Entry point for the MedGenius backend server.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, TypeVar

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field, model_validator

from medgenius import __version__
from medgenius.auth import create_access_token, hash_password, verify_password
from medgenius.clients import FAERSClient, PubChemClient
from medgenius.config import get_settings
from medgenius.core.errors import AuthError, MedGeniusError, ParseError
from medgenius.core.models import (
    Activity,
    ActivityType,
    AnalysisResult,
    Compound,
    DrugStats,
    InteractionStats,
    OverallStats,
    User,
    UserRecord,
    UserRole,
)
from medgenius.core.normalizer import ResponseNormalizer
from medgenius.core.render import build_report
from medgenius.middleware import BearerAuthMiddleware
from medgenius.providers import ChatProvider, OpenAIProvider
from medgenius.services import (
    DrugDiscoveryService,
    DrugInfoService,
    DrugRecommendationService,
    PatientAnalysisService,
    StatsService,
)
from medgenius.storage import (
    ActivityStore,
    SessionCache,
    TTLCache,
    UsersStore,
    close_database,
    get_database,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

PATIENT_ANALYSIS_KEY = "patientAnalysis"

# Global instances
settings = get_settings()
session_cache = SessionCache(idle_timeout=settings.session_idle_timeout_seconds)
users_store: UsersStore | None = None
activity_store: ActivityStore | None = None
provider: ChatProvider | None = None
patient_service: PatientAnalysisService | None = None
recommendation_service: DrugRecommendationService | None = None
drug_info_service: DrugInfoService | None = None
discovery_service: DrugDiscoveryService | None = None
stats_service: StatsService | None = None
pubchem_client: PubChemClient | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - setup and teardown."""
    global users_store, activity_store, provider, pubchem_client, stats_service
    global patient_service, recommendation_service, drug_info_service, discovery_service

    # Initialize database
    database = await get_database()
    users_store = UsersStore(database)
    activity_store = ActivityStore(database)

    # Chat provider and the services built on it
    provider = OpenAIProvider(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
    if not settings.openai_api_key:
        logger.warning("No OpenAI API key configured; AI lookups will fail with 503")

    normalizer = ResponseNormalizer(containers_only=settings.normalizer_containers_only)
    service_args = dict(provider=provider, model=settings.openai_model, normalizer=normalizer)
    patient_service = PatientAnalysisService(**service_args)
    recommendation_service = DrugRecommendationService(**service_args)
    drug_info_service = DrugInfoService(**service_args)
    discovery_service = DrugDiscoveryService(**service_args)

    # External data sources
    pubchem_client = PubChemClient(base_url=settings.pubchem_base_url)
    faers_client = FAERSClient(api_key=settings.fda_api_key, base_url=settings.fda_base_url)
    stats_service = StatsService(faers_client, TTLCache(ttl_seconds=settings.stats_cache_ttl_seconds))

    yield

    # Cleanup
    await provider.close()
    await pubchem_client.close()
    await faers_client.close()
    await close_database()


logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

app = FastAPI(
    title=f"{settings.app_name} API",
    description="AI-assisted patient analysis, drug lookups and adverse-event statistics",
    version=__version__,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(BearerAuthMiddleware)

# CORS is added last so it wraps the auth middleware and answers preflights
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# =============================================================================
# Error Handling
# =============================================================================


@app.exception_handler(MedGeniusError)
async def medgenius_error_handler(request: Request, exc: MedGeniusError) -> JSONResponse:
    """Convert domain errors into user-facing responses."""
    content: dict[str, Any] = {"detail": exc.message, "retryable": exc.retryable}
    if isinstance(exc, ParseError):
        content["raw_output"] = exc.raw_text
    if exc.status_code >= 500:
        logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Invalid input rejected by a service."""
    return JSONResponse(status_code=400, content={"detail": str(exc), "retryable": False})


def _ready(instance: T | None) -> T:
    if instance is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return instance


def _current_user_id(request: Request) -> str:
    """User id set by BearerAuthMiddleware; each call counts as session activity."""
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise AuthError()
    session_cache.touch(user_id)
    return user_id


async def _record(
    user_id: str, type: ActivityType, description: str, details: str | None = None
) -> None:
    if activity_store:
        await activity_store.add(user_id, type, description, details)


# =============================================================================
# Request/Response Models
# =============================================================================


class RegisterRequest(BaseModel):
    """Request body for /api/auth/register."""
    email: str
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    role: UserRole | None = None


class LoginRequest(BaseModel):
    """Request body for /api/auth/login."""
    email: str
    password: str


class AuthResponse(BaseModel):
    """Response for register and login."""
    message: str
    user: User
    token: str


class PatientAnalysisRequest(BaseModel):
    """Request body for /api/analysis/patient."""
    patient_info: str


class RecommendationRequest(BaseModel):
    """Request body for /api/drugs/recommendations.

    With neither field set, the patient information of the cached
    patient analysis is used.
    """
    patient_info: str | None = None
    disease: str | None = None

    @model_validator(mode="after")
    def check_single_source(self) -> "RecommendationRequest":
        if self.patient_info and self.disease:
            raise ValueError("Provide either patient_info or disease, not both")
        return self


class InteractionRequest(BaseModel):
    """Request body for /api/drugs/interactions."""
    drug_a: str
    drug_b: str


class DiscoveryRequest(BaseModel):
    """Request body for /api/drugs/discovery."""
    disease: str
    target: str
    count: int = 3


class CachedAnalysisResponse(BaseModel):
    """Cached patient analysis."""
    analysis: AnalysisResult
    patient_info: str
    is_placeholder: bool


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/health")
async def health() -> dict[str, str]:
    """Basic health check."""
    return {"status": "healthy", "version": __version__}


@app.get("/api/health")
async def api_health() -> dict[str, str]:
    """Health check under the API prefix."""
    return {"status": "ok", "message": "Backend is running"}


# =============================================================================
# Auth Endpoints
# =============================================================================


@app.post("/api/auth/register", response_model=AuthResponse, status_code=201)
async def register(request: RegisterRequest) -> AuthResponse:
    """Create an account and return a session token."""
    store = _ready(users_store)

    # bcrypt blocks; run it off the event loop
    password_hash = await run_in_threadpool(hash_password, request.password)
    record = UserRecord(
        email=request.email,
        name=request.name.strip(),
        role=request.role or UserRole.PATIENT,
        password_hash=password_hash,
    )
    await store.create(record)
    logger.info(f"Registered user {record.id}")

    return AuthResponse(
        message="Registration successful",
        user=record.public(),
        token=create_access_token(record.id),
    )


@app.post("/api/auth/login", response_model=AuthResponse)
async def login(request: LoginRequest) -> AuthResponse:
    """Exchange credentials for a session token."""
    store = _ready(users_store)

    record = await store.get_by_email(request.email)
    # Same message for unknown email and wrong password
    if record is None or not await run_in_threadpool(
        verify_password, request.password, record.password_hash
    ):
        raise AuthError("Invalid email or password")

    return AuthResponse(
        message="Login successful",
        user=record.public(),
        token=create_access_token(record.id),
    )


@app.get("/api/auth/me", response_model=User)
async def me(request: Request) -> User:
    """The user the bearer token was issued for."""
    store = _ready(users_store)

    record = await store.get(_current_user_id(request))
    if record is None:
        raise AuthError()
    return record.public()


@app.post("/api/auth/logout")
async def logout(request: Request) -> dict[str, str]:
    """Drop the user's cached analyses."""
    session_cache.clear_owner(_current_user_id(request))
    return {"message": "Logged out"}


# =============================================================================
# Analysis Endpoints
# =============================================================================


@app.post("/api/analysis/patient", response_model=AnalysisResult)
async def analyze_patient(body: PatientAnalysisRequest, request: Request) -> AnalysisResult:
    """Run a patient analysis and cache it for the session."""
    user_id = _current_user_id(request)
    service = _ready(patient_service)

    result = await service.analyze(body.patient_info)
    session_cache.put(
        user_id,
        PATIENT_ANALYSIS_KEY,
        {"analysis": result, "patient_info": body.patient_info.strip()},
        is_placeholder=result.is_placeholder,
    )
    await _record(
        user_id,
        ActivityType.ANALYSIS,
        "Patient analysis",
        f"Found {len(result.data.get('diagnosis') or [])} possible condition(s)",
    )
    return result


@app.get("/api/analysis/patient", response_model=CachedAnalysisResponse)
async def cached_patient_analysis(request: Request) -> CachedAnalysisResponse:
    """The patient analysis cached for this session."""
    entry = session_cache.get(_current_user_id(request), PATIENT_ANALYSIS_KEY)
    if entry is None:
        raise HTTPException(status_code=404, detail="No patient analysis in this session")
    return CachedAnalysisResponse(
        analysis=entry.value["analysis"],
        patient_info=entry.value["patient_info"],
        is_placeholder=entry.is_placeholder,
    )


@app.get("/api/analysis/patient/report", response_class=PlainTextResponse)
async def patient_analysis_report(request: Request) -> PlainTextResponse:
    """Plain-text report of the cached patient analysis."""
    user_id = _current_user_id(request)
    entry = session_cache.get(user_id, PATIENT_ANALYSIS_KEY)
    if entry is None:
        raise HTTPException(status_code=404, detail="No patient analysis in this session")

    analysis: AnalysisResult = entry.value["analysis"]
    report = build_report(
        "Patient Analysis Report",
        analysis.data,
        patient_info=entry.value["patient_info"],
        is_placeholder=entry.is_placeholder,
        generated_at=analysis.created_at,
    )
    await _record(user_id, ActivityType.DOWNLOAD, "Patient analysis report")
    return PlainTextResponse(
        report,
        headers={"Content-Disposition": 'attachment; filename="patient-analysis.txt"'},
    )


# =============================================================================
# Drug Endpoints
# =============================================================================


@app.post("/api/drugs/recommendations", response_model=AnalysisResult)
async def recommend_drugs(body: RecommendationRequest, request: Request) -> AnalysisResult:
    """Drug recommendations for a disease, a patient, or the cached patient analysis."""
    user_id = _current_user_id(request)
    service = _ready(recommendation_service)

    if body.disease:
        result = await service.for_disease(body.disease)
        subject = body.disease
    else:
        patient_info = body.patient_info
        if not patient_info:
            entry = session_cache.get(user_id, PATIENT_ANALYSIS_KEY)
            if entry is None:
                raise HTTPException(
                    status_code=400,
                    detail="Provide patient_info or disease, or run a patient analysis first",
                )
            patient_info = entry.value["patient_info"]
        result = await service.for_patient(patient_info)
        subject = "patient"

    await _record(user_id, ActivityType.ANALYSIS, f"Drug recommendations for {subject}")
    return result


@app.get("/api/drugs/interactions/stats", response_model=InteractionStats)
async def interaction_stats(
    request: Request,
    drug_a: str = Query(..., min_length=1),
    drug_b: str = Query(..., min_length=1),
    allow_placeholder: bool = Query(default=False),
) -> InteractionStats:
    """FAERS statistics for reports naming both drugs."""
    _current_user_id(request)
    return await _ready(stats_service).interaction_stats(
        drug_a, drug_b, allow_placeholder=allow_placeholder
    )


@app.post("/api/drugs/interactions", response_model=AnalysisResult)
async def drug_interactions(body: InteractionRequest, request: Request) -> AnalysisResult:
    """AI analysis of interactions between two drugs."""
    user_id = _current_user_id(request)
    result = await _ready(drug_info_service).interactions(body.drug_a, body.drug_b)
    await _record(
        user_id,
        ActivityType.ANALYSIS,
        f"Drug interaction check: {body.drug_a} + {body.drug_b}",
        f"Found {len(result.data)} interaction(s)",
    )
    return result


@app.post("/api/drugs/discovery", response_model=AnalysisResult)
async def drug_discovery(body: DiscoveryRequest, request: Request) -> AnalysisResult:
    """Generate candidate molecules for a disease and target."""
    user_id = _current_user_id(request)
    result = await _ready(discovery_service).generate(body.disease, body.target, body.count)
    await _record(
        user_id,
        ActivityType.ANALYSIS,
        f"Molecule generation for {body.disease}",
        f"Generated {len(result.data)} molecule(s)",
    )
    return result


@app.get("/api/drugs/{name}/info", response_model=AnalysisResult)
async def drug_info(name: str, request: Request) -> AnalysisResult:
    """AI drug profile."""
    user_id = _current_user_id(request)
    result = await _ready(drug_info_service).describe(name)
    await _record(user_id, ActivityType.SEARCH, f"Drug information for {name}")
    return result


@app.get("/api/drugs/{name}/side-effects", response_model=AnalysisResult)
async def drug_side_effects(name: str, request: Request) -> AnalysisResult:
    """AI side-effect analysis."""
    user_id = _current_user_id(request)
    result = await _ready(drug_info_service).side_effects(name)
    await _record(
        user_id,
        ActivityType.ANALYSIS,
        f"Side effects analysis for {name}",
        f"Found {len(result.data)} potential side effects",
    )
    return result


@app.get("/api/drugs/{name}/side-effects/report", response_class=PlainTextResponse)
async def drug_side_effects_report(
    name: str,
    request: Request,
    allow_placeholder: bool = Query(default=False),
) -> PlainTextResponse:
    """Plain-text report combining the AI side-effect analysis with FAERS statistics."""
    user_id = _current_user_id(request)
    analysis = await _ready(drug_info_service).side_effects(name)
    stats = await _ready(stats_service).drug_stats(name, allow_placeholder=allow_placeholder)

    report = build_report(
        f"Side Effects Report: {name}",
        {
            "sideEffects": analysis.data,
            "adverseEventReports": stats.model_dump(
                exclude={"drug", "is_placeholder", "placeholder_reason"}
            ),
        },
        is_placeholder=analysis.is_placeholder or stats.is_placeholder,
        generated_at=analysis.created_at,
    )
    await _record(user_id, ActivityType.DOWNLOAD, f"Side effects report for {name}")
    return PlainTextResponse(
        report,
        headers={"Content-Disposition": 'attachment; filename="side-effects-report.txt"'},
    )


@app.get("/api/drugs/{name}/stats", response_model=DrugStats)
async def drug_stats(
    name: str,
    request: Request,
    allow_placeholder: bool = Query(default=False),
) -> DrugStats:
    """FAERS adverse-event statistics for one drug."""
    _current_user_id(request)
    return await _ready(stats_service).drug_stats(name, allow_placeholder=allow_placeholder)


@app.get("/api/stats/overall", response_model=OverallStats)
async def overall_stats(
    request: Request,
    year: int | None = Query(default=None, ge=2004),
    allow_placeholder: bool = Query(default=False),
) -> OverallStats:
    """Year-level FAERS totals (defaults to last year)."""
    _current_user_id(request)
    year = year or datetime.now(timezone.utc).year - 1
    return await _ready(stats_service).overall_stats(year, allow_placeholder=allow_placeholder)


@app.get("/api/compounds/{name}", response_model=Compound)
async def compound(name: str, request: Request) -> Compound:
    """Compound identifiers, properties and structure image."""
    user_id = _current_user_id(request)
    result = await _ready(pubchem_client).get_compound(name)
    await _record(user_id, ActivityType.SEARCH, f"Compound lookup for {name}")
    return result


# =============================================================================
# Activity Endpoints
# =============================================================================


@app.get("/api/activities", response_model=list[Activity])
async def list_activities(
    request: Request,
    limit: int = Query(default=20, ge=1, le=20),
) -> list[Activity]:
    """The user's recent activity, newest first."""
    return await _ready(activity_store).list(_current_user_id(request), limit=limit)


@app.delete("/api/activities")
async def clear_activities(request: Request) -> dict[str, int]:
    """Clear the user's activity feed."""
    removed = await _ready(activity_store).clear(_current_user_id(request))
    return {"removed": removed}


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    uvicorn.run("medgenius.main:app", host=settings.api_host, port=settings.api_port)
