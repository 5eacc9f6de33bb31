"""MedGenius configuration management."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "MedGenius"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 5000

    # Database - local SQLite document store for users and activities
    database_url: str = "sqlite+aiosqlite:///./medgenius.db"

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:8082,http://localhost:5173,http://localhost:3000"

    # Chat completion provider (BYOK)
    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-3.5-turbo"

    # Re-parse only strings that look like JSON objects/arrays
    normalizer_containers_only: bool = False

    # openFDA FAERS
    fda_api_key: str | None = None
    fda_base_url: str = "https://api.fda.gov/drug/event.json"
    stats_cache_ttl_seconds: int = 3600

    # PubChem PUG REST
    pubchem_base_url: str = "https://pubchem.ncbi.nlm.nih.gov/rest/pug"

    # Security
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7

    # Session cache is dropped after this much inactivity (30 minutes)
    session_idle_timeout_seconds: int = 1800

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def sqlite_path(self) -> str:
        """Filesystem path of the SQLite database."""
        if self.database_url.startswith("sqlite"):
            return self.database_url.split("///")[-1]
        return "./medgenius.db"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
