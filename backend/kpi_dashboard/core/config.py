from functools import lru_cache

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OfficeSettings(BaseModel):
    id: str
    name: str
    location: str = ""
    color: str = "#1976d2"
    api_key: str = ""
    # Per-office override of CRM_BASE_URL.
    base_url: str = ""


def _default_offices() -> list[OfficeSettings]:
    return [
        OfficeSettings(id="guilford", name="Guilford", location="Guilford, CT", color="#1976d2"),
        OfficeSettings(id="stamford", name="Stamford", location="Stamford, CT", color="#2e7d32"),
    ]


class Settings(BaseSettings):
    # Load backend/.env first, then the repo-root .env.
    model_config = SettingsConfigDict(env_file=(".env", "../.env"), case_sensitive=True, extra="ignore")

    PROJECT_NAME: str = "Contractor KPI Dashboard"
    ENVIRONMENT: str = "development"
    API_V1_STR: str = "/api/v1"
    ENABLE_API_DOCS: bool = False

    BACKEND_CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    ALLOWED_HOSTS: list[str] = Field(default_factory=lambda: ["localhost", "127.0.0.1", "testserver"])

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    CRM_BASE_URL: str = "https://app.jobnimbus.com/api1"
    CRM_TIMEOUT_SECONDS: float = 15
    FETCH_PAGE_SIZE: int = 50
    CRM_SUMMARY_ENABLED: bool = True

    # JSON list in the environment, e.g. OFFICES='[{"id": "guilford", "name": "Guilford", "api_key": "..."}]'
    OFFICES: list[OfficeSettings] = Field(default_factory=_default_offices)
    DEFAULT_OFFICE: str = "guilford"

    # "current-year" starts on Jan 1 of this year, whatever today's date is.
    CURRENT_YEAR_ANCHOR: int = 2025
    RETRY_DELAY_SECONDS: float = 3
    ANALYTICS_SEED: int | None = None
    CACHE_TTL_SECONDS: float = 60
    DASHBOARD_RATE_LIMIT: str = "30/minute"

    @model_validator(mode="after")
    def _prod_guards(self):
        if self.ENVIRONMENT.lower() == "production":
            if self.ENABLE_API_DOCS:
                raise ValueError("ENABLE_API_DOCS must be false in production")
            if any(h == "*" for h in self.ALLOWED_HOSTS):
                raise ValueError('ALLOWED_HOSTS must not contain "*" in production')
            missing = [o.id for o in self.OFFICES if not o.api_key]
            if missing:
                raise ValueError(f"api_key missing for offices: {', '.join(missing)}")
        elif not self.ALLOWED_HOSTS:
            self.ALLOWED_HOSTS = ["*"]

        ids = [o.id for o in self.OFFICES]
        if len(set(ids)) != len(ids):
            raise ValueError("OFFICES ids must be unique")
        if ids and self.DEFAULT_OFFICE not in ids:
            raise ValueError(f"DEFAULT_OFFICE {self.DEFAULT_OFFICE!r} is not a configured office")
        return self

    def office(self, office_id: str) -> OfficeSettings | None:
        return next((o for o in self.OFFICES if o.id == office_id), None)


@lru_cache
def get_settings() -> Settings:
    return Settings()
