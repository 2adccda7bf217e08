"""Application configuration using Pydantic Settings with YAML support.

Non-secret configuration lives in YAML (``config/base`` plus per-environment
overrides). Provider credentials and the completion API key come from the
environment or ``.env`` only. Any nested value can be overridden from the
environment with ``__`` as delimiter, e.g. ``RESOLUTION__GLOBAL_DEADLINE=5``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_source import MultiYamlConfigSettingsSource


if TYPE_CHECKING:
    from pydantic_settings import PydanticBaseSettingsSource


# =============================================================================
# Nested Configuration Models (from YAML)
# =============================================================================


class AppSettings(BaseModel):
    """Application identity settings."""

    name: str = "Nutrition Resolver"
    version: str = "0.1.0"
    debug: bool = False


class ServerSettings(BaseModel):
    """Server configuration settings."""

    host: str = "127.0.0.1"
    port: int = 8000


class ApiSettings(BaseModel):
    """API configuration settings."""

    v1_prefix: str = "/api/v1/nutrition"
    cors_origins: list[str] = []


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "json"
    file: str | None = None


class MetricsSettings(BaseModel):
    """Metrics configuration settings."""

    enabled: bool = True


class ObservabilitySettings(BaseModel):
    """Observability configuration settings."""

    metrics: MetricsSettings = MetricsSettings()


class OllamaSettings(BaseModel):
    """Ollama completion endpoint."""

    url: str = "http://localhost:11434"
    model: str = "mistral:7b"
    timeout: float = 30.0
    max_retries: int = 1


class OpenRouterSettings(BaseModel):
    """OpenRouter (OpenAI-compatible) completion endpoint."""

    url: str = "https://openrouter.ai/api/v1"
    model: str = "openai/gpt-3.5-turbo"
    timeout: float = 20.0
    max_retries: int = 1
    requests_per_minute: float = 20.0
    referer: str = "https://github.com/nutrition-resolver"
    title: str = "Nutrition Resolver"


class LLMFallbackSettings(BaseModel):
    """Secondary completion provider used when the primary is unreachable."""

    enabled: bool = True
    secondary_provider: str | None = "ollama"


class LLMSettings(BaseModel):
    """AI fallback transport configuration."""

    enabled: bool = True
    provider: str = "openrouter"
    openrouter: OpenRouterSettings = OpenRouterSettings()
    ollama: OllamaSettings = OllamaSettings()
    fallback: LLMFallbackSettings = LLMFallbackSettings()


class ProviderSettings(BaseModel):
    """Connection settings shared by every external nutrition provider."""

    enabled: bool = True
    base_url: str
    timeout: float = Field(default=4.0, gt=0, description="Per-call timeout in seconds")
    requests_per_minute: float = Field(default=60.0, gt=0)


class ProvidersSettings(BaseModel):
    """Per-provider settings; less reliable sources get shorter timeouts."""

    usda_fdc: ProviderSettings = ProviderSettings(
        base_url="https://api.nal.usda.gov/fdc/v1", timeout=5.0
    )
    nutritionix: ProviderSettings = ProviderSettings(
        base_url="https://trackapi.nutritionix.com/v2", timeout=5.0
    )
    edamam: ProviderSettings = ProviderSettings(
        base_url="https://api.edamam.com/api", timeout=5.0
    )
    open_food_facts: ProviderSettings = ProviderSettings(
        base_url="https://world.openfoodfacts.org", timeout=4.0, requests_per_minute=100.0
    )
    barcode_lookup: ProviderSettings = ProviderSettings(
        base_url="https://api.barcodelookup.com/v3", timeout=3.0
    )
    upcitemdb: ProviderSettings = ProviderSettings(
        base_url="https://api.upcitemdb.com/prod/trial", timeout=3.0, requests_per_minute=6.0
    )


class LocalDatasetSettings(BaseModel):
    """Bundled product table loaded once at startup."""

    enabled: bool = True
    path: str | None = None


class ResolutionSettings(BaseModel):
    """Race controller and consensus tuning."""

    global_deadline: float = Field(default=8.0, gt=0)
    ai_fallback_enabled: bool = True
    ai_fallback_timeout: float = Field(default=20.0, gt=0)
    early_exit_min_score: float = 0.8
    early_exit_min_trust: float = 0.8
    consensus_tolerance: float = 0.15
    barcode_min_length: int = 8
    barcode_max_length: int = 14


class CacheSettings(BaseModel):
    """In-process result cache."""

    ttl_seconds: int = 24 * 60 * 60
    ai_ttl_seconds: int = 6 * 60 * 60
    max_entries: int | None = 5000


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """Application settings with YAML + environment variable support.

    Priority (highest to lowest): init kwargs, environment variables, .env,
    environment YAML, base YAML, defaults in code.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=False,
        env_nested_delimiter="__",
    )

    APP_ENV: str = "development"

    app: AppSettings = AppSettings()
    server: ServerSettings = ServerSettings()
    api: ApiSettings = ApiSettings()
    logging: LoggingSettings = LoggingSettings()
    observability: ObservabilitySettings = ObservabilitySettings()
    llm: LLMSettings = LLMSettings()
    providers: ProvidersSettings = ProvidersSettings()
    local_dataset: LocalDatasetSettings = LocalDatasetSettings()
    resolution: ResolutionSettings = ResolutionSettings()
    cache: CacheSettings = CacheSettings()

    # =========================================================================
    # Secrets (from environment / .env only - never in YAML)
    # =========================================================================
    USDA_FDC_API_KEY: str = ""
    NUTRITIONIX_APP_ID: str = ""
    NUTRITIONIX_APP_KEY: str = ""
    EDAMAM_APP_ID: str = ""
    EDAMAM_APP_KEY: str = ""
    BARCODE_LOOKUP_API_KEY: str = ""
    OPENROUTER_API_KEY: str = ""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the YAML source below env/.env and above secrets files."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            MultiYamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.APP_ENV == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.APP_ENV == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in test environment."""
        return self.APP_ENV == "test"


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()
