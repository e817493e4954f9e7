"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from decimal import Decimal
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class HaciendaSettings(BaseSettings):
    """Tax authority (Ministerio de Hacienda) reception API configuration."""

    model_config = SettingsConfigDict(env_prefix="HACIENDA_")

    environment: Literal["sandbox", "production"] = "sandbox"

    sandbox_url: str = "https://api-sandbox.comprobanteselectronicos.go.cr/recepcion/v1"
    production_url: str = "https://api.comprobanteselectronicos.go.cr/recepcion/v1"
    sandbox_token_url: str = (
        "https://idp.comprobanteselectronicos.go.cr/auth/realms/rut-stag/protocol/openid-connect/token"
    )
    production_token_url: str = (
        "https://idp.comprobanteselectronicos.go.cr/auth/realms/rut/protocol/openid-connect/token"
    )
    public_api_url: str = "https://api.hacienda.go.cr"

    client_id: str = "api-stag"
    username: str = ""
    password: str = ""

    # Accept locally instead of calling the reception API
    simulate: bool = True
    simulate_delay: float = 1.0

    timeout: int = 30
    token_retries: int = 3

    # Cédula of the software provider, emitted as ProveedorSistemas
    systems_provider_id: str = "3102928079"

    @property
    def reception_url(self) -> str:
        return self.production_url if self.environment == "production" else self.sandbox_url

    @property
    def token_url(self) -> str:
        if self.environment == "production":
            return self.production_token_url
        return self.sandbox_token_url

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


class SequenceSettings(BaseSettings):
    """Consecutive number and document key configuration."""

    model_config = SettingsConfigDict(env_prefix="SEQUENCE_")

    default_branch: str = "001"
    default_terminal: str = "00001"
    country_code: str = "506"
    situation: Literal["1", "2", "3"] = "1"

    # "per_company": one stable code per issuer, "per_document": fresh code per key
    security_code_policy: Literal["per_company", "per_document"] = "per_company"


class ExchangeSettings(BaseSettings):
    """Exchange rate source configuration."""

    model_config = SettingsConfigDict(env_prefix="EXCHANGE_")

    api_url: str = "https://api.hacienda.go.cr/indicadores/tc"
    timeout: int = 10
    max_retries: int = 3
    retry_delay: float = 1.0

    # Used only when the source has never answered
    fallback_usd: Decimal = Decimal("506.00")
    fallback_eur: Decimal = Decimal("567.23")
    use_fallback: bool = True


class SigningSettings(BaseSettings):
    """External XAdES signing service configuration."""

    model_config = SettingsConfigDict(env_prefix="SIGNING_")

    service_url: str = ""
    certificate_path: str = ""
    certificate_pin: str = ""
    timeout: int = 30

    @property
    def is_configured(self) -> bool:
        return bool(self.service_url and self.certificate_path)


class EmailSettings(BaseSettings):
    """E-mail dispatch API configuration."""

    model_config = SettingsConfigDict(env_prefix="EMAIL_")

    enabled: bool = True
    api_url: str = "https://api.emailjs.com/api/v1.0/email/send"
    service_id: str = ""
    template_id: str = ""
    user_id: str = ""
    access_token: str = ""
    sender_email: str = "facturacion@example.com"
    sender_name: str = "Sistema de Facturación"
    timeout: int = 30

    @property
    def is_configured(self) -> bool:
        return bool(self.service_id and self.template_id and self.user_id)


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "facturacr.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "FacturaCR"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    timezone: str = "America/Costa_Rica"

    # Sub-settings
    hacienda: HaciendaSettings = Field(default_factory=HaciendaSettings)
    sequence: SequenceSettings = Field(default_factory=SequenceSettings)
    exchange: ExchangeSettings = Field(default_factory=ExchangeSettings)
    signing: SigningSettings = Field(default_factory=SigningSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
