from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from decimal import Decimal
from typing import Any, ClassVar, Literal
import json
from pathlib import Path
import os


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"

    # Database URL
    # Use an absolute path so running the app from different directories
    # (e.g., repo root or backend/) always resolves the same DB file.
    BASE_DIR: ClassVar[Path] = Path(__file__).resolve().parents[2]
    SQLALCHEMY_DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'surgery_booking.db'}"

    # CORS origins
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    CORS_ALLOW_ALL: bool = False

    # Default currency code used across the application
    DEFAULT_CURRENCY: str = "INR"

    # Pricing. "fixed" charges the flat procedure/provider fees below for every
    # booking; "record" reads them from the selected surgery/surgeon records and
    # only falls back to the flat fees when a record carries no amount.
    PRICING_POLICY: Literal["fixed", "record"] = "fixed"
    FIXED_PROCEDURE_FEE: Decimal = Decimal("200000")
    FIXED_PROVIDER_FEE: Decimal = Decimal("50000")
    DEPOSIT_RATE: Decimal = Decimal("0.05")

    # Registration outage policy: when True a placeholder patient id is issued
    # so the journey can continue; when False the identity stage blocks.
    IDENTITY_FALLBACK_ENABLED: bool = True

    # Upstream collaborators
    CATALOG_API_URL: str = "http://localhost:8001/api"
    REGISTRATION_API_URL: str = "http://localhost:8001/api/patients"
    COLLABORATOR_TIMEOUT: float = 5.0

    # Number of recent action ids remembered per journey for duplicate suppression
    JOURNEY_ACTION_HISTORY: int = 64

    LOG_LEVEL: str = "INFO"

    @field_validator("CORS_ORIGINS", mode="before")
    def split_origins(cls, v: Any) -> list[str]:
        """Parse comma-separated or JSON list of origins from environment."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("CATALOG_API_URL", "REGISTRATION_API_URL", mode="before")
    def strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().rstrip("/")
        return v

    @field_validator("DEPOSIT_RATE")
    def deposit_rate_is_fraction(cls, v: Decimal) -> Decimal:
        if v < 0 or v > 1:
            raise ValueError("DEPOSIT_RATE must be between 0 and 1")
        return v

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=True,
    )


def load_settings() -> "Settings":
    return Settings(_env_file=os.getenv("ENV_FILE", str(Path(__file__).resolve().parents[3] / ".env")))


settings = load_settings()


def _cors_origins() -> list[str]:
    if settings.CORS_ALLOW_ALL:
        return ["*"]
    seen: set[str] = set()
    ordered: list[str] = []
    for item in settings.CORS_ORIGINS:
        key = item.strip().rstrip("/")
        if not key or key in seen:
            continue
        seen.add(key)
        ordered.append(key)
    return ordered


CORS_ORIGINS = _cors_origins()
