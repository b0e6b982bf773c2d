"""Environment-driven settings.

The backend URL and API key are required; a process that starts without
them cannot talk to the data backend at all, so their absence is fatal.
"""

import os

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ConfigurationError(RuntimeError):
    """Raised at startup when required settings are missing or invalid."""


class Settings(BaseModel):
    """Application settings populated from environment variables."""

    model_config = ConfigDict(frozen=True)

    supabase_url: str = Field(..., description="Base URL of the hosted backend")
    supabase_anon_key: str = Field(..., description="Static API key sent on every call")
    sweep_interval_seconds: float = Field(default=60.0, gt=0)
    http_timeout_seconds: float | None = Field(
        default=30.0, description="Per-request timeout; None disables it"
    )
    init_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Safety timer that force-unblocks the initial load"
    )
    log_level: str = Field(default="INFO")

    @property
    def rest_url(self) -> str:
        """Base URL of the REST data API."""
        return f"{self.supabase_url.rstrip('/')}/rest/v1"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment.

        Raises:
            ConfigurationError: If SUPABASE_URL or SUPABASE_ANON_KEY is missing,
                or a numeric setting cannot be parsed or is out of range
        """
        errors = []
        url = os.environ.get("SUPABASE_URL", "").strip()
        key = os.environ.get("SUPABASE_ANON_KEY", "").strip()
        if not url:
            errors.append("SUPABASE_URL is not set")
        if not key:
            errors.append("SUPABASE_ANON_KEY is not set")

        try:
            sweep = float(os.getenv("HOTEL_SWEEP_INTERVAL_SECONDS", "60"))
            timeout = float(os.getenv("HOTEL_HTTP_TIMEOUT_SECONDS", "30"))
            init_timeout = float(os.getenv("HOTEL_INIT_TIMEOUT_SECONDS", "10"))
        except ValueError as e:
            errors.append(f"invalid numeric setting: {e}")
            sweep, timeout, init_timeout = 60.0, 30.0, 10.0

        if errors:
            raise ConfigurationError(
                "Missing or invalid environment variables: " + "; ".join(errors)
            )

        try:
            return cls(
                supabase_url=url,
                supabase_anon_key=key,
                sweep_interval_seconds=sweep,
                http_timeout_seconds=timeout if timeout > 0 else None,
                init_timeout_seconds=init_timeout,
                log_level=os.getenv("LOG_LEVEL", "INFO"),
            )
        except ValidationError as e:
            fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in e.errors())
            raise ConfigurationError(f"Invalid settings: {fields}") from e


# Module-level singleton, resolved once per process
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the process-wide settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Reset the singleton (for testing only)."""
    global _settings
    _settings = None
