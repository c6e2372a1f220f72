"""
SignalOne - Runtime Configuration

Built once at process start and handed to the services that need it.
Nothing else in the package reads the environment.
"""
import os
from dataclasses import dataclass
from typing import Optional


DEV_SECRET = "signalone-dev-secret-change-in-production"

# Tokens are signed with the shared secret, so only HMAC algorithms apply
HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")


class ConfigurationError(ValueError):
    """Raised when a required setting is missing or malformed."""


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


@dataclass(frozen=True)
class Settings:
    """Process-wide settings. Immutable after construction."""
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 10
    refresh_token_expire_hours: int = 24

    github_client_id: str = ""
    github_client_secret: str = ""
    github_token_url: str = "https://github.com/login/oauth/access_token"
    github_api_url: str = "https://api.github.com"

    google_client_id: str = ""
    google_certs_url: str = "https://www.googleapis.com/oauth2/v1/certs"

    prediction_agent_url: Optional[str] = None
    http_timeout_seconds: float = 10.0

    database_url: str = "sqlite:///./signalone.db"
    mode: str = "local"
    refresh_checks_user: bool = False

    def __post_init__(self):
        if not self.secret_key:
            raise ConfigurationError("secret_key must not be empty")
        if self.algorithm not in HMAC_ALGORITHMS:
            raise ConfigurationError(
                f"algorithm must be one of {', '.join(HMAC_ALGORITHMS)}, got {self.algorithm!r}"
            )
        if self.access_token_expire_minutes <= 0:
            raise ConfigurationError("access_token_expire_minutes must be positive")
        if self.refresh_token_expire_hours <= 0:
            raise ConfigurationError("refresh_token_expire_hours must be positive")

    @property
    def is_local(self) -> bool:
        return self.mode == "local"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load settings from environment variables.

        Outside local mode the signing secret has no default; starting a
        deployed process without SIGNALONE_SECRET is a configuration error.
        """
        mode = os.getenv("MODE", "local")
        secret = os.getenv("SIGNALONE_SECRET")
        if not secret:
            if mode != "local":
                raise ConfigurationError("SIGNALONE_SECRET must be set when MODE is not 'local'")
            secret = DEV_SECRET

        return cls(
            secret_key=secret,
            algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 10),
            refresh_token_expire_hours=_env_int("REFRESH_TOKEN_EXPIRE_HOURS", 24),
            github_client_id=os.getenv("GITHUB_CLIENT_ID", ""),
            github_client_secret=os.getenv("GITHUB_CLIENT_SECRET", ""),
            github_token_url=os.getenv("GITHUB_TOKEN_URL", "https://github.com/login/oauth/access_token"),
            github_api_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
            google_client_id=os.getenv("GOOGLE_CLIENT_ID", ""),
            google_certs_url=os.getenv("GOOGLE_CERTS_URL", "https://www.googleapis.com/oauth2/v1/certs"),
            prediction_agent_url=os.getenv("PREDICTION_AGENT_URL") or None,
            http_timeout_seconds=float(_env_int("HTTP_TIMEOUT_SECONDS", 10)),
            database_url=os.getenv("DATABASE_URL", "sqlite:///./signalone.db"),
            mode=mode,
            refresh_checks_user=_env_bool("REFRESH_CHECKS_USER", False),
        )
