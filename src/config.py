"""
Configuration module for the Airflow reconciler.

Loads configuration from environment variables. The resulting objects are
passed explicitly to the transport client and the CLI.
"""

import os
from dataclasses import dataclass, field
from typing import List
from urllib.parse import urlparse

TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class AirflowConfig:
    """Airflow REST API connection and authentication settings."""

    base_endpoint: str = "http://localhost:8080"
    oauth2_token: str = field(default="", repr=False)  # Never log tokens
    username: str = ""
    password: str = field(default="", repr=False)
    disable_ssl_verification: bool = False
    request_timeout: int = 30  # seconds
    api_prefix: str = "/api/v2"

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        base_endpoint = os.getenv("AIRFLOW_BASE_ENDPOINT", "")
        if not base_endpoint:
            raise ValueError(
                "AIRFLOW_BASE_ENDPOINT environment variable must be set."
            )

        cfg = cls(
            base_endpoint=base_endpoint,
            oauth2_token=os.getenv("AIRFLOW_OAUTH2_TOKEN", ""),
            username=os.getenv("AIRFLOW_API_USERNAME", ""),
            password=os.getenv("AIRFLOW_API_PASSWORD", ""),
            disable_ssl_verification=os.getenv(
                "AIRFLOW_DISABLE_SSL_VERIFICATION", "false"
            ).lower()
            in TRUE_VALUES,
            request_timeout=int(os.getenv("AIRFLOW_REQUEST_TIMEOUT", "30")),
            api_prefix=os.getenv("AIRFLOW_API_PREFIX", "/api/v2"),
        )
        cfg.validate()
        return cfg

    def validate(self) -> None:
        """
        Check option constraints.

        Raises:
            ValueError: Listing every violated constraint.
        """
        errors: List[str] = []

        parsed = urlparse(self.base_endpoint)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(
                f"base_endpoint must be an http(s) URL, got '{self.base_endpoint}'"
            )
        if self.oauth2_token and (self.username or self.password):
            errors.append("oauth2_token conflicts with username/password")
        if self.username and not self.password:
            errors.append("found username for basic auth, but password not specified")
        if self.password and not self.username:
            errors.append("found password for basic auth, but username not specified")
        if self.request_timeout <= 0:
            errors.append("request_timeout must be positive")

        if errors:
            raise ValueError("; ".join(errors))

    @property
    def uses_basic_auth(self) -> bool:
        return bool(self.username)

    @property
    def api_url(self) -> str:
        """Base URL of the REST API, without trailing slash."""
        return self.base_endpoint.rstrip("/") + self.api_prefix.rstrip("/")


@dataclass
class Config:
    """Main configuration object."""

    airflow: AirflowConfig
    log_level: str = "INFO"
    state_file: str = "afctl.state.json"

    @classmethod
    def from_env(cls):
        """Load all configuration from environment variables."""
        return cls(
            airflow=AirflowConfig.from_env(),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            state_file=os.getenv("AIRFLOW_STATE_FILE", "afctl.state.json"),
        )

    @classmethod
    def default(cls):
        """Return default configuration."""
        return cls(airflow=AirflowConfig())


def load_config() -> Config:
    """Load configuration from the environment (no caching)."""
    return Config.from_env()
