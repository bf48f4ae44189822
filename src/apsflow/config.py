"""Configuration: Frozen Config with explicit credential requirements."""

from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv

from apsflow._http import APS_BASE_URL
from apsflow.errors import ConfigurationError

load_dotenv()

_ACCESS_TOKEN_ENV_VAR = "APS_ACCESS_TOKEN"
_BASE_URL_ENV_VAR = "APS_BASE_URL"


@dataclass(frozen=True)
class Config:
    """Immutable configuration for apsflow execution.

    The access token is auto-resolved from ``APS_ACCESS_TOKEN``. Token
    acquisition and refresh are the host's job; apsflow only forwards it.

    Example:
        config = Config(continue_on_failure=True)
        # Token is automatically resolved from APS_ACCESS_TOKEN
    """

    #: Auto-resolved from ``APS_BASE_URL``; falls back to the public APS host.
    base_url: str | None = None
    #: Auto-resolved from ``APS_ACCESS_TOKEN`` when *None*.
    access_token: str | None = None
    #: Convert per-item failures into ``{"error": ...}`` items instead of aborting.
    continue_on_failure: bool = False
    #: Only consulted by the bundled httpx transport.
    timeout_s: float = 30.0
    use_mock: bool = False

    def __post_init__(self) -> None:
        """Auto-resolve environment values and validate configuration."""
        if self.base_url is None:
            resolved_url = os.environ.get(_BASE_URL_ENV_VAR) or APS_BASE_URL
            object.__setattr__(self, "base_url", resolved_url)

        base_url = self.base_url or ""
        if not base_url.startswith(("https://", "http://")):
            raise ConfigurationError(
                f"base_url must be an http(s) URL, got {base_url!r}",
                hint=f"Unset {_BASE_URL_ENV_VAR} to use {APS_BASE_URL}.",
            )
        object.__setattr__(self, "base_url", base_url.rstrip("/"))

        if self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0, got {self.timeout_s}",
                hint="This bounds a single HTTP call in seconds.",
            )

        if self.access_token is None and not self.use_mock:
            object.__setattr__(
                self, "access_token", os.environ.get(_ACCESS_TOKEN_ENV_VAR)
            )

        if not self.use_mock and not self.access_token:
            raise ConfigurationError(
                "Access token required for APS requests",
                hint=(
                    f"Set {_ACCESS_TOKEN_ENV_VAR} environment variable, pass "
                    "access_token=..., or use use_mock=True."
                ),
            )

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"Config(base_url={self.base_url!r}, "
            f"access_token={'[REDACTED]' if self.access_token else None}, "
            f"continue_on_failure={self.continue_on_failure}, use_mock={self.use_mock})"
        )

    __repr__ = __str__
