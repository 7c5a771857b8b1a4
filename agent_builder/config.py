"""Service settings for the agent-builder API and CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

_DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"


@dataclass(frozen=True)
class Settings:
    """Immutable settings loaded from environment variables.

    api_key:              bearer token required by the API; empty = open dev mode
    strict:               block generation when preflight reports errors
    rate_limit_per_min:   per-client request limit (slowapi)
    """

    api_key: str = field(default="", repr=False)
    log_level: str = "WARNING"
    strict: bool = True
    rate_limit_per_min: int = 30
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)

    @classmethod
    def from_env(cls) -> Settings:
        api_key = os.getenv("AGENT_BUILDER_API_KEY", "")
        log_level = os.getenv("AGENT_BUILDER_LOG_LEVEL", "WARNING").upper()
        strict = os.getenv("AGENT_BUILDER_STRICT", "true").lower() not in ("0", "false", "no")
        rate_limit = int(os.getenv("AGENT_BUILDER_RATE_LIMIT_PER_MIN", "30"))
        cors_origins = tuple(
            o.strip()
            for o in os.getenv("CORS_ORIGINS", _DEFAULT_CORS_ORIGINS).split(",")
            if o.strip()
        )
        return cls(
            api_key=api_key,
            log_level=log_level,
            strict=strict,
            rate_limit_per_min=rate_limit,
            cors_origins=cors_origins,
        )
