"""Settings for seqrun, read from ``SEQRUN_*`` environment variables.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup
    - **Environment-driven:** Reads env vars and a ``.env`` file
    - **Sensible defaults:** The benchmark and validators work out of the box

Examples:
    >>> from seqrun.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.bench_tasks
    100

    $ SEQRUN_BENCH_TASKS=500 seqrun bench

Tags:
    settings, configuration, pydantic, environment, seqrun
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from seqrun.core.errors import ConfigError

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class SeqrunSettings(BaseSettings):
    """Runtime settings.

    Fields
    ──────
    log_level          : structlog level
    log_json           : force JSON (True) / console (False); None = auto
    bench_tasks        : number of demo work items per technique
    bench_delay        : seconds each demo work item waits before continuing
    bench_settle       : pause between techniques so runs never overlap
    http_timeout       : socket timeout for fetches and validator calls
    html_validator_url : Nu HTML checker endpoint (also used for SVG)
    css_validator_url  : Jigsaw CSS validator endpoint
    user_agent         : User-Agent header sent to remote endpoints
    """

    model_config = SettingsConfigDict(
        env_prefix="SEQRUN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "WARNING"
    log_json: bool | None = None

    # ── Benchmark ────────────────────────────────────────────────
    bench_tasks: int = Field(default=100, ge=0)
    bench_delay: float = Field(default=0.05, ge=0)
    bench_settle: float = Field(default=0.05, ge=0)

    # ── HTTP collaborators ───────────────────────────────────────
    http_timeout: float = Field(default=10.0, gt=0)
    html_validator_url: str = "https://validator.w3.org/nu/?out=json"
    css_validator_url: str = "https://jigsaw.w3.org/css-validator/validator?output=json"
    user_agent: str = "seqrun/0.1"

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return level


def load_settings(**overrides) -> SeqrunSettings:
    """Build settings, converting validation failures into :class:`ConfigError`."""
    try:
        return SeqrunSettings(**overrides)
    except ValidationError as exc:
        raise ConfigError(f"Invalid seqrun settings: {exc.error_count()} error(s)", cause=exc) from exc


@lru_cache(maxsize=1)
def get_settings() -> SeqrunSettings:
    """Process-wide settings, loaded once."""
    return load_settings()
