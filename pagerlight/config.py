from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, IPvAnyAddress, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pagerlight.domain.errors import ConfigError
from pagerlight.domain.models import DEFAULT_TRANSITION_TIME, IncidentQuery, LightTarget


class Settings(BaseSettings):
    # pydantic v2: ignore unknown env vars, load from .env
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )
    app_name: str = "pagerlight"

    # PagerDuty
    pagerduty_token: str = Field(min_length=1)
    pagerduty_team_id: str = Field(min_length=1)
    pagerduty_user_id: str = Field(min_length=1)
    pagerduty_api_url: str = "https://api.pagerduty.com"

    # Hue bridge
    huebridge_ip: IPvAnyAddress
    huebridge_username: str = Field(min_length=1)
    # Single light (HUEBRIDGE_LIGHT) and/or comma separated list (HUEBRIDGE_LIGHT_IDS)
    huebridge_light: str | None = None
    huebridge_light_ids: str | None = None

    # Loop tuning
    poll_interval: float = Field(default=59.0, gt=0)
    http_timeout: float = Field(default=10.0, gt=0)
    transition_time: int = Field(default=DEFAULT_TRANSITION_TIME, ge=0)
    max_light_workers: int = Field(default=16, ge=1)

    # Status API (/api/health, /api/status, /metrics)
    api_enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8080

    # uvicorn level names; "trace" maps to DEBUG for the root logger
    log_level: Literal["critical", "error", "warning", "info", "debug", "trace"] = "info"
    log_json: bool = True
    # File logging options
    log_file_enabled: bool = False
    log_dir: str = "logs"
    log_file_name: str = "pagerlight.log"
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5
    log_utc: bool = True

    # Restore-failure escalation; disabled when empty
    discord_webhook_url: str = ""

    @field_validator("log_level", mode="before")
    @classmethod
    def _lower_log_level(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _require_lights(self) -> "Settings":
        if not self.light_ids:
            raise ValueError("HUEBRIDGE_LIGHT or HUEBRIDGE_LIGHT_IDS must define at least one light id")
        return self

    @property
    def light_ids(self) -> list[str]:
        ids: list[str] = []
        for raw in (self.huebridge_light, self.huebridge_light_ids):
            for part in (raw or "").split(","):
                part = part.strip()
                if part and part not in ids:
                    ids.append(part)
        return ids

    @property
    def bridge_endpoint(self) -> str:
        ip = self.huebridge_ip
        host = f"[{ip}]" if ip.version == 6 else str(ip)
        return f"http://{host}"

    def incident_query(self) -> IncidentQuery:
        return IncidentQuery(
            api_token=self.pagerduty_token,
            team_id=self.pagerduty_team_id,
            user_id=self.pagerduty_user_id,
        )

    def light_targets(self) -> list[LightTarget]:
        return [
            LightTarget(
                bridge_endpoint=self.bridge_endpoint,
                bridge_credential=self.huebridge_username,
                light_id=light_id,
            )
            for light_id in self.light_ids
        ]


def _describe(exc: ValidationError) -> str:
    problems: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "settings"
        if err.get("type") == "missing":
            problems.append(f"{loc.upper()} environment variable must be defined")
        else:
            problems.append(f"{loc.upper() if loc != 'settings' else loc}: {err.get('msg')}")
    return "; ".join(problems)


def load_settings(**overrides: Any) -> Settings:
    """Build settings from the environment, raising ``ConfigError`` on any problem."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {_describe(exc)}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
