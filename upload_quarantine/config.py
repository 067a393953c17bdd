"""
config.py – Konfiguration för upload-quarantine.

Läses in en gång från miljövariabler och skickas sedan explicit vidare
till orchestratorn och klienterna.

Miljövariabler:
  SCANNED_BUCKET             – Bucket för rena filer (krävs)
  QUARANTINE_BUCKET          – Bucket för skadliga filer (krävs)
  GCP_PROJECT                – Projekt som används för att bygga secret-namn (krävs)
  WILDFIRE_PORTAL_SECRET     – Secret med WildFire-portalens host (default "wildfire_api_portal")
  WILDFIRE_API_KEY_SECRET    – Secret med WildFire API-nyckeln (default "wildfire_api_key")
  WILDFIRE_TIMEOUT_SECONDS   – HTTP-timeout mot WildFire (default 30)
  POLL_INTERVAL_SECONDS      – Första väntetiden mellan verdict-förfrågningar (default 60)
  POLL_BACKOFF_FACTOR        – Multiplikator efter varje förfrågan, 1 = fast intervall (default 1.0)
  POLL_MAX_INTERVAL_SECONDS  – Tak för väntetiden (default 600)
  POLL_MAX_ATTEMPTS          – Max antal förfrågningar, 0 = obegränsat (default 30)
  STORAGE_TIMEOUT_SECONDS    – Timeout per storage-anrop (default 10)
"""

import math
import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from upload_quarantine.errors import ConfigurationError


class PollPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    interval_seconds: float = Field(default=60.0, gt=0)
    backoff_factor: float = Field(default=1.0, ge=1.0)
    max_interval_seconds: float = Field(default=600.0, gt=0)
    # 0 means wait until the host's invocation deadline cancels us
    max_attempts: int = Field(default=30, ge=0)

    def delays(self):
        """Yield the wait before each poll, honouring backoff and the attempt bound."""
        delay = min(self.interval_seconds, self.max_interval_seconds)
        attempt = 0
        while self.max_attempts == 0 or attempt < self.max_attempts:
            attempt += 1
            yield delay
            delay = min(delay * self.backoff_factor, self.max_interval_seconds)


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    clean_bucket: str = Field(min_length=1)
    quarantine_bucket: str = Field(min_length=1)
    project_id: str = Field(min_length=1)
    portal_secret: str = Field(default="wildfire_api_portal")
    api_key_secret: str = Field(default="wildfire_api_key")
    wildfire_timeout_seconds: float = Field(default=30.0, gt=0)
    storage_timeout_seconds: float = Field(default=10.0, gt=0)
    poll: PollPolicy = Field(default_factory=PollPolicy)

    def secret_path(self, name: str) -> str:
        return f"projects/{self.project_id}/secrets/{name}/versions/latest"


def _env_int(env: Mapping[str, str], name: str, default: int, minimum: int = 1) -> int:
    value = env.get(name)
    if value is None:
        return default
    try:
        parsed = int(value)
        return parsed if parsed >= minimum else default
    except ValueError:
        return default


def _env_float(env: Mapping[str, str], name: str, default: float, minimum: float = 0.0) -> float:
    value = env.get(name)
    if value is None:
        return default
    try:
        parsed = float(value)
        return parsed if math.isfinite(parsed) and parsed > minimum else default
    except ValueError:
        return default


def _required(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "").strip()
    if not value:
        raise ConfigurationError(f"{name} must be set")
    return value


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    poll = PollPolicy(
        interval_seconds=_env_float(env, "POLL_INTERVAL_SECONDS", 60.0),
        backoff_factor=max(1.0, _env_float(env, "POLL_BACKOFF_FACTOR", 1.0)),
        max_interval_seconds=_env_float(env, "POLL_MAX_INTERVAL_SECONDS", 600.0),
        max_attempts=_env_int(env, "POLL_MAX_ATTEMPTS", 30, minimum=0),
    )
    return Settings(
        clean_bucket=_required(env, "SCANNED_BUCKET"),
        quarantine_bucket=_required(env, "QUARANTINE_BUCKET"),
        project_id=_required(env, "GCP_PROJECT"),
        portal_secret=env.get("WILDFIRE_PORTAL_SECRET", "").strip() or "wildfire_api_portal",
        api_key_secret=env.get("WILDFIRE_API_KEY_SECRET", "").strip() or "wildfire_api_key",
        wildfire_timeout_seconds=_env_float(env, "WILDFIRE_TIMEOUT_SECONDS", 30.0),
        storage_timeout_seconds=_env_float(env, "STORAGE_TIMEOUT_SECONDS", 10.0),
        poll=poll,
    )
