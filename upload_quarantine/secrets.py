from functools import lru_cache
import logging
import os

from google.cloud import secretmanager

from upload_quarantine.config import Settings
from upload_quarantine.errors import SecretUnavailable

logger = logging.getLogger("quarantine.secrets")


@lru_cache
def get_secret_client() -> secretmanager.SecretManagerServiceClient:
    # Singleton – the client keeps its own gRPC channel.
    return secretmanager.SecretManagerServiceClient()


def _load_secret_env_value(name: str) -> str:
    env_name = name.upper()
    direct_value = os.getenv(env_name, "").strip()
    if direct_value:
        return direct_value
    file_path = os.getenv(f"{env_name}_FILE", "")
    if not file_path:
        return ""
    try:
        with open(file_path, "r", encoding="utf-8") as fh:
            return fh.read().strip()
    except OSError as exc:
        raise SecretUnavailable(name, f"cannot read {file_path}: {exc}") from exc


def resolve_secret(settings: Settings, name: str) -> str:
    """
    Resolve a secret value:
    - env override: upper-cased secret name, e.g. WILDFIRE_API_KEY
    - file override: <NAME>_FILE pointing at a mounted secret
    - otherwise the latest version in Secret Manager
    """
    value = _load_secret_env_value(name)
    if value:
        return value

    path = settings.secret_path(name)
    try:
        response = get_secret_client().access_secret_version(request={"name": path})
        value = response.payload.data.decode("utf-8").strip()
    except Exception as exc:
        logger.error("Failed to access secret version %s: %s", path, exc)
        raise SecretUnavailable(name, str(exc)) from exc

    if not value:
        raise SecretUnavailable(name, "secret payload is empty")
    return value
