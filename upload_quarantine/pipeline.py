from functools import lru_cache

from upload_quarantine.config import Settings, load_settings
from upload_quarantine.file_router import FileRouter
from upload_quarantine.orchestrator import Orchestrator
from upload_quarantine.services.submissions import SubmissionClient
from upload_quarantine.services.verdicts import VerdictClient
from upload_quarantine.services.wildfire import build_endpoint
from upload_quarantine.storage import GCSObjectStore


def build_orchestrator(settings: Settings) -> Orchestrator:
    endpoint = build_endpoint(settings)
    store = GCSObjectStore(timeout=settings.storage_timeout_seconds)
    return Orchestrator(
        settings=settings,
        verdicts=VerdictClient(endpoint),
        submissions=SubmissionClient(endpoint),
        store=store,
        router=FileRouter(store),
    )


@lru_cache
def get_orchestrator() -> Orchestrator:
    # Failures are not cached, so a missing secret is retried on the next event.
    return build_orchestrator(load_settings())
