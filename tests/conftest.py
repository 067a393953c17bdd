import pytest
from fastapi.testclient import TestClient

from upload_quarantine.config import PollPolicy, Settings
from upload_quarantine.errors import StorageError
from upload_quarantine.main import app
from upload_quarantine.models import UploadEvent, Verdict, VerdictKind
from upload_quarantine.orchestrator import Orchestrator

# base64 av MD5-summan för b"hello"
HELLO_MD5_B64 = "XUFAKrxLKna5cZ2REBfFkg=="
HELLO_MD5_HEX = "5d41402abc4b2a76b9719d911017c592"


class FakeStore:
    """Bucket-lager i minnet med möjlighet att injicera fel."""

    def __init__(self, objects=None):
        self.objects: dict[tuple[str, str], bytes] = dict(objects or {})
        self.calls: list[tuple] = []
        self.fail_copy = False
        self.fail_delete = False
        self.fail_read = False

    def read_object(self, bucket, name):
        self.calls.append(("read", bucket, name))
        if self.fail_read:
            raise StorageError("read exploded")
        if (bucket, name) not in self.objects:
            raise StorageError(f"gs://{bucket}/{name} not found", missing=True)
        return self.objects[(bucket, name)]

    def copy_object(self, source_bucket, name, destination_bucket):
        self.calls.append(("copy", source_bucket, name, destination_bucket))
        if (source_bucket, name) not in self.objects:
            raise StorageError(f"gs://{source_bucket}/{name} not found", missing=True)
        if self.fail_copy:
            raise StorageError("copy exploded")
        self.objects[(destination_bucket, name)] = self.objects[(source_bucket, name)]

    def delete_object(self, bucket, name):
        self.calls.append(("delete", bucket, name))
        if self.fail_delete:
            raise StorageError("delete exploded")
        if (bucket, name) not in self.objects:
            raise StorageError(f"gs://{bucket}/{name} not found", missing=True)
        del self.objects[(bucket, name)]


class ScriptedVerdicts:
    """Returnerar verdicts (eller kastar undantag) i förutbestämd ordning."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.queries: list[str] = []

    def query_by_hash(self, file_hash):
        self.queries.append(file_hash)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class RecordingSubmissions:
    def __init__(self, error=None):
        self.error = error
        self.submitted: list[tuple[str, bytes]] = []

    def submit(self, object_name, content):
        self.submitted.append((object_name, content))
        if self.error is not None:
            raise self.error


def verdict(kind: VerdictKind, code: str = "") -> Verdict:
    return Verdict(kind, code)


@pytest.fixture
def settings():
    return Settings(
        clean_bucket="scanned",
        quarantine_bucket="quarantine",
        project_id="demo-project",
        poll=PollPolicy(interval_seconds=60, max_attempts=5),
    )


@pytest.fixture
def event():
    return UploadEvent(bucket="uploads", name="docs/hello.txt", md5Hash=HELLO_MD5_B64)


@pytest.fixture
def store():
    return FakeStore({("uploads", "docs/hello.txt"): b"hello"})


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_orchestrator(settings, store, sleeps):
    def _make(verdicts, submissions=None, **overrides):
        return Orchestrator(
            settings=overrides.get("settings", settings),
            verdicts=verdicts,
            submissions=submissions or RecordingSubmissions(),
            store=overrides.get("store", store),
            sleep=sleeps.append,
        )

    return _make


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
