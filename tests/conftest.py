import pytest
from fastapi.testclient import TestClient

from studybuddy.core.config import get_settings
from studybuddy.main import create_app
from studybuddy.services.content_store import ContentStore
from studybuddy.services.kv_store import MemoryKeyValueStore
from studybuddy.services.library import FileLibrary
from studybuddy.services.metadata_store import MetadataStore

API_KEY_HEADER = {"x-api-key": "change_me"}


class FakeClock:
    """Horloge ms déterministe : avance de `step` à chaque appel."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


class FakeCompletionClient:
    def __init__(self, response=None, error: Exception | None = None):
        self.response = response if response is not None else {"completion": "ok"}
        self.error = error
        self.calls = []

    def complete(self, prompt, api_key, *, max_tokens, temperature):
        self.calls.append(
            {"prompt": prompt, "api_key": api_key, "max_tokens": max_tokens, "temperature": temperature}
        )
        if self.error is not None:
            raise self.error
        return self.response


def fake_extractor(path, file_type):
    return f"Extracted text from {file_type.upper()}"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def metadata_store(kv, clock):
    return MetadataStore(kv, clock=clock)


@pytest.fixture
def content_store(tmp_path, clock):
    store = ContentStore(tmp_path / "data", clock=clock)
    store.ensure_ready()
    return store


@pytest.fixture
def library(metadata_store, content_store):
    return FileLibrary(metadata_store, content_store, max_upload_mb=1)


@pytest.fixture
def fake_ai():
    return FakeCompletionClient(response={"completion": "Some notes", "questions": [{"q": "Q1", "a": "A1"}]})


@pytest.fixture
def test_client(tmp_path, monkeypatch, fake_ai):
    """
    Crée un TestClient avec un STORAGE_PATH temporaire (isolé), un stockage
    clé/valeur en mémoire et un client IA factice.
    """
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("APP_NAME", "StudyBuddy API (tests)")
    monkeypatch.setenv("STORAGE_PATH", str(tmp_path / "storage"))
    monkeypatch.setenv("KV_BACKEND", "memory")
    monkeypatch.setenv("MAX_UPLOAD_MB", "1")  # limite faible pour tests
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost")
    monkeypatch.setenv("API_KEY", "change_me")
    monkeypatch.setenv("AI_API_KEY", "")

    # IMPORTANT: vider le cache des settings pour prendre en compte les env
    get_settings.cache_clear()

    app = create_app()
    gateway = app.state.services.gateway
    gateway.client = fake_ai
    gateway.extractor = fake_extractor

    with TestClient(app) as client:
        yield client

    get_settings.cache_clear()
