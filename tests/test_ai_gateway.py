import io
import json

import httpx
import pytest

from conftest import FakeCompletionClient, fake_extractor
from studybuddy.core.errors import AIServiceError, ErrorKind
from studybuddy.models.ai import ChatMessage, IncorrectAnswer, Role
from studybuddy.models.files import QuizScore
from studybuddy.services.ai_gateway import AIGateway
from studybuddy.services.completion_clients import HttpCompletionClient
from studybuddy.services.credentials import CredentialStore


@pytest.fixture
def credentials(kv):
    store = CredentialStore(kv)
    store.set_api_key("sk-test")
    return store


@pytest.fixture
def record(library):
    return library.import_file(io.BytesIO(b"%PDF-1.4"), "notes.pdf")


def _gateway(client, credentials, content_store, extractor=fake_extractor, **kw):
    return AIGateway(client, credentials, content_store, extractor=extractor, **kw)


def test_complete_without_credential_makes_no_call(content_store, kv):
    client = FakeCompletionClient()
    gateway = _gateway(client, CredentialStore(kv), content_store)

    result = gateway.complete("hello", None)

    assert result.success is False
    assert result.errorKind == ErrorKind.missing_credential
    assert result.error == "API key not set"
    assert client.calls == []


def test_features_without_credential_fail_before_network(content_store, kv, record):
    client = FakeCompletionClient()
    gateway = _gateway(client, CredentialStore(kv), content_store)

    result = gateway.generate_questions(record)

    assert result.success is False
    assert result.payload == []
    assert result.errorKind == ErrorKind.missing_credential
    assert client.calls == []


def test_complete_forwards_parameters(content_store, credentials):
    client = FakeCompletionClient(response={"completion": "hi"})
    gateway = _gateway(client, credentials, content_store, max_tokens=256, temperature=0.2)

    result = gateway.complete("prompt", "sk-test")

    assert result.success is True
    assert result.payload == {"completion": "hi"}
    assert client.calls == [{"prompt": "prompt", "api_key": "sk-test", "max_tokens": 256, "temperature": 0.2}]


def test_generate_questions_prompt_and_payload(content_store, credentials, record):
    client = FakeCompletionClient(response={"questions": [{"question": "Q?", "answer": "A"}]})
    gateway = _gateway(client, credentials, content_store)

    result = gateway.generate_questions(record, "hard", 3)

    assert result.success is True
    assert result.payload == [{"question": "Q?", "answer": "A"}]
    prompt = client.calls[0]["prompt"]
    assert "generate 3 hard-level questions with answers" in prompt
    assert "Extracted text from PDF" in prompt


def test_generate_questions_defaults_to_empty_list(content_store, credentials, record):
    gateway = _gateway(FakeCompletionClient(response={"completion": "no questions"}), credentials, content_store)
    assert gateway.generate_questions(record).payload == []


def test_document_text_is_truncated_to_budget(content_store, credentials, record):
    client = FakeCompletionClient()
    gateway = _gateway(client, credentials, content_store, extractor=lambda p, t: "x" * 6000, char_budget=5000)

    gateway.generate_study_notes(record)

    prompt = client.calls[0]["prompt"]
    assert "x" * 5000 in prompt
    assert "x" * 5001 not in prompt


def test_study_notes_and_discussion(content_store, credentials, record):
    client = FakeCompletionClient(response={"completion": "Summary"})
    gateway = _gateway(client, credentials, content_store)

    assert gateway.generate_study_notes(record).payload == "Summary"
    assert gateway.start_discussion(record, topic="mitosis").payload == "Summary"
    assert gateway.start_discussion(record).payload == "Summary"

    assert client.calls[0]["prompt"].startswith("Create concise study notes")
    assert 'discuss the topic "mitosis"' in client.calls[1]["prompt"]
    assert "what would be a good discussion topic?" in client.calls[2]["prompt"]


def test_continue_discussion_formats_history(content_store, credentials):
    client = FakeCompletionClient(response={"completion": "Sure."})
    gateway = _gateway(client, credentials, content_store)
    history = [
        ChatMessage(role=Role.assistant, content="Let's talk about cells."),
        ChatMessage(role=Role.user, content="OK"),
    ]

    result = gateway.continue_discussion(history, "What is a ribosome?")

    assert result.payload == "Sure."
    assert client.calls[0]["prompt"] == (
        "Previous conversation:\nassistant: Let's talk about cells.\nuser: OK\n\n"
        "User: What is a ribosome?\nAssistant:"
    )


def test_analyze_performance_formats_scores(content_store, credentials):
    client = FakeCompletionClient(response={"completion": "Work on chapter 2."})
    gateway = _gateway(client, credentials, content_store)

    result = gateway.analyze_performance(
        [QuizScore(date=1, score=60), 85],
        [IncorrectAnswer(question="2+2?", userAnswer="5", correctAnswer="4")],
    )

    assert result.success is True
    prompt = client.calls[0]["prompt"]
    assert "Quiz 1: 60%\nQuiz 2: 85%" in prompt
    assert "Question: 2+2?\nUser Answer: 5\nCorrect Answer: 4" in prompt


def test_network_failure_becomes_failure_result(content_store, credentials, record):
    client = FakeCompletionClient(error=AIServiceError("AI request failed: timeout"))
    gateway = _gateway(client, credentials, content_store)

    result = gateway.generate_study_notes(record)

    assert result.success is False
    assert result.payload == ""
    assert result.errorKind == ErrorKind.network
    assert "timeout" in result.error


def test_unexpected_extractor_error_is_contained(content_store, credentials, record):
    def broken(path, file_type):
        raise RuntimeError("parser crashed")

    gateway = _gateway(FakeCompletionClient(), credentials, content_store, extractor=broken)
    result = gateway.generate_study_notes(record)
    assert result.success is False
    assert "parser crashed" in result.error


def test_create_audiobook_segments(content_store, credentials, record):
    text = "First sentence here. Second one follows! Third? " * 20
    gateway = _gateway(FakeCompletionClient(), credentials, content_store,
                       extractor=lambda p, t: text, audio_segment_chars=100)

    result = gateway.create_audiobook(record)

    assert result.success is True
    segments = result.payload["segments"]
    assert segments and all(len(s) <= 100 for s in segments)
    assert " ".join(segments) == " ".join(text.split())


def test_http_client_wire_format():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"completion": "done"})

    client = HttpCompletionClient("https://ai.test/complete", transport=httpx.MockTransport(handler))
    data = client.complete("Explain osmosis", "sk-1", max_tokens=1000, temperature=0.7)

    assert data == {"completion": "done"}
    assert seen["auth"] == "Bearer sk-1"
    assert seen["body"] == {"prompt": "Explain osmosis", "max_tokens": 1000, "temperature": 0.7}


def test_http_client_errors_are_typed():
    client = HttpCompletionClient(
        "https://ai.test/complete",
        transport=httpx.MockTransport(lambda r: httpx.Response(500, text="upstream down")),
    )
    with pytest.raises(AIServiceError) as exc:
        client.complete("p", "k", max_tokens=10, temperature=0.0)
    assert exc.value.kind == ErrorKind.network
    assert "500" in str(exc.value)

    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    client = HttpCompletionClient("https://ai.test/complete", transport=httpx.MockTransport(refuse))
    with pytest.raises(AIServiceError):
        client.complete("p", "k", max_tokens=10, temperature=0.0)


def test_credential_store_fallback(kv):
    store = CredentialStore(kv, fallback="from-env")
    assert store.get_api_key() == "from-env"
    store.set_api_key("  stored  ")
    assert store.get_api_key() == "stored"
    store.clear_api_key()
    assert store.get_api_key() == "from-env"


def test_non_positive_segment_size_is_rejected(content_store, credentials):
    with pytest.raises(ValueError):
        _gateway(FakeCompletionClient(), credentials, content_store, audio_segment_chars=0)


def test_settings_reject_non_positive_segment_size():
    from pydantic import ValidationError

    from studybuddy.core.config import Settings

    with pytest.raises(ValidationError):
        Settings(AUDIO_SEGMENT_CHARS=0)
