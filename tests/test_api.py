from __future__ import annotations

from pathlib import Path

import pytest

pytest.importorskip("fastapi")

from fastapi.testclient import TestClient

from devops_ai.api import create_app
from devops_ai.backends.fake import FakeBackend
from devops_ai.config import TutorConfig
from devops_ai.core.errors import StoreError, TransportError, UpstreamError

pytestmark = pytest.mark.api

ORIGIN = "https://tutor.example"
TOPIC = "github-setup"


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client(store, backend) -> TestClient:
    config = TutorConfig(store="memory", backend="fake", allowed_origin=ORIGIN)
    return TestClient(create_app(config, store=store, backend=backend))


def _assert_cors(response) -> None:
    assert response.headers["access-control-allow-origin"] == ORIGIN
    assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
    assert response.headers["access-control-allow-headers"] == "Content-Type"
    assert response.headers["access-control-max-age"] == "86400"


def test_list_topics(client) -> None:
    response = client.get("/api/topics")

    assert response.status_code == 200
    topics = response.json()
    assert [topic["id"] for topic in topics] == [TOPIC]
    assert set(topics[0]) == {"id", "title", "description", "initial_message", "steps"}
    _assert_cors(response)


def test_get_topic(client) -> None:
    response = client.get(f"/api/topics/{TOPIC}")

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "GitHub Setup"
    assert len(body["steps"]) == 10
    assert set(body["steps"][0]) == {"title", "prompt"}


@pytest.mark.parametrize(
    ("method", "path", "payload"),
    [
        ("get", "/api/topics/unknown", None),
        ("get", "/api/progress/unknown", None),
        ("post", "/api/progress/unknown", {"completed_step": 0}),
        ("get", "/api/conversation/unknown", None),
        ("post", "/api/chat/unknown", {"message": "hi"}),
        ("post", "/api/reset/unknown", None),
    ],
)
def test_unknown_topic_is_404_without_mutation(client, store, backend, method, path, payload) -> None:
    if payload is None:
        response = getattr(client, method)(path)
    else:
        response = getattr(client, method)(path, json=payload)

    assert response.status_code == 404
    assert response.json() == {"status": 404, "message": "Topic not found"}
    assert store.writes == []
    assert backend.calls == []
    _assert_cors(response)


def test_unknown_topic_wins_over_malformed_body(client, store) -> None:
    response = client.post(
        "/api/chat/unknown", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 404
    assert store.writes == []


def test_progress_defaults(client) -> None:
    response = client.get(f"/api/progress/{TOPIC}")

    assert response.status_code == 200
    assert response.json() == {"topic_id": TOPIC, "completed_steps": [], "current_step": 0}


def test_progress_update_twice(client, store) -> None:
    first = client.post(f"/api/progress/{TOPIC}", json={"completed_step": 0})
    second = client.post(f"/api/progress/{TOPIC}", json={"completed_step": 0})

    assert first.status_code == 200
    assert first.json() == {"status": 200, "message": f"Progress updated for topic {TOPIC}."}
    assert second.status_code == 200
    assert "already completed" in second.json()["message"]
    assert store.writes == [("put", TOPIC)]

    progress = client.get(f"/api/progress/{TOPIC}").json()
    assert progress["completed_steps"] == [0]
    assert progress["current_step"] == 1


def test_progress_out_of_order_steps(client) -> None:
    for step in (3, 1, 2):
        assert client.post(f"/api/progress/{TOPIC}", json={"completed_step": step}).status_code == 200

    progress = client.get(f"/api/progress/{TOPIC}").json()
    assert progress == {"topic_id": TOPIC, "completed_steps": [1, 2, 3], "current_step": 4}


@pytest.mark.parametrize(
    "body",
    [
        b"{not json",
        b"",
        b'{"completed_step": "first"}',
        b'{"completed_step": -1}',
        b"{}",
        b"[0]",
        b'{"completed_step": true}',
        b'{"completed_step": "2"}',
        b'{"completed_step": 1.0}',
        b'{"reset": "yes"}',
    ],
)
def test_progress_bad_input_is_400(client, store, body: bytes) -> None:
    response = client.post(
        f"/api/progress/{TOPIC}", content=body, headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["status"] == 400
    assert store.writes == []
    _assert_cors(response)


def test_progress_reset_flag(client) -> None:
    client.post(f"/api/progress/{TOPIC}", json={"completed_step": 2})

    response = client.post(f"/api/progress/{TOPIC}", json={"reset": True})

    assert response.status_code == 200
    assert response.json()["message"] == f"Progress reset for topic {TOPIC}."
    assert client.get(f"/api/progress/{TOPIC}").json()["completed_steps"] == []


def test_chat_scenario(client, store, backend) -> None:
    backend.set_responses(["hello"])

    response = client.post(f"/api/chat/{TOPIC}", json={"message": "hi"})

    assert response.status_code == 200
    assert response.json() == {"response": "hello"}
    _assert_cors(response)
    stored = store.get(f"conversation_{TOPIC}")
    assert [message["role"] for message in stored["messages"]] == ["user", "assistant"]

    conversation = client.get(f"/api/conversation/{TOPIC}").json()
    assert conversation["topic_id"] == TOPIC
    assert [m["content"] for m in conversation["messages"]] == ["hi", "hello"]
    assert all(m["timestamp"].endswith("Z") for m in conversation["messages"])


@pytest.mark.parametrize(
    "body",
    [b'{"message": "   "}', b'{"message": ""}', b"{}", b'{"message": 5}', b"nope", b""],
)
def test_chat_bad_input_is_400(client, store, backend, body: bytes) -> None:
    response = client.post(
        f"/api/chat/{TOPIC}", content=body, headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert store.writes == []
    assert backend.calls == []


def test_empty_message_reports_reason(client) -> None:
    response = client.post(f"/api/chat/{TOPIC}", json={"message": "  "})

    assert response.json() == {"status": 400, "message": "Message cannot be empty"}


@pytest.mark.parametrize(
    "error",
    [UpstreamError(401, "invalid x-api-key"), TransportError("connection refused")],
)
def test_provider_failure_is_generic_500(client, store, backend, error) -> None:
    backend.error = error

    response = client.post(f"/api/chat/{TOPIC}", json={"message": "hi"})

    assert response.status_code == 500
    assert response.json() == {"status": 500, "message": "Failed to generate response"}
    assert "x-api-key" not in response.text
    assert store.writes == []
    _assert_cors(response)


def test_reset_clears_progress_and_conversation(client, store) -> None:
    client.post(f"/api/progress/{TOPIC}", json={"completed_step": 4})
    client.post(f"/api/chat/{TOPIC}", json={"message": "hi"})

    response = client.post(f"/api/reset/{TOPIC}")

    assert response.status_code == 200
    assert response.json() == {
        "status": 200,
        "message": f"Progress and conversation reset for topic {TOPIC}.",
    }
    assert client.get(f"/api/progress/{TOPIC}").json()["completed_steps"] == []
    assert client.get(f"/api/conversation/{TOPIC}").json()["messages"] == []
    # progress is overwritten, conversation key removed
    assert store.get(TOPIC) == {"topic_id": TOPIC, "completed_steps": [], "current_step": 0}
    assert f"conversation_{TOPIC}" not in store


@pytest.mark.parametrize("path", ["/api/topics", f"/api/chat/{TOPIC}", "/anything/else"])
def test_preflight_returns_empty_200(client, path: str) -> None:
    response = client.options(path)

    assert response.status_code == 200
    assert response.content == b""
    _assert_cors(response)


def test_store_failure_is_500_with_cors(backend) -> None:
    class BrokenStore:
        def get(self, key):
            raise StoreError("disk on fire")

        def put(self, key, value):
            raise StoreError("disk on fire")

        def delete(self, key):
            raise StoreError("disk on fire")

    config = TutorConfig(store="memory", backend="fake", allowed_origin=ORIGIN)
    client = TestClient(create_app(config, store=BrokenStore(), backend=backend))

    response = client.get(f"/api/progress/{TOPIC}")

    assert response.status_code == 500
    assert "disk on fire" not in response.text
    _assert_cors(response)


def test_unexpected_error_is_500_with_cors(store) -> None:
    class ExplodingBackend:
        def complete(self, messages, system_prompt):
            raise RuntimeError("boom")

    config = TutorConfig(store="memory", backend="fake", allowed_origin=ORIGIN)
    client = TestClient(create_app(config, store=store, backend=ExplodingBackend()))

    response = client.post(f"/api/chat/{TOPIC}", json={"message": "hi"})

    assert response.status_code == 500
    assert response.json() == {"status": 500, "message": "Internal server error"}
    assert "boom" not in response.text
    _assert_cors(response)


def test_create_app_from_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DEVOPS_AI_DATA_ROOT", str(tmp_path))
    monkeypatch.setenv("DEVOPS_AI_STORE", "file")
    monkeypatch.setenv("DEVOPS_AI_BACKEND", "fake")
    monkeypatch.setenv("DEVOPS_AI_FAKE_RESPONSES", '["from env"]')

    client = TestClient(create_app())

    response = client.post(f"/api/chat/{TOPIC}", json={"message": "hi"})
    assert response.json() == {"response": "from env"}
    assert (tmp_path / "store" / f"conversation_{TOPIC}.json").exists()
    assert response.headers["access-control-allow-origin"] == "https://devops-ai-react.pages.dev"


def test_health(client) -> None:
    assert client.get("/api/health").json() == {"ok": True}
