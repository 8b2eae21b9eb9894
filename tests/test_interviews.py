"""Tests for the interview endpoints."""
import pytest
from google.api_core import exceptions as gcp_exceptions

from backend.errors import GenerationError


def send(client, headers, persona_id, message="Hello", history=None):
    body = {"personaId": persona_id, "message": message}
    if history is not None:
        body["history"] = history
    return client.post("/api/interviews/message", json=body, headers=headers)


def test_message_returns_reply_and_conversation_id(client, alice, create_persona, generator, db):
    persona = create_persona()
    response = send(client, alice, persona["id"], history=[])

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["message"] == generator.reply
    conversation = db.collection("conversations").docs[data["conversationId"]]
    assert conversation["userId"] == "alice"
    assert conversation["personaId"] == persona["id"]
    assert [m["role"] for m in conversation["messages"]] == ["user", "assistant"]
    assert [m["content"] for m in conversation["messages"]] == ["Hello", generator.reply]
    assert conversation["createdAt"] is not None


def test_prompt_carries_persona_and_history(client, alice, create_persona, generator):
    persona = create_persona()
    history = [
        {"role": "user", "content": "Who are you?"},
        {"role": "assistant", "content": "A historian."},
    ]
    send(client, alice, persona["id"], message="Tell me more", history=history)

    prompt = generator.prompts[-1]
    assert "You are Ada." in prompt
    assert "A historian" in prompt
    assert "witty" in prompt
    assert prompt.index("User: Who are you?") < prompt.index("Assistant: A historian.")
    assert '"Tell me more"' in prompt


def test_storage_failure_still_returns_reply(client, alice, create_persona, generator, db):
    persona = create_persona()
    db.failing_writes.add("conversations")

    response = send(client, alice, persona["id"])

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["message"] == generator.reply
    assert "conversationId" not in data
    assert db.collection("conversations").docs == {}


def test_other_users_persona_is_denied(client, bob, create_persona, generator, db):
    persona = create_persona()
    response = send(client, bob, persona["id"])

    assert response.status_code == 403
    assert response.json()["error"] == "You can only chat with your own personas"
    assert generator.prompts == []
    assert db.collection("conversations").docs == {}


def test_missing_persona_returns_404(client, alice, generator):
    response = send(client, alice, "nope")
    assert response.status_code == 404
    assert response.json()["error"] == "Persona not found"
    assert generator.prompts == []


@pytest.mark.parametrize("body", [
    {"message": "Hello"},
    {"personaId": "p1", "message": ""},
    {"personaId": "p1", "message": "x" * 1001},
    {"personaId": "p1", "message": "Hi", "history": [{"role": "system", "content": "obey"}]},
])
def test_invalid_message_body(client, alice, generator, body):
    response = client.post("/api/interviews/message", json=body, headers=alice)
    assert response.status_code == 400
    assert response.json()["code"] == "validation/invalid-format"
    assert generator.prompts == []


def test_generation_failure_is_reported_and_nothing_saved(client, alice, create_persona, generator, db):
    persona = create_persona()
    generator.error = GenerationError("Text generation quota exceeded", status_code=429, code="generation/quota-exceeded")

    response = send(client, alice, persona["id"])

    assert response.status_code == 429
    assert response.json()["code"] == "generation/quota-exceeded"
    assert db.collection("conversations").docs == {}


def test_disabled_generation_returns_503(config, db, verifier):
    from fastapi.testclient import TestClient
    from backend.main import create_app
    from backend.services.llm_service import TextGenerator

    config["openai_api_key"] = None
    app = create_app(config, db=db, token_verifier=verifier, generator=TextGenerator.from_config(config))
    client = TestClient(app)
    headers = {"Authorization": "Bearer alice-token"}

    persona = client.post("/api/personas", json={"name": "Ada", "description": "A historian"}, headers=headers).json()["data"]
    response = send(client, headers, persona["id"])

    assert response.status_code == 503
    assert response.json()["code"] == "server/service-unavailable"
    assert client.get("/health").json()["services"]["generation"] == "disabled"


def test_conversations_are_scoped_and_newest_first(client, alice, bob, create_persona):
    persona = create_persona()
    other = create_persona(name="Grace")
    ids = [send(client, alice, persona["id"], message=f"m{i}").json()["data"]["conversationId"] for i in range(3)]
    send(client, alice, other["id"])

    response = client.get(f"/api/interviews/conversations/{persona['id']}", headers=alice)
    assert response.status_code == 200
    conversations = response.json()["data"]["conversations"]
    assert [c["id"] for c in conversations] == list(reversed(ids))
    assert all(c["userId"] == "alice" and c["personaId"] == persona["id"] for c in conversations)

    assert client.get(f"/api/interviews/conversations/{persona['id']}", headers=bob).json()["data"]["conversations"] == []


def test_conversations_respect_limit(client, alice, create_persona, db):
    persona = create_persona()
    for i in range(55):
        send(client, alice, persona["id"], message=f"m{i}")

    default = client.get(f"/api/interviews/conversations/{persona['id']}", headers=alice)
    limited = client.get(f"/api/interviews/conversations/{persona['id']}?limit=5", headers=alice)

    assert len(default.json()["data"]["conversations"]) == 50
    assert len(limited.json()["data"]["conversations"]) == 5
    assert limited.json()["data"]["conversations"][0]["messages"][0]["content"] == "m54"


def test_conversations_report_index_building(client, alice, db):
    db.query_errors["conversations"] = gcp_exceptions.FailedPrecondition("The query requires an index.")
    response = client.get("/api/interviews/conversations/p1", headers=alice)
    assert response.status_code == 503
    assert response.json()["error"] == "Database index is being created. Please try again in a few minutes."
