"""Tests for the service layer without the HTTP surface."""
import asyncio

import pytest

from backend.errors import AccessDeniedError, NotFoundError
from backend.services.conversation_store import ConversationStore
from backend.services.interview_service import InterviewService
from backend.services.ownership import ensure_owner, is_owner
from backend.services.persona_service import PersonaService
from fakes import FakeFirestore, FakeGenerator


@pytest.fixture
def personas(db):
    return PersonaService(db)


def test_ownership_predicate():
    resource = {"userId": "alice"}
    assert is_owner(resource, "alice")
    assert not is_owner(resource, "bob")
    assert not is_owner(None, "alice")
    assert ensure_owner(resource, "alice") is resource
    with pytest.raises(AccessDeniedError):
        ensure_owner(resource, "bob")
    with pytest.raises(NotFoundError):
        ensure_owner(None, "alice", "Persona")


def test_service_requires_db():
    with pytest.raises(ValueError):
        PersonaService(None)


def test_verify_ownership(personas):
    persona = asyncio.run(personas.create_persona("alice", {"name": "Ada", "description": "A historian"}))
    assert asyncio.run(personas.verify_ownership(persona["id"], "alice")) is True
    assert asyncio.run(personas.verify_ownership(persona["id"], "bob")) is False
    assert asyncio.run(personas.verify_ownership("missing", "alice")) is False


def test_get_by_id_does_not_filter_by_owner(personas):
    persona = asyncio.run(personas.create_persona("alice", {"name": "Ada", "description": "A historian"}))
    assert asyncio.run(personas.get_persona_by_id(persona["id"]))["userId"] == "alice"
    assert asyncio.run(personas.get_persona_by_id("missing")) is None


def test_update_keeps_owner(personas):
    persona = asyncio.run(personas.create_persona("alice", {"name": "Ada", "description": "A historian"}))
    updated = asyncio.run(personas.update_persona(persona["id"], "alice", {"name": "Ada L.", "userId": "bob"}))
    assert updated["name"] == "Ada L."
    assert updated["userId"] == "alice"


def test_interview_outcome_reports_persistence_separately(db):
    personas = PersonaService(db)
    service = InterviewService(personas, ConversationStore(db), FakeGenerator(reply="Greetings."))
    persona = asyncio.run(personas.create_persona("alice", {"name": "Ada", "description": "A historian"}))

    saved = asyncio.run(service.process_message("alice", persona["id"], "Hello"))
    assert saved.reply == "Greetings."
    assert saved.persisted and saved.persistence_error is None

    db.failing_writes.add("conversations")
    lost = asyncio.run(service.process_message("alice", persona["id"], "Hello again"))
    assert lost.reply == "Greetings."
    assert not lost.persisted
    assert "unavailable" in lost.persistence_error


def test_conversation_store_uses_plain_timestamps_inside_messages():
    db = FakeFirestore()
    store = ConversationStore(db)
    conversation_id = asyncio.run(store.save_exchange("alice", "p1", "Hello", "Hi"))
    stored = db.collection("conversations").docs[conversation_id]
    assert all(message["timestamp"] is not None for message in stored["messages"])
    assert stored["createdAt"] == stored["updatedAt"]
