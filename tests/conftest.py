import pytest
from fastapi.testclient import TestClient

from backend.main import create_app
from fakes import PROJECT_ID, FakeFirestore, FakeGenerator, FakeTokenVerifier, make_claims


@pytest.fixture
def config():
    return {
        "port": 8080,
        "environment": "development",
        "firebase_project_id": PROJECT_ID,
        "firebase_cred_path": None,
        "openai_api_key": "sk-test",
        "generation_model": "gpt-4o-mini",
        "generation_max_tokens": 1000,
        "cors_origin": "http://localhost:3000",
        "cors_origins": ["https://personas.example.com"],
        "log_level": "info",
    }


@pytest.fixture
def db():
    return FakeFirestore()


@pytest.fixture
def verifier():
    return FakeTokenVerifier({
        "alice-token": make_claims("alice"),
        "bob-token": make_claims("bob"),
    })


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def app(config, db, verifier, generator):
    return create_app(config, db=db, token_verifier=verifier, generator=generator)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def alice():
    return {"Authorization": "Bearer alice-token"}


@pytest.fixture
def bob():
    return {"Authorization": "Bearer bob-token"}


@pytest.fixture
def create_persona(client, alice):
    """Creates a persona through the API and returns its data."""
    def _create(headers=None, **fields):
        body = {"name": "Ada", "description": "A historian", "characteristics": ["witty"]}
        body.update(fields)
        response = client.post("/api/personas", json=body, headers=headers or alice)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create
