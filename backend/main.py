# backend/main.py

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.auth import FirebaseTokenVerifier
from backend.dependencies import ServiceContainer
from backend.errors import register_exception_handlers
from backend.firebase_config import get_firestore_client, initialize_firebase
from backend.routers import interviews, personas, users
from backend.services.conversation_store import ConversationStore
from backend.services.interview_service import InterviewService
from backend.services.llm_service import TextGenerator
from backend.services.persona_service import PersonaService
from backend.services.profile_service import ProfileService
from config.settings import APP_CONFIG, get_allowed_origins, validate_config

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
ENDPOINTS = {
    "health": "/health",
    "test": "/api/test",
    "users": "/api",
    "personas": "/api/personas",
    "interviews": "/api/interviews",
}


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_services(config: dict, db=None, token_verifier=None, generator: Optional[TextGenerator] = None) -> ServiceContainer:
    """
    Wires the service objects once. Anything passed in is used as-is, which is
    how tests swap in fakes; anything missing is built from the configuration.
    """
    if db is None or token_verifier is None:
        firebase_app = initialize_firebase(config)
        if db is None:
            db = get_firestore_client(firebase_app)
        if token_verifier is None:
            token_verifier = FirebaseTokenVerifier(firebase_app)

    if generator is None:
        generator = TextGenerator.from_config(config)

    persona_service = PersonaService(db)
    return ServiceContainer(
        config=config,
        token_verifier=token_verifier,
        generator=generator,
        persona_service=persona_service,
        interview_service=InterviewService(persona_service, ConversationStore(db), generator),
        profile_service=ProfileService(db),
    )


def create_app(config: Optional[dict] = None, *, db=None, token_verifier=None, generator: Optional[TextGenerator] = None) -> FastAPI:
    config = config or APP_CONFIG
    setup_logging(config.get("log_level", "info"))
    validate_config(config)

    services = build_services(config, db=db, token_verifier=token_verifier, generator=generator)
    generation_status = "active" if services.generator.enabled else "disabled"

    app = FastAPI(title="AI Persona Backend API", version=API_VERSION)
    app.state.services = services

    allowed_origins = get_allowed_origins(config)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    register_exception_handlers(app, config)

    @app.get("/")
    async def root():
        return {"status": "OK", "message": "AI Persona Backend API", "version": API_VERSION, "endpoints": ENDPOINTS}

    @app.get("/health")
    async def health():
        return {
            "status": "OK",
            "message": "Server is running",
            "services": {"generation": generation_status},
        }

    @app.get("/api/test")
    async def api_test():
        return {"message": "API is working!"}

    app.include_router(users.router, prefix="/api", tags=["users"])
    app.include_router(personas.router, prefix="/api/personas", tags=["personas"])
    app.include_router(interviews.router, prefix="/api/interviews", tags=["interviews"])

    logger.info("===== AI Persona Backend API =====")
    logger.info("Environment: %s", config.get("environment"))
    logger.info("Firebase project: %s", config.get("firebase_project_id"))
    logger.info("Text generation: %s (model %s)", generation_status, config.get("generation_model"))
    logger.info("CORS allowed origins: %s", ", ".join(allowed_origins))
    logger.info("Endpoints: %s", ", ".join(f"{name}={path}" for name, path in ENDPOINTS.items()))
    return app
