# backend/dependencies.py

from dataclasses import dataclass

from fastapi import Request

from backend.services.interview_service import InterviewService
from backend.services.llm_service import TextGenerator
from backend.services.persona_service import PersonaService
from backend.services.profile_service import ProfileService


@dataclass
class ServiceContainer:
    """Everything the routes need, built once by create_app and shared read-only."""

    config: dict
    token_verifier: object
    generator: TextGenerator
    persona_service: PersonaService
    interview_service: InterviewService
    profile_service: ProfileService


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_persona_service(request: Request) -> PersonaService:
    return get_services(request).persona_service


def get_interview_service(request: Request) -> InterviewService:
    return get_services(request).interview_service


def get_profile_service(request: Request) -> ProfileService:
    return get_services(request).profile_service
