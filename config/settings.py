# config/settings.py
import logging
import os
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

project_root = os.path.join(os.path.dirname(__file__), '..')
dotenv_path = os.path.join(project_root, '.env')
load_dotenv(dotenv_path=dotenv_path, override=True)

# Origins used by the local frontend dev servers; always allowed.
DEV_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:3001"]


def _split_csv(value: str | None) -> list[str]:
    return [item.strip() for item in (value or "").split(',') if item.strip()]


def load_app_config() -> dict:
    """Reads the application configuration from the environment."""
    return {
        "port": int(os.getenv("PORT", 8080)),
        "environment": os.getenv("APP_ENV", "development"),
        "firebase_project_id": os.getenv("FIREBASE_PROJECT_ID"),
        "firebase_cred_path": os.getenv("FIREBASE_CRED_PATH"),
        "openai_api_key": os.getenv("OPENAI_API_KEY"),
        "generation_model": os.getenv("GENERATION_MODEL", "gpt-4o-mini"),
        "generation_max_tokens": int(os.getenv("GENERATION_MAX_TOKENS", 1000)),
        "cors_origin": os.getenv("CORS_ORIGIN", "http://localhost:3000"),
        "cors_origins": _split_csv(os.getenv("CORS_ORIGINS")),
        "log_level": os.getenv("LOG_LEVEL", "info"),
    }


def is_production(config: dict) -> bool:
    return config.get("environment") == "production"


def get_server_host(config: dict) -> str:
    return "0.0.0.0" if is_production(config) else "localhost"


def get_allowed_origins(config: dict) -> list[str]:
    """Dev origins first, then the configured ones, without duplicates."""
    origins = list(DEV_CORS_ORIGINS)
    for origin in config.get("cors_origins", []) + [config.get("cors_origin")]:
        if origin and origin not in origins:
            origins.append(origin)
    return origins


def validate_config(config: dict) -> None:
    if not config.get("firebase_project_id"):
        raise ValueError("CRITICAL: FIREBASE_PROJECT_ID is not set in the .env file.")
    if config.get("port", 0) <= 0:
        raise ValueError("CRITICAL: PORT must be a positive integer.")
    if config.get("generation_max_tokens", 0) <= 0:
        raise ValueError("CRITICAL: GENERATION_MAX_TOKENS must be a positive integer.")
    if not config.get("openai_api_key"):
        logger.warning("[Config] OPENAI_API_KEY is not set. Interview features will be disabled.")


APP_CONFIG = load_app_config()
