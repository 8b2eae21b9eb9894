# backend/services/llm_service.py

import logging
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI

from backend.errors import GenerationError, ServiceUnavailableError

logger = logging.getLogger(__name__)

INTERVIEW_PROMPT_TEMPLATE = """You are {name}.
Description: {description}
Personality and traits: {characteristics}

Conversation so far:
{history}

New message from the user: "{message}"

Stay in character as the persona described above and reply naturally and consistently. Keep the flow of the conversation in mind and let the persona's traits shape your answer.
"""

NO_HISTORY_TEXT = "(no previous conversation)"
ROLE_LABELS = {"user": "User", "assistant": "Assistant"}


def build_interview_prompt(persona: Dict[str, Any], history: List[Dict[str, Any]], message: str) -> str:
    """
    Composes the generation prompt for one interview turn.

    Args:
        persona: Stored persona document (name, description, characteristics).
        history: Prior turns, oldest first, each with role and content.
        message: The new user message.

    Returns:
        The prompt text.
    """
    characteristics = persona.get("characteristics") or []
    if isinstance(characteristics, (list, tuple)):
        characteristics = ", ".join(characteristics)

    if history:
        history_text = "\n".join(f"{ROLE_LABELS[turn['role']]}: {turn['content']}" for turn in history)
    else:
        history_text = NO_HISTORY_TEXT

    return INTERVIEW_PROMPT_TEMPLATE.format(
        name=persona.get("name", ""),
        description=persona.get("description", ""),
        characteristics=characteristics,
        history=history_text,
        message=message,
    )


def classify_generation_error(exc: Exception) -> GenerationError:
    """Turns an upstream failure into a GenerationError by inspecting its type and message."""
    message = str(exc)
    lowered = message.lower()
    if isinstance(exc, openai.AuthenticationError) or "api key" in lowered:
        return GenerationError(
            "OpenAI API key is invalid or missing. Please check the OPENAI_API_KEY environment variable.",
            code="generation/invalid-api-key",
        )
    if isinstance(exc, openai.RateLimitError) or "quota" in lowered:
        return GenerationError("Text generation quota exceeded", status_code=429, code="generation/quota-exceeded")
    if isinstance(exc, openai.NotFoundError) or any(
        phrase in lowered for phrase in ("not found", "not supported", "does not exist")
    ):
        return GenerationError(
            "Generation model not available. Please check if the model name is correct.",
            code="generation/model-unavailable",
        )
    return GenerationError(f"Failed to generate AI response: {message or 'Unknown error'}")


class TextGenerator:
    """Thin wrapper around one shared AsyncOpenAI client."""

    def __init__(self, api_key: Optional[str], model: str, max_tokens: int, client=None):
        self.model = model
        self.max_tokens = max_tokens
        if client is None and api_key:
            client = AsyncOpenAI(api_key=api_key)
        self.client = client

    @classmethod
    def from_config(cls, config: dict) -> "TextGenerator":
        return cls(config.get("openai_api_key"), config["generation_model"], config["generation_max_tokens"])

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def generate(self, prompt: str) -> str:
        if not self.enabled:
            raise ServiceUnavailableError("Text generation is not initialized. Please check server logs.")

        try:
            logger.info("[LLM] Sending prompt to %s (%d chars)", self.model, len(prompt))
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                temperature=0.7,
            )
            content = response.choices[0].message.content if response.choices else None
            if not content or not content.strip():
                raise GenerationError("Received an empty response from the language model.")
            logger.info("[LLM] Received response (%d chars)", len(content))
            return content.strip()
        except GenerationError:
            raise
        except Exception as e:
            logger.error("[LLM] Failed to get text response: %s", e)
            raise classify_generation_error(e) from e
