# backend/validation.py

from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

PersonaName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
PersonaDescription = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=4000)]
Characteristic = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
InterviewText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=1000)]


class RequestSchema(BaseModel):
    """Base for request bodies: camelCase on the wire, unknown fields dropped."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CreatePersonaRequest(RequestSchema):
    name: PersonaName
    description: PersonaDescription
    characteristics: List[Characteristic] = Field(default_factory=list)


class UpdatePersonaRequest(RequestSchema):
    name: Optional[PersonaName] = None
    description: Optional[PersonaDescription] = None
    characteristics: Optional[List[Characteristic]] = None

    @model_validator(mode="after")
    def check_not_empty(self):
        if not self.model_fields_set:
            raise ValueError("at least one of name, description or characteristics is required")
        return self


class ChatMessage(RequestSchema):
    role: Literal["user", "assistant"]
    content: str
    timestamp: Optional[Any] = None


class InterviewMessageRequest(RequestSchema):
    persona_id: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    message: InterviewText
    history: List[ChatMessage] = Field(default_factory=list)


class UpdateProfileRequest(RequestSchema):
    display_name: Optional[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]] = None
    bio: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]] = None
    location: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]] = None
    website: Optional[HttpUrl] = None

    def allowed_fields(self) -> dict:
        """Only the fields the client actually sent, keyed by their stored names."""
        fields = self.model_dump(by_alias=True, exclude_unset=True)
        if fields.get("website") is not None:
            fields["website"] = str(fields["website"])
        return fields
