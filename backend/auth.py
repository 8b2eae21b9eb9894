# backend/auth.py

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

import firebase_admin
from fastapi import Request
from firebase_admin import auth as firebase_auth
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from backend.errors import ERROR_CODES, AuthError

logger = logging.getLogger(__name__)

PROJECT_ID_MISMATCH = "auth/project-id-mismatch"
SIGNATURE_MISMATCH = "auth/argument-error"


class AuthenticatedUser(BaseModel):
    """The identity decoded from a verified ID token. Never persisted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    name: Optional[str] = None
    picture: Optional[str] = None
    issuer: Optional[str] = None
    audience: Optional[str] = None
    auth_time: Optional[datetime] = None
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def from_claims(cls, claims: dict) -> "AuthenticatedUser":
        return cls(
            uid=claims.get("uid") or claims["sub"],
            email=claims.get("email"),
            email_verified=claims.get("email_verified", False),
            name=claims.get("name"),
            picture=claims.get("picture"),
            issuer=claims.get("iss"),
            audience=claims.get("aud"),
            auth_time=_from_epoch(claims.get("auth_time")),
            issued_at=_from_epoch(claims.get("iat")),
            expires_at=_from_epoch(claims.get("exp")),
        )


def _from_epoch(value) -> Optional[datetime]:
    return datetime.fromtimestamp(value, tz=timezone.utc) if value is not None else None


class FirebaseTokenVerifier:
    """Verifies Firebase ID tokens, including revocation and disabled accounts."""

    def __init__(self, app: firebase_admin.App, check_revoked: bool = True):
        self.app = app
        self.check_revoked = check_revoked

    def verify(self, token: str) -> dict:
        return firebase_auth.verify_id_token(token, app=self.app, check_revoked=self.check_revoked)


def extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise AuthError("Authorization header is missing", code=ERROR_CODES["AUTH_MISSING_HEADER"])

    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token.strip():
        raise AuthError(
            "Invalid authorization header format. Expected: Bearer <token>",
            code=ERROR_CODES["AUTH_INVALID_HEADER"],
        )
    return token.strip()


def map_verification_error(exc: Exception, project_id: str, debug: bool) -> AuthError:
    """Translates a token-verification failure into the guard's error taxonomy."""
    message = str(exc)
    # Expired and revoked are subclasses of InvalidIdTokenError.
    if isinstance(exc, firebase_auth.ExpiredIdTokenError):
        return AuthError("Token has expired", code=ERROR_CODES["AUTH_TOKEN_EXPIRED"])
    if isinstance(exc, firebase_auth.RevokedIdTokenError):
        return AuthError("Token has been revoked", code="auth/id-token-revoked")
    if isinstance(exc, firebase_auth.UserDisabledError):
        return AuthError("User account has been disabled", code="auth/user-disabled")
    if isinstance(exc, firebase_auth.InvalidIdTokenError):
        if '"aud"' in message or "audience" in message:
            return _project_mismatch(project_id, None, debug)
        if "signature" in message:
            details = {
                "backendProjectId": project_id,
                "hint": "Check that FIREBASE_PROJECT_ID matches the project id configured in the frontend.",
            } if debug else None
            return AuthError(
                "Firebase ID token has invalid signature. This usually means the frontend and "
                "backend are using different Firebase projects.",
                code=SIGNATURE_MISMATCH,
                details=details,
            )
        return AuthError("Invalid token format", code="auth/invalid-id-token")
    return AuthError(message or "Token verification failed", code=ERROR_CODES["AUTH_INVALID_TOKEN"])


def _project_mismatch(expected: str, received: Optional[str], debug: bool) -> AuthError:
    return AuthError(
        "Firebase project ID mismatch. Make sure both frontend and backend are using the same Firebase project.",
        code=PROJECT_ID_MISMATCH,
        details={"expected": expected, "received": received} if debug else None,
    )


async def authenticate(authorization: Optional[str], verifier, project_id: str, debug: bool = False) -> AuthenticatedUser:
    """
    Runs the full bearer-token check for one request.

    Args:
        authorization: The raw Authorization header value.
        verifier: Object exposing verify(token) -> decoded claims.
        project_id: The project the token audience must match.
        debug: Include diagnostic details in the raised errors.

    Returns:
        The decoded identity.
    """
    token = extract_bearer_token(authorization)

    try:
        claims = await asyncio.to_thread(verifier.verify, token)
    except Exception as e:
        logger.warning("[Auth] Token verification failed: %s", e)
        raise map_verification_error(e, project_id, debug) from e

    if claims.get("aud") != project_id:
        logger.error("[Auth] Project ID mismatch: expected %s, received %s", project_id, claims.get("aud"))
        raise _project_mismatch(project_id, claims.get("aud"), debug)

    return AuthenticatedUser.from_claims(claims)


async def get_current_user(request: Request) -> AuthenticatedUser:
    """Route dependency: verifies the caller and attaches the identity to request.state."""
    services = request.app.state.services
    user = await authenticate(
        request.headers.get("Authorization"),
        services.token_verifier,
        services.config["firebase_project_id"],
        debug=services.config.get("environment") == "development",
    )
    request.state.user = user
    return user
