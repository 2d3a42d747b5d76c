"""Bearer-token authentication.

Tokens are HS256 JWTs whose ``sub`` is the user id. Issuing tokens belongs to
the identity service; ``create_access_token`` exists for development and tests.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from scriptflow.config.settings import settings
from scriptflow.core.errors import AuthenticationError, AuthorizationError

logger = structlog.get_logger()

USER_ROLE = "user"
EXECUTOR_ROLE = "executor"

bearer_scheme = HTTPBearer(auto_error=False)

# only used when SECRET_KEY is unset and ENVIRONMENT is development
DEV_SECRET_KEY = "scriptflow-dev-secret"


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    role: str = USER_ROLE

    @property
    def is_executor(self) -> bool:
        return self.role == EXECUTOR_ROLE


def signing_key() -> str:
    if settings.secret_key:
        return settings.secret_key
    if settings.environment == "development":
        return DEV_SECRET_KEY
    raise AuthenticationError(
        "Token signing key is not configured",
        details={"environment": settings.environment, "hint": "set SECRET_KEY"},
    )


def create_access_token(subject: str, role: str = USER_ROLE, expires_minutes: Optional[int] = None) -> str:
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    )
    payload = {"sub": subject, "role": role, "exp": expire}
    return jwt.encode(payload, signing_key(), algorithm=settings.algorithm)


def decode_access_token(token: str) -> CurrentUser:
    key = signing_key()
    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=[settings.algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning("Rejected bearer token", error=str(e))
        raise AuthenticationError("Invalid token")

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise AuthenticationError("Token has no subject")
    return CurrentUser(user_id=subject, role=payload.get("role") or USER_ROLE)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """FastAPI dependency: any authenticated caller, users and executors alike"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    return decode_access_token(credentials.credentials)


def get_current_user(principal: CurrentUser = Depends(get_current_principal)) -> CurrentUser:
    """FastAPI dependency: an end user; executor service tokens are refused"""
    if principal.is_executor:
        raise AuthorizationError(
            "Executor tokens may only report run progress",
            details={"role": principal.role},
        )
    return principal
