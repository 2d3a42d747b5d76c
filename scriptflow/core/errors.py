"""Domain errors and the JSON error envelope they render to."""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return error_envelope(self.error_code, self.message, self.details)


def error_envelope(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        }
    }


# Authentication & Authorization Errors
class AuthenticationError(DomainError):
    """Token missing, invalid, or expired"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class AuthorizationError(DomainError):
    """Caller lacks permission for action"""
    error_code = "AUTHORIZATION_ERROR"
    http_status = 403


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found (or not visible to the caller)"""
    error_code = "NOT_FOUND"
    http_status = 404


class ScriptNotFound(NotFoundError):
    error_code = "SCRIPT_NOT_FOUND"


class ChangesetNotFound(NotFoundError):
    error_code = "CHANGESET_NOT_FOUND"


class RunNotFound(NotFoundError):
    error_code = "RUN_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict"""
    error_code = "CONFLICT"
    http_status = 409


class InvalidChangesetState(ConflictError):
    """Change-set is not in the state the action requires"""
    error_code = "INVALID_CHANGESET_STATE"


class InvalidRunState(ConflictError):
    """Test run is not in a state the transition can start from"""
    error_code = "INVALID_RUN_STATE"


class StaleChangeset(ConflictError):
    """Proposed diff no longer applies to the current script content"""
    error_code = "STALE_CHANGESET"


class ConcurrencyConflict(ConflictError):
    """Another writer changed the row between read and conditional write"""
    error_code = "CONCURRENCY_CONFLICT"


# Upstream Errors
class UpstreamError(DomainError):
    """External collaborator failure"""
    error_code = "UPSTREAM_FAILURE"
    http_status = 500


class AIProviderError(UpstreamError):
    error_code = "AI_PROVIDER_ERROR"


class ExecutionEngineError(UpstreamError):
    error_code = "EXECUTION_ENGINE_ERROR"
