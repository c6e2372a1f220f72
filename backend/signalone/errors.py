"""
SignalOne - Error Taxonomy

Every failure the core reports carries a machine-usable category and a
human-readable message. Routers never build error payloads by hand; the
handlers registered in main.py translate these into JSON responses.
"""
from typing import Optional


class SignalOneError(Exception):
    """Base class for all client-reportable failures."""
    status_code = 500
    category = "internal_error"
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.category, "message": self.message}


# =============================================================================
# CLIENT ERRORS
# =============================================================================

class Unauthorized(SignalOneError):
    status_code = 401
    category = "unauthorized"
    default_message = "Unauthorized"


class InvalidToken(Unauthorized):
    """
    Bearer/refresh token failed verification.

    The message is always the generic one; the actual cause (expired,
    bad signature, malformed) only goes to the logs.
    """


class ValidationError(SignalOneError):
    status_code = 400
    category = "validation_error"
    default_message = "Invalid request"


class InvalidScore(ValidationError):
    default_message = "Score must be one of: -1, 0, 1"


class NotFound(SignalOneError):
    status_code = 404
    category = "not_found"
    default_message = "Not found"


class Conflict(SignalOneError):
    status_code = 409
    category = "conflict"
    default_message = "Record was modified concurrently, retry the request"


# =============================================================================
# IDENTITY PROVIDER ERRORS
# =============================================================================

class IdentityProviderError(SignalOneError):
    """OAuth code exchange or provider profile fetch failed."""
    status_code = 401
    category = "identity_provider_error"
    default_message = "Identity provider request failed"


class TokenValidationError(SignalOneError):
    """A provider-issued identity assertion failed one of its checks."""
    status_code = 401
    category = "token_validation_error"
    reason = "invalid"
    default_message = "Identity token is invalid"

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["reason"] = self.reason
        return payload


class KeyNotFound(TokenValidationError):
    reason = "key_not_found"
    default_message = "Signing key not found"


class SignatureInvalid(TokenValidationError):
    reason = "signature_invalid"
    default_message = "Signature verification failed"


class InvalidIssuer(TokenValidationError):
    reason = "invalid_issuer"
    default_message = "iss is invalid"


class InvalidAudience(TokenValidationError):
    reason = "invalid_audience"
    default_message = "aud is invalid"


class TokenExpired(TokenValidationError):
    reason = "token_expired"
    default_message = "jwt is expired"


# =============================================================================
# SERVER ERRORS
# =============================================================================

class InternalError(SignalOneError):
    pass


class AnalysisServiceError(InternalError):
    """The prediction agent could not produce an analysis."""
    status_code = 502
    category = "analysis_service_error"
    default_message = "Analysis service unavailable"
