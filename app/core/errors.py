# app/core/errors.py
"""
Error taxonomy shared by every adapter and route.

Each error carries the HTTP status it maps to and a stable, machine-readable
``reason`` tag. The FastAPI exception handler in ``app.main`` renders them as::

    {"code": 404, "error": {"message": "...", "reason": "notFound"}}
"""
from typing import Any, Dict


class GatewayError(Exception):
    """Base class for errors the gateway raises intentionally."""

    code: int = 500
    reason: str = "internalServerError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "error": {"message": self.message, "reason": self.reason},
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} code={self.code} reason={self.reason} message={self.message!r}>"


class BadRequest(GatewayError):
    """Malformed URL or input (relative paths, missing path arguments)."""

    code = 400
    reason = "malformedUrl"


class MissingParameter(GatewayError):
    """A required body field or upload is absent."""

    code = 400
    reason = "missingParam"


class InvalidCredentials(GatewayError):
    """The presented credentials were rejected."""

    code = 401
    reason = "invalidCredentials"


class InvalidProviderCredentials(InvalidCredentials):
    """The upstream provider rejected the forwarded credential (HTTP 401)."""

    reason = "invalidProviderCredentials"


class MissingCredentials(GatewayError):
    """No gateway client credentials were sent."""

    code = 403
    reason = "missingCredentials"


class Unauthorized(GatewayError):
    code = 403
    reason = "unauthorized"


class MissingProviderCredentials(Unauthorized):
    """No provider credential header was sent."""

    reason = "missingProviderCredentials"


class NotFound(GatewayError):
    code = 404
    reason = "notFound"


class FileExists(GatewayError):
    """Create attempted on an occupied path."""

    code = 409
    reason = "conflict"


class NotImplementedByProvider(GatewayError):
    """Operation unsupported by the selected provider."""

    code = 501
    reason = "notImplemented"


class InvalidProviderId(GatewayError):
    code = 501
    reason = "invalidProviderId"


class ProviderInteractionError(GatewayError):
    """Any other upstream failure; message carries the upstream's own message."""

    code = 500
    reason = "providerInteractionError"


def internal_error_body(message: str) -> Dict[str, Any]:
    """Failure envelope for unexpected exceptions."""
    return {"code": 500, "error": {"message": message, "reason": "internalServerError"}}
