"""API error classes.

Every failure path in the BFF raises one of these so the exception handler
can render a consistent ``{"error": ..., "code": ...}`` payload.

WHY CUSTOM ERROR CLASSES:
- Consistent error response format across all endpoints
- Easy to map to HTTP status codes in exception handlers
- Type-safe error handling in services and upstream clients
"""

from enum import Enum


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional additional error details.
        can_retry: Whether re-issuing the same request may succeed.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | str | None = None,
        can_retry: bool = False,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.can_retry = can_retry
        super().__init__(message)


class ValidationError(APIError):
    """Field validation failed (400).

    Use for malformed emails, missing fields, etc.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
        code: str = "VALIDATION_ERROR",
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedError(APIError):
    """Authentication required (401).

    Use when no valid credential is provided or the upstream rejects it.
    """

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


class InvalidTokenError(APIError):
    """Magic-link token rejected (401).

    Codes: TOKEN_EXPIRED, INVALID_TOKEN, INVALID_TOKEN_TYPE.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(code=code, message=message, status_code=401)


class ForbiddenError(APIError):
    """Not allowed to perform the action (403)."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=403,
        )


class RegistrationBlockedError(ForbiddenError):
    """Registration policy rejected a first-time email (403).

    Raised before any user or credential is created.
    """

    def __init__(self, message: str) -> None:
        APIError.__init__(
            self,
            code="REGISTRATION_BLOCKED",
            message=message,
            status_code=403,
        )


class ConfigurationError(APIError):
    """Required server secret or URL is absent (503).

    Fatal for the request, not for the process.
    """

    def __init__(
        self,
        message: str = "Authentication service not configured",
        code: str = "NOT_CONFIGURED",
    ) -> None:
        super().__init__(code=code, message=message, status_code=503)


class UpstreamUnavailableError(APIError):
    """An upstream collaborator could not be reached or failed (502/503/504).

    Always retryable by the caller; never swallowed.
    """

    def __init__(
        self,
        message: str = "Failed to connect to Vexa API",
        code: str = "UPSTREAM_UNAVAILABLE",
        status_code: int = 502,
        details: str | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details=details,
            can_retry=True,
        )


class EmailFailureKind(Enum):
    """Distinguishable email delivery failure modes."""

    UNREACHABLE = "EMAIL_UNREACHABLE"
    AUTH_FAILED = "EMAIL_AUTH_FAILED"
    SEND_FAILED = "EMAIL_SEND_FAILED"


_EMAIL_FAILURE_MESSAGES = {
    EmailFailureKind.UNREACHABLE: (
        "Cannot reach email server. Please check the email service configuration."
    ),
    EmailFailureKind.AUTH_FAILED: (
        "Email authentication failed. Please check RESEND_API_KEY configuration."
    ),
    EmailFailureKind.SEND_FAILED: "Failed to send email. Please try again later.",
}

_EMAIL_FAILURE_STATUS = {
    EmailFailureKind.UNREACHABLE: 503,
    EmailFailureKind.AUTH_FAILED: 503,
    EmailFailureKind.SEND_FAILED: 500,
}


class EmailDeliveryError(APIError):
    """Magic-link email could not be delivered.

    Args:
        kind: Which failure mode occurred.
        details: Transport-level detail, safe to show (no credentials).
    """

    def __init__(self, kind: EmailFailureKind, details: str | None = None) -> None:
        self.kind = kind
        super().__init__(
            code=kind.value,
            message=_EMAIL_FAILURE_MESSAGES[kind],
            status_code=_EMAIL_FAILURE_STATUS[kind],
            details=details,
            can_retry=kind is not EmailFailureKind.AUTH_FAILED,
        )
