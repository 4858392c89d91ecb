"""Exception hierarchy for the plan service.

Every error the service raises on purpose derives from PlanServiceError.
The API layer maps status_code + message (+ optional details) to a JSON
error body, so handlers never have to build HTTP responses themselves.
"""

from typing import Optional


class PlanServiceError(Exception):
    """Base class for all service errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(PlanServiceError):
    """Missing or malformed request fields, or a plan not ready for the action."""

    status_code = 400


class AuthenticationError(PlanServiceError):
    status_code = 401


class NotFoundError(PlanServiceError):
    status_code = 404


class ConflictError(PlanServiceError):
    status_code = 409


class IllegalTransitionError(ConflictError):
    """A plan status change that is not in the transition table."""

    def __init__(self, from_status: str, to_status: str):
        super().__init__(
            f"Illegal plan transition: {from_status} -> {to_status}",
        )
        self.from_status = from_status
        self.to_status = to_status


class UpstreamError(PlanServiceError):
    """LLM provider transport, authentication, or response-shape failure. Never retried."""

    status_code = 502


class ParseError(PlanServiceError):
    """Model output could not be decoded as JSON. Retryable."""

    status_code = 502


class ExtractionError(ParseError):
    """No JSON candidate could be located in the model output."""

    def __init__(self, raw_length: int):
        super().__init__(
            f"No JSON object or array found in model output (length={raw_length})",
        )
        self.raw_length = raw_length


class RetryExhaustedError(PlanServiceError):
    """The retry budget ran out; carries the last underlying error."""

    status_code = 502

    def __init__(self, last_error: Exception, attempts: int):
        super().__init__(
            f"Failed after {attempts} attempts. Last error: {last_error}",
            details=str(last_error),
        )
        self.last_error = last_error
        self.attempts = attempts


class RenderError(PlanServiceError):
    status_code = 500


class NotificationError(PlanServiceError):
    """Email delivery failed. Best-effort: never changes plan state."""

    status_code = 500
