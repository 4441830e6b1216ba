"""
Failure classification and the API response envelope.

Every failure the matcher can produce is classified by FailureKind.
Library code raises KnownError subclasses; the search cascade turns them
into structured results; the HTTP layer turns them into ApiResponse
envelopes through finalize_response().

Response types:
- Success: Operation completed successfully
- KnownFailure: System knows why it failed
- UnknownFailure: System does not know why it failed

Cancellation is not a failure. A superseded search raises
asyncio.CancelledError and is never reported to the user.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, PrivateAttr


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    MISSING_REQUIRED = "missing_required"

    # Resource failures
    NOT_FOUND = "not_found"

    # Collaborator failures
    NETWORK_ERROR = "network_error"
    PARSE_ERROR = "parse_error"
    SERVICE_UNAVAILABLE = "service_unavailable"

    # Unknown
    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    """High-level outcome classification."""

    SUCCESS = "success"
    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


# Kinds the lifecycle controller retries automatically
RETRYABLE_KINDS = frozenset({FailureKind.NETWORK_ERROR})


T = TypeVar("T")


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class ApiResponse(BaseModel, Generic[T]):
    """
    Universal response envelope for all API endpoints.

    Every response is classified into one of three outcome types,
    ensuring no failure reaches the user unexplained.
    """

    outcome: OutcomeType = Field(
        ...,
        description="High-level classification of the result",
    )
    data: T | None = Field(
        default=None,
        description="Response data (present on success)",
    )
    failure: FailureDetail | None = Field(
        default=None,
        description="Failure details (present on non-success)",
    )

    # Set only by finalize_response()
    _finalized: bool = PrivateAttr(default=False)


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def to_response(self) -> ApiResponse[Any]:
        """Convert to a finalized ApiResponse."""
        response: ApiResponse[Any] = ApiResponse(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(
                kind=self.kind,
                message=self.message,
                detail=self.detail,
                suggestion=self.suggestion,
            ),
        )
        return finalize_response(response)


class QueryValidationError(KnownError):
    """Raised when a search is requested without a name or card number."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.MISSING_REQUIRED,
            message="A Pokemon name or card number is required to search.",
            detail=detail,
            suggestion="Enter the name or the number printed at the bottom of the card.",
            status_code=400,
        )


class NetworkError(KnownError):
    """
    Raised when the catalog or vision service cannot be reached or answers
    with an error status. Retried automatically by the lifecycle controller.
    """

    def __init__(self, detail: str | None = None, status_code: int = 502):
        super().__init__(
            kind=FailureKind.NETWORK_ERROR,
            message="The card service could not be reached.",
            detail=detail,
            suggestion="Check your connection and retry.",
            status_code=status_code,
        )


class CardNotFoundError(KnownError):
    """Raised when a catalog card id does not exist."""

    def __init__(self, card_id: str):
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message="Card not found.",
            detail=f"Card '{card_id}' not found",
            suggestion="Search again by name or card number.",
            status_code=404,
        )


class ParseError(KnownError):
    """Raised when a catalog or vision response is malformed. Never retried."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.PARSE_ERROR,
            message="The card service returned an unreadable response.",
            detail=detail,
            suggestion="Try again, or edit the card details manually.",
            status_code=502,
        )


# =============================================================================
# FAILURE AUTHORITY BOUNDARY
# =============================================================================
#
# All user-visible responses MUST pass through this boundary.
#
# =============================================================================


STANDARD_MESSAGES: dict[OutcomeType, str] = {
    OutcomeType.UNKNOWN_FAILURE: "Something went wrong while matching the card. Please retry.",
}

STANDARD_SUGGESTIONS: dict[OutcomeType, str] = {
    OutcomeType.UNKNOWN_FAILURE: "If this persists, please report the issue.",
}


def finalize_response(response: ApiResponse[Any]) -> ApiResponse[Any]:
    """
    Finalize a response through the authority boundary.

    Args:
        response: The ApiResponse to finalize

    Returns:
        The same response, marked as having passed through the boundary

    Raises:
        ValueError: If response structure is invalid
    """
    if response.outcome == OutcomeType.SUCCESS:
        if response.failure is not None:
            raise ValueError("Success response must not have failure details")
    else:
        if response.failure is None:
            raise ValueError(f"{response.outcome.value} response must have failure details")

    response._finalized = True

    return response


def is_finalized(response: ApiResponse[Any]) -> bool:
    """Check if a response has passed through the authority boundary."""
    return response._finalized


def create_unknown_failure(exception: Exception) -> ApiResponse[Any]:
    """
    Create an unknown failure response from an exception.

    The message is fixed; only the exception type is exposed as detail.
    """
    response: ApiResponse[Any] = ApiResponse(
        outcome=OutcomeType.UNKNOWN_FAILURE,
        failure=FailureDetail(
            kind=FailureKind.UNKNOWN,
            message=STANDARD_MESSAGES[OutcomeType.UNKNOWN_FAILURE],
            detail=type(exception).__name__,
            suggestion=STANDARD_SUGGESTIONS[OutcomeType.UNKNOWN_FAILURE],
        ),
    )

    return finalize_response(response)


def create_success(data: T) -> ApiResponse[T]:
    """Create a finalized success response."""
    response = ApiResponse[T](outcome=OutcomeType.SUCCESS, data=data)
    finalize_response(response)
    return response
