"""
Failure classification for API responses.

Every user-visible failure is classified and explained. Domain code raises a
KnownError subclass; the exception handlers in `figureshelf.main` render it
as an ApiResponse envelope with the error's status code.

Response types:
- Success: Operation completed successfully
- KnownFailure: System knows why it failed
- UnknownFailure: System does not know why it failed
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    MISSING_REQUIRED = "missing_required"

    # Resource failures
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"

    # Access
    FORBIDDEN = "forbidden"

    # Multi-step writes where only some steps landed
    PARTIAL_FAILURE = "partial_failure"

    # Service failures
    SERVICE_UNAVAILABLE = "service_unavailable"
    EXTERNAL_API_ERROR = "external_api_error"

    # Unknown
    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    """High-level outcome classification."""

    SUCCESS = "success"
    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


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
    applied_steps: list[str] | None = Field(
        default=None,
        description="Steps that landed, for partial failures",
    )
    failed_step: str | None = Field(
        default=None,
        description="The step that did not land, for partial failures",
    )


class ApiResponse(BaseModel, Generic[T]):
    """Response envelope used for failures and wrapped successes."""

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

    @classmethod
    def success(cls, data: T) -> "ApiResponse[T]":
        """Create a success response."""
        return cls(outcome=OutcomeType.SUCCESS, data=data)

    @classmethod
    def known_failure(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "ApiResponse[Any]":
        """Create a known failure response."""
        return cls(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(
                kind=kind,
                message=message,
                detail=detail,
                suggestion=suggestion,
            ),
        )

    @classmethod
    def unknown_failure(cls, exception: Exception) -> "ApiResponse[Any]":
        """
        Create an unknown failure response.

        Only the exception type name leaks to the user; the message is fixed.
        """
        return cls(
            outcome=OutcomeType.UNKNOWN_FAILURE,
            failure=FailureDetail(
                kind=FailureKind.UNKNOWN,
                message="Something went wrong and the cause is unknown. Please retry.",
                detail=type(exception).__name__,
                suggestion="If this persists, please report the issue.",
            ),
        )


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

    def to_response(self) -> ApiResponse[Any]:
        """Convert to an ApiResponse."""
        return ApiResponse.known_failure(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class InvalidInputError(KnownError):
    """Input rejected before any write was attempted."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=message,
            detail=detail,
            status_code=400,
        )


class NotFoundError(KnownError):
    """A referenced record does not exist."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=message,
            detail=detail,
            status_code=404,
        )


class DuplicateRecordError(KnownError):
    """A (owner, item) record already exists."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(
            kind=FailureKind.DUPLICATE,
            message=message,
            detail=detail,
            suggestion="Reload your collection to see its current state.",
            status_code=409,
        )


class ForbiddenError(KnownError):
    """The caller is not allowed to perform the operation."""

    def __init__(self, message: str = "Administrator role required.") -> None:
        super().__init__(
            kind=FailureKind.FORBIDDEN,
            message=message,
            status_code=403,
        )


class BackendError(KnownError):
    """A remote write or read failed; local state was left unchanged."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(
            kind=FailureKind.SERVICE_UNAVAILABLE,
            message=message,
            detail=detail,
            suggestion="Please try again.",
            status_code=502,
        )


class PartialMutationError(KnownError):
    """
    A multi-step mutation applied some steps but not all.

    `applied` and `failed` name the steps so callers can show exactly what
    happened.
    """

    def __init__(self, applied: list[str], failed: str, detail: str | None = None) -> None:
        self.applied = applied
        self.failed = failed
        message = (
            f"Partially applied: {', '.join(applied)} succeeded but {failed} failed."
        )
        super().__init__(
            kind=FailureKind.PARTIAL_FAILURE,
            message=message,
            detail=detail,
            suggestion="Reload your collection and retry the remaining step.",
            status_code=502,
        )

    def to_response(self) -> ApiResponse[Any]:
        """Convert to an ApiResponse that also names the applied and failed steps."""
        return ApiResponse(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(
                kind=self.kind,
                message=self.message,
                detail=self.detail,
                suggestion=self.suggestion,
                applied_steps=self.applied,
                failed_step=self.failed,
            ),
        )


class ExternalServiceError(KnownError):
    """A third-party source (catalog feed) could not be reached or parsed."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(
            kind=FailureKind.EXTERNAL_API_ERROR,
            message=message,
            detail=detail,
            suggestion="Check the source URL and try again later.",
            status_code=502,
        )
