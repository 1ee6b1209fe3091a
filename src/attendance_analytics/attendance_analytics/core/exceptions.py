class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is a stable identifier the HTTP layer maps to a status code;
    the message is safe to show to end users.
    """

    code = "domain-error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation"


class NotFoundError(DomainError):
    """Raised when an activity, participant or record does not exist."""

    code = "not-found"


class DuplicateCheckInError(DomainError):
    """Raised when a participation record already exists for the pair."""

    code = "duplicate"


class WindowNotOpenError(DomainError):
    code = "window-not-open"


class WindowClosedError(DomainError):
    code = "window-closed"


class ActivityCancelledError(DomainError):
    code = "activity-cancelled"


class LeaveTooLateError(DomainError):
    """Raised when leave is requested inside the minimum notice period."""

    code = "leave-too-late"


class DuplicateLeaveRequestError(DomainError):
    code = "duplicate"


class RequestAlreadyDecidedError(DomainError):
    code = "already-decided"


class InvalidRangeError(ValidationError):
    """Raised when a report's start date is after its end date."""

    code = "invalid-range"


class AuthorizationError(DomainError):
    """Raised when a caller's scope does not cover the requested data."""

    code = "forbidden"


class AggregationTimeoutError(DomainError):
    code = "timeout"


class StoreError(Exception):
    """Opaque infrastructure failure from a repository.

    Not a DomainError: it is logged and surfaced as a generic failure, and the
    caller decides whether to retry.
    """

    code = "store-error"
