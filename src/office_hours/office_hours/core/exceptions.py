class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DomainError"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "Validation"


class NotFoundError(DomainError):
    """Raised when a leader or session id does not resolve."""

    code = "NotFound"


class AlreadyActiveError(DomainError):
    """Raised on clock-in for a leader who is already clocked in."""

    code = "AlreadyActive"


class NotActiveError(DomainError):
    """Raised on clock-out for a leader who is not clocked in."""

    code = "NotActive"


class CorruptSessionError(DomainError):
    """Raised when an open session lacks its timing fields or was already closed."""

    code = "CorruptSession"
