"""Exceptions raised by the judging client."""


class JudgingError(Exception):
    """Base class for every error the judging client reports to a user."""
    pass


class ContractError(JudgingError, ValueError):
    """Raised when a backend payload does not have the expected shape."""
    pass


class ValidationError(JudgingError, ValueError):
    """Raised when a local check fails before anything is sent to the backend.

    Attributes:
        participant: Participant id the failure is about, if any
        criterion: Criterion id the failure is about, if any
    """

    def __init__(self, message: str, participant: str | None = None,
                 criterion: str | None = None):
        super().__init__(message)
        self.participant = participant
        self.criterion = criterion


class CategoryClosedError(ValidationError):
    """Raised when scoring is attempted on a category that is not open."""
    pass


class AlreadyVotedError(JudgingError):
    """Raised when a judge re-opens a category they have already scored."""
    pass


class DeadlineExceededError(JudgingError):
    """Raised when the event's judging deadline has passed."""
    pass


class RemoteError(JudgingError):
    """Raised when the backend or the network fails a request.

    Attributes:
        status_code: HTTP status, or None for transport failures
        requires_login: True when the failure means the stored token is
            missing, expired or rejected, so the user must log in again
    """

    def __init__(self, message: str, status_code: int | None = None,
                 requires_login: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.requires_login = requires_login


class NotFoundError(JudgingError):
    """Raised when a referenced event, category or participant does not exist."""
    pass
