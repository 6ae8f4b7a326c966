"""Exception types shared by the client library and the portal."""
from typing import Any, Dict, List, Optional


class ClubError(Exception):
    """Base class for every error raised by the gaming club client."""


class ValidationError(ClubError):
    """Form or business-rule violation detected before any network call.

    Attributes:
        errors: ``{field_name: message}`` with the first failing rule per field.
    """

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__('; '.join(self.errors.values()) or 'Invalid input')

    @property
    def message(self) -> str:
        return str(self)


class ApiError(ClubError):
    """Uniform shape for every transport or server failure.

    Attributes:
        message: Server-supplied ``message`` or the transport error text.
        status:  HTTP status code, ``500`` when no response was received.
        details: Decoded response body (or ``None``).
    """

    def __init__(self, message: str, status: int = 500, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {'message': self.message, 'status': self.status, 'details': self.details}


class NotFoundError(ClubError):
    """No identity directory entry matched the supplied credentials."""


class ConflictError(ClubError):
    """The identity directory already holds an entry for this phone number."""


class ConfigError(ClubError):
    """The configuration file exists but cannot be parsed."""


class PurchaseError(ClubError):
    """A purchase failed after one or more of its steps had already committed.

    Attributes:
        cause:           The :class:`ApiError` raised by the failing step.
        completed_steps: Names of the steps that committed, in order.
        transaction:     The transaction record created by the first step.
    """

    def __init__(self, cause: ApiError, completed_steps: List[str],
                 transaction: Optional[Dict] = None) -> None:
        self.cause = cause
        self.completed_steps = list(completed_steps)
        self.transaction = transaction
        self.status = cause.status
        self.message = cause.message
        super().__init__(
            f"{cause.message} (committed: {', '.join(self.completed_steps)})"
        )
