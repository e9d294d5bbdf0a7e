"""
Closed error taxonomy shared by the store, the services and the API layer.

Services raise ``ServiceError`` subclasses; the API layer maps ``kind`` to an
HTTP status code in one place (see ``costventures.main``).
"""
import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    """Error kinds exposed to callers of the service layer."""
    BAD_REQUEST = "BadRequest"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    INTERNAL_ERROR = "InternalError"
    UPSTREAM_ERROR = "UpstreamError"


class ServiceError(Exception):
    """Base class for all errors crossing the service boundary."""
    kind: ErrorKind = ErrorKind.INTERNAL_ERROR
    code: str = "EM-002"
    name: str = "INTERNAL_ERROR"
    default_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.name, "code": self.code, "message": self.message}


class UpstreamError(ServiceError):
    """A third-party dependency failed."""
    kind = ErrorKind.UPSTREAM_ERROR
    code = "EM-001"
    name = "UPSTREAM_ERROR"
    default_message = "Upstream service failed"


class InternalError(ServiceError):
    """Unclassified failure, usually from the store or transport."""
    kind = ErrorKind.INTERNAL_ERROR
    code = "EM-002"
    name = "INTERNAL_ERROR"

    def __init__(self, message: Optional[str] = None, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND
    code = "EM-003"
    name = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(ServiceError):
    kind = ErrorKind.CONFLICT
    code = "EM-004"
    name = "CONFLICT"
    default_message = "Resource conflict"


class BadRequestError(ServiceError):
    kind = ErrorKind.BAD_REQUEST
    code = "EM-005"
    name = "BAD_REQUEST"
    default_message = "Malformed request"


class UnauthorizedError(ServiceError):
    kind = ErrorKind.UNAUTHORIZED
    code = "EM-006"
    name = "UNAUTHORIZED"
    default_message = "Not authenticated"


class CredentialsInvalidError(UnauthorizedError):
    code = "EM-007"
    name = "CREDENTIALS_INVALID"
    default_message = "Incorrect email or password"


class ForbiddenError(ServiceError):
    kind = ErrorKind.FORBIDDEN
    code = "EM-008"
    name = "FORBIDDEN"
    default_message = "Insufficient permissions"


class UserNotFoundError(NotFoundError):
    code = "EM-009"
    name = "USER_NOT_FOUND"
    default_message = "User not found"


class TripNotFoundError(NotFoundError):
    code = "EM-010"
    name = "TRIP_NOT_FOUND"
    default_message = "Trip not found"


class CostNotFoundError(NotFoundError):
    code = "EM-011"
    name = "COST_NOT_FOUND"
    default_message = "Cost not found"


class UserNotActivatedError(ForbiddenError):
    code = "EM-013"
    name = "USER_NOT_ACTIVE"
    default_message = "User account is not activated"


class MailNotSentError(UpstreamError):
    code = "EM-014"
    name = "MAIL_NOT_SENT"
    default_message = "Mail could not be sent"


class MailAlreadyVerifiedError(ConflictError):
    code = "EM-015"
    name = "MAIL_ALREADY_VERIFIED"
    default_message = "Account is already activated"


class AlreadyAcceptedError(ConflictError):
    code = "EM-016"
    name = "ALREADY_ACCEPTED"
    default_message = "Invitation was already accepted"


class EmailExistsError(ConflictError):
    code = "EM-017"
    name = "EMAIL_EXISTS"
    default_message = "Email already exists"


class UsernameExistsError(ConflictError):
    code = "EM-018"
    name = "USERNAME_EXISTS"
    default_message = "Username already exists"


class InvalidActivationTokenError(BadRequestError):
    code = "EM-019"
    name = "INVALID_ACTIVATION_TOKEN"
    default_message = "Activation token is invalid or expired"


class TransactionNotFoundError(NotFoundError):
    code = "EM-020"
    name = "TRANSACTION_NOT_FOUND"
    default_message = "Transaction not found"


class AlreadyConfirmedError(ConflictError):
    code = "EM-021"
    name = "ALREADY_CONFIRMED"
    default_message = "Transaction was already confirmed"


class CostCategoryNotFoundError(NotFoundError):
    code = "EM-022"
    name = "COST_CATEGORY_NOT_FOUND"
    default_message = "Cost category not found"


class ForeignKeyMissingError(NotFoundError):
    """A write referenced a row that does not exist."""
    code = "EM-023"
    name = "FOREIGN_KEY_MISSING"
    default_message = "Referenced resource does not exist"


class CurrencyMismatchError(BadRequestError):
    code = "EM-024"
    name = "CURRENCY_MISMATCH"
    default_message = "Amounts in different currencies cannot be combined"


class InvalidResetTokenError(BadRequestError):
    code = "EM-025"
    name = "INVALID_RESET_TOKEN"
    default_message = "Password reset token is invalid or expired"


class DebtNotFoundError(NotFoundError):
    code = "EM-026"
    name = "DEBT_NOT_FOUND"
    default_message = "Debt not found"
