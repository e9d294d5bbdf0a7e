"""
User service: registration, activation, login, password reset and profile management.
"""
import logging
import secrets
from datetime import timedelta
from typing import List, Optional

from costventures.core.config import settings
from costventures.core.errors import (
    BadRequestError,
    ConflictError,
    CredentialsInvalidError,
    EmailExistsError,
    ForeignKeyMissingError,
    InvalidActivationTokenError,
    InvalidResetTokenError,
    MailAlreadyVerifiedError,
    MailNotSentError,
    UnauthorizedError,
    UserNotActivatedError,
    UserNotFoundError,
    UsernameExistsError,
)
from costventures.core.security import create_token_pair, decode_token, get_password_hash, verify_password, REFRESH_TOKEN_TYPE
from costventures.core.utils import contains_empty_string, first_non_empty, generate_random_string, utcnow
from costventures.db.store import LedgerStore
from costventures.models.cost import CostContribution
from costventures.models.debt import Debt
from costventures.models.transaction import Transaction
from costventures.models.user import ActivationToken, PasswordResetToken, User
from costventures.schemas.user import (
    RegisterResponse,
    Token,
    UserDetails,
    UserRegister,
    UserResponse,
    UserSuggestion,
    UserSummary,
    UserUpdate,
)
from costventures.services import debt_service
from costventures.services.mail_service import MailManager

logger = logging.getLogger(__name__)

SUGGESTION_LIMIT = 10


def _username_taken(store: LedgerStore, username: str) -> bool:
    return store.exists(store.session.query(User).filter(User.username == username))


def _email_taken(store: LedgerStore, email: str) -> bool:
    return store.exists(store.session.query(User).filter(User.email == email))


def _new_token_value(store: LedgerStore) -> str:
    while True:
        value = generate_random_string(settings.ACTIVATION_TOKEN_LENGTH)
        if not store.exists(store.session.query(ActivationToken).filter(ActivationToken.token == value)):
            return value


def _token_expiry():
    return utcnow() + timedelta(hours=settings.ACTIVATION_TOKEN_EXPIRE_HOURS)


def _deliver(send, *args) -> bool:
    """Run a mail send; a failed delivery is reported, not raised."""
    try:
        send(*args)
    except MailNotSentError as e:
        logger.warning("Mail delivery degraded: %s", e.message)
        return False
    return True


def register_user(store: LedgerStore, user_data: UserRegister, mail_manager: MailManager) -> RegisterResponse:
    """Create an inactive user and mail the activation token."""
    if contains_empty_string(user_data.username, user_data.password):
        raise BadRequestError("Username and password are required")
    username = user_data.username.strip()
    email = str(user_data.email).lower()

    if _username_taken(store, username):
        raise UsernameExistsError()
    if _email_taken(store, email):
        raise EmailExistsError()

    with store.transaction() as db:
        new_user = User(
            username=username,
            email=email,
            hashed_password=get_password_hash(user_data.password),
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            location=user_data.location,
            is_activated=False,
        )
        new_user.activation_token = ActivationToken(token=_new_token_value(store), expires_at=_token_expiry())
        db.add(new_user)
        db.flush()
        user_id, token = new_user.id, new_user.activation_token.token

    logger.info("Registered user %s", user_id)
    delivered = _deliver(mail_manager.send_activation_mail, email, username, token)
    return RegisterResponse(id=user_id, username=username, email=email, mail_delivered=delivered)


def activate_user(store: LedgerStore, token: str, mail_manager: Optional[MailManager] = None) -> UserResponse:
    """Confirm an activation token; tokens are single-use and expire."""
    if contains_empty_string(token):
        raise InvalidActivationTokenError()

    with store.reading():
        activation = store.session.query(ActivationToken).filter(
            ActivationToken.token == token.strip().upper()
        ).first()
    if activation is None:
        raise InvalidActivationTokenError()
    if activation.confirmed_at is not None or activation.user.is_activated:
        raise MailAlreadyVerifiedError()
    if activation.expires_at < utcnow():
        raise InvalidActivationTokenError("Activation token has expired")

    with store.transaction():
        activation = store.lock(ActivationToken, activation.id, InvalidActivationTokenError)
        if activation.token != token.strip().upper():
            raise InvalidActivationTokenError()
        if activation.confirmed_at is not None:
            raise MailAlreadyVerifiedError()
        activation.confirmed_at = utcnow()
        activation.user.is_activated = True

    with store.reading():
        user = activation.user
        response = UserResponse.model_validate(user)
    if mail_manager is not None:
        _deliver(mail_manager.send_confirmation_mail, user.email, user.username)
    return response


def resend_token(store: LedgerStore, email: str, mail_manager: MailManager) -> bool:
    """Replace the user's activation token and mail it again; returns whether the mail went out."""
    with store.reading():
        user = store.session.query(User).filter(User.email == str(email).lower()).first()
    if user is None:
        raise UserNotFoundError()
    if user.is_activated:
        raise MailAlreadyVerifiedError()

    with store.transaction():
        value = _new_token_value(store)
        if user.activation_token is None:
            user.activation_token = ActivationToken(token=value, expires_at=_token_expiry())
        else:
            user.activation_token.token = value
            user.activation_token.expires_at = _token_expiry()
            user.activation_token.confirmed_at = None
        email, username = user.email, user.username

    return _deliver(mail_manager.send_activation_mail, email, username, value)


def _reset_expiry():
    return utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES)


def _user_by_email(store: LedgerStore, email: str) -> User:
    with store.reading():
        user = store.session.query(User).filter(User.email == str(email).strip().lower()).first()
    if user is None:
        raise UserNotFoundError()
    return user


def _check_reset_token(reset: Optional[PasswordResetToken], token: str):
    """Raise unless `reset` is an unused, unexpired token with the given value."""
    if contains_empty_string(token) or reset is None:
        raise InvalidResetTokenError()
    if reset.used_at is not None or not secrets.compare_digest(reset.token, token.strip().upper()):
        raise InvalidResetTokenError()
    if reset.expires_at < utcnow():
        raise InvalidResetTokenError("Password reset token has expired")


def forgot_password(store: LedgerStore, email: str, mail_manager: MailManager) -> bool:
    """Issue a new password reset token and mail it; returns whether the mail went out."""
    user = _user_by_email(store, email)
    if not user.is_activated:
        raise UserNotActivatedError()

    value = generate_random_string(settings.PASSWORD_RESET_TOKEN_LENGTH)
    with store.transaction():
        if user.password_reset_token is None:
            user.password_reset_token = PasswordResetToken(token=value, expires_at=_reset_expiry())
        else:
            user.password_reset_token.token = value
            user.password_reset_token.expires_at = _reset_expiry()
            user.password_reset_token.used_at = None
        email, username = user.email, user.username
        logger.info("Password reset requested for user %s", user.id)

    return _deliver(mail_manager.send_password_reset_mail, email, username, value)


def verify_reset_token(store: LedgerStore, email: str, token: str):
    """Check a reset token without using it up."""
    user = _user_by_email(store, email)
    with store.reading():
        _check_reset_token(user.password_reset_token, token)


def reset_password(
    store: LedgerStore,
    email: str,
    token: str,
    password: str,
    mail_manager: Optional[MailManager] = None
) -> bool:
    """
    Set a new password with a reset token.

    The token is used up by this call. Returns whether the confirmation mail
    went out; a failed mail does not undo the reset.
    """
    if contains_empty_string(password):
        raise BadRequestError("Password is required")
    user = _user_by_email(store, email)

    with store.transaction():
        reset = None
        if user.password_reset_token is not None:
            reset = store.lock(PasswordResetToken, user.password_reset_token.id, InvalidResetTokenError)
        _check_reset_token(reset, token)
        reset.used_at = utcnow()
        user.hashed_password = get_password_hash(password)
        email, username = user.email, user.username
        logger.info("Password reset for user %s", user.id)

    if mail_manager is None:
        return False
    return _deliver(mail_manager.send_password_reset_confirmation_mail, email, username)


def login(store: LedgerStore, email: str, password: str) -> Token:
    with store.reading():
        user = store.session.query(User).filter(User.email == str(email).lower()).first()
    if not user or not verify_password(password, user.hashed_password):
        raise CredentialsInvalidError()
    if not user.is_activated:
        raise UserNotActivatedError()
    return Token(**create_token_pair(user.id))


def refresh_tokens(store: LedgerStore, refresh_token: str) -> Token:
    user_id = decode_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
    if user_id is None:
        raise UnauthorizedError("Invalid refresh token")
    with store.reading():
        user = store.session.get(User, user_id)
    if user is None or not user.is_activated:
        raise UnauthorizedError("Invalid refresh token")
    return Token(**create_token_pair(user.id))


def get_user_details(store: LedgerStore, user_id: int) -> UserDetails:
    """Own profile plus open debts and joined trips."""
    with store.reading():
        user = store.get(User, user_id, UserNotFoundError)
        trips_joined = sum(1 for participant in user.trips if participant.is_accepted)
        return UserDetails(
            **UserResponse.model_validate(user).model_dump(),
            open_debts=debt_service.count_open_debts(store, user_id),
            trips_joined=trips_joined,
        )


def get_user(store: LedgerStore, user_id: int) -> UserSummary:
    with store.reading():
        return UserSummary.model_validate(store.get(User, user_id, UserNotFoundError))


def update_user(store: LedgerStore, actor_id: int, user_data: UserUpdate) -> UserResponse:
    """Patch the actor's profile; only non-empty fields overwrite."""
    with store.reading():
        user = store.get(User, actor_id, UserNotFoundError)

    username = first_non_empty(user_data.username, user.username).strip()
    email = str(first_non_empty(user_data.email, user.email)).lower()
    if username != user.username and _username_taken(store, username):
        raise UsernameExistsError()
    if email != user.email and _email_taken(store, email):
        raise EmailExistsError()

    with store.transaction():
        user.username = username
        user.email = email
        user.first_name = first_non_empty(user_data.first_name, user.first_name)
        user.last_name = first_non_empty(user_data.last_name, user.last_name)
        user.location = first_non_empty(user_data.location, user.location)
        if not contains_empty_string(user_data.password):
            user.hashed_password = get_password_hash(user_data.password)

    with store.reading():
        return UserResponse.model_validate(user)


def _is_referenced(store: LedgerStore, user_id: int) -> bool:
    return (
        store.exists(store.session.query(Debt).filter(
            (Debt.creditor_id == user_id) | (Debt.debtor_id == user_id)
        ))
        or store.exists(store.session.query(Transaction).filter(
            (Transaction.creditor_id == user_id) | (Transaction.debtor_id == user_id)
        ))
        or store.exists(store.session.query(CostContribution).filter(CostContribution.user_id == user_id))
    )


def delete_user(store: LedgerStore, actor_id: int):
    """Delete the actor's account unless debts, transactions or costs still reference it."""
    with store.reading():
        user = store.get(User, actor_id, UserNotFoundError)
    if _is_referenced(store, actor_id):
        raise ConflictError("User is still referenced by debts, transactions or costs")

    try:
        with store.transaction() as db:
            db.delete(user)
    except ForeignKeyMissingError as e:
        raise ConflictError("User is still referenced by debts, transactions or costs") from e

    logger.info("Deleted user %s", actor_id)


def suggest_users(store: LedgerStore, actor_id: int, query: str) -> List[UserSuggestion]:
    """Activated users whose username starts with `query`."""
    if contains_empty_string(query):
        return []
    prefix = query.strip().replace("%", r"\%").replace("_", r"\_")
    with store.reading():
        users = store.session.query(User).filter(
            User.username.ilike(f"{prefix}%", escape="\\"),
            User.is_activated.is_(True),
            User.id != actor_id,
        ).order_by(User.username).limit(SUGGESTION_LIMIT).all()
        return [UserSuggestion.model_validate(user) for user in users]


def check_email(store: LedgerStore, email: str):
    if _email_taken(store, str(email).lower()):
        raise EmailExistsError()


def check_username(store: LedgerStore, username: str):
    if contains_empty_string(username):
        raise BadRequestError("Username is required")
    if _username_taken(store, username.strip()):
        raise UsernameExistsError()
