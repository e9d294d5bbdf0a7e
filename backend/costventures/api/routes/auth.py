"""
Authentication routes for registration, activation, login, password reset and token refresh.
"""
from fastapi import APIRouter, Depends, Response, status
from pydantic import EmailStr
from costventures.db.session import get_store
from costventures.db.store import LedgerStore
from costventures.schemas.user import (
    ActivationRequest, AvailabilityResponse, ForgotPasswordRequest, MailDeliveryResponse, RefreshRequest,
    RegisterResponse, ResendTokenRequest, ResetPasswordRequest, Token, UserLogin, UserRegister, UserResponse,
    VerifyResetTokenRequest
)
from costventures.services import user_service
from costventures.services.mail_service import MailManager
from costventures.api.dependencies import get_mail_manager

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    response: Response,
    store: LedgerStore = Depends(get_store),
    mail_manager: MailManager = Depends(get_mail_manager)
):
    """Register a new user; 206 when the activation mail could not be sent."""
    result = user_service.register_user(store, user_data, mail_manager)
    if not result.mail_delivered:
        response.status_code = status.HTTP_206_PARTIAL_CONTENT
    return result


@router.post("/activate", response_model=UserResponse)
def activate(
    activation: ActivationRequest,
    store: LedgerStore = Depends(get_store),
    mail_manager: MailManager = Depends(get_mail_manager)
):
    """Activate an account with the mailed token."""
    return user_service.activate_user(store, activation.token, mail_manager)


@router.post("/resend-token", response_model=MailDeliveryResponse)
def resend_token(
    request: ResendTokenRequest,
    response: Response,
    store: LedgerStore = Depends(get_store),
    mail_manager: MailManager = Depends(get_mail_manager)
):
    delivered = user_service.resend_token(store, request.email, mail_manager)
    if not delivered:
        response.status_code = status.HTTP_206_PARTIAL_CONTENT
    return MailDeliveryResponse(mail_delivered=delivered)


@router.post("/forgot-password", response_model=MailDeliveryResponse)
def forgot_password(
    request: ForgotPasswordRequest,
    response: Response,
    store: LedgerStore = Depends(get_store),
    mail_manager: MailManager = Depends(get_mail_manager)
):
    """Mail a password reset token; 206 when the mail could not be sent."""
    delivered = user_service.forgot_password(store, request.email, mail_manager)
    if not delivered:
        response.status_code = status.HTTP_206_PARTIAL_CONTENT
    return MailDeliveryResponse(mail_delivered=delivered)


@router.post("/verify-reset-token", status_code=status.HTTP_204_NO_CONTENT)
def verify_reset_token(request: VerifyResetTokenRequest, store: LedgerStore = Depends(get_store)):
    """400 when the reset token is unknown, used or expired."""
    user_service.verify_reset_token(store, request.email, request.token)


@router.post("/reset-password", response_model=MailDeliveryResponse)
def reset_password(
    request: ResetPasswordRequest,
    store: LedgerStore = Depends(get_store),
    mail_manager: MailManager = Depends(get_mail_manager)
):
    delivered = user_service.reset_password(store, request.email, request.token, request.password, mail_manager)
    return MailDeliveryResponse(mail_delivered=delivered)


@router.post("/login", response_model=Token)
def login(credentials: UserLogin, store: LedgerStore = Depends(get_store)):
    """Login and get access and refresh tokens."""
    return user_service.login(store, credentials.email, credentials.password)


@router.post("/refresh", response_model=Token)
def refresh(request: RefreshRequest, store: LedgerStore = Depends(get_store)):
    return user_service.refresh_tokens(store, request.refresh_token)


@router.get("/check-email", response_model=AvailabilityResponse)
def check_email(email: EmailStr, store: LedgerStore = Depends(get_store)):
    """409 when the email is already registered."""
    user_service.check_email(store, email)
    return AvailabilityResponse()


@router.get("/check-username", response_model=AvailabilityResponse)
def check_username(username: str, store: LedgerStore = Depends(get_store)):
    """409 when the username is already taken."""
    user_service.check_username(store, username)
    return AvailabilityResponse()
