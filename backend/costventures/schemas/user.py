"""
Pydantic schemas for User entity.
"""
from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime


class UserBase(BaseModel):
    """Base user schema."""
    username: str
    email: EmailStr


class UserRegister(UserBase):
    """Schema for user registration."""
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    location: Optional[str] = None


class RegisterResponse(UserBase):
    """Registered user; `mail_delivered` is false when the activation mail could not be sent."""
    id: int
    mail_delivered: bool = True


class UserUpdate(BaseModel):
    """Schema for user update (patch semantics)."""
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    location: Optional[str] = None


class UserSummary(BaseModel):
    """Lightweight user projection embedded in other views."""
    id: int
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    class Config:
        from_attributes = True


class UserSuggestion(BaseModel):
    id: int
    username: str

    class Config:
        from_attributes = True


class UserResponse(UserBase):
    """Schema for user response."""
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    location: Optional[str] = None
    is_activated: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserDetails(UserResponse):
    """Own profile with ledger information."""
    open_debts: int = 0
    trips_joined: int = 0


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class Token(BaseModel):
    """Schema for JWT token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class ActivationRequest(BaseModel):
    token: str


class ResendTokenRequest(BaseModel):
    email: EmailStr


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class VerifyResetTokenRequest(BaseModel):
    email: EmailStr
    token: str


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    token: str
    password: str


class MailDeliveryResponse(BaseModel):
    mail_delivered: bool


class AvailabilityResponse(BaseModel):
    available: bool = True
