"""
User, activation token and password reset token models.
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship
from costventures.db.base import BaseModel


class User(BaseModel):
    """Registered user; inactive until the activation token is confirmed."""
    __tablename__ = "users"

    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    is_activated = Column(Boolean, default=False, nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    location = Column(String(200), nullable=True)

    # Relationships
    # Debts, transactions and cost contributions point here with RESTRICT, so
    # deleting a referenced user fails at the database.
    trips = relationship("TripParticipant", back_populates="user", cascade="all, delete-orphan")
    activation_token = relationship(
        "ActivationToken", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    password_reset_token = relationship(
        "PasswordResetToken", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )


class ActivationToken(BaseModel):
    """Single-use, expiring token mailed at registration."""
    __tablename__ = "activation_tokens"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    token = Column(String(32), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    confirmed_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="activation_token")


class PasswordResetToken(BaseModel):
    """Single-use, short-lived token mailed when a user forgot the password."""
    __tablename__ = "password_reset_tokens"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    token = Column(String(32), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="password_reset_token")
