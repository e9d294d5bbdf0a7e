"""
Trip model for group travel management.
"""
from sqlalchemy import Column, String, Date, Boolean, ForeignKey, Integer, Text, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from costventures.db.base import BaseModel


class Trip(BaseModel):
    """Trip model representing a group travel event."""
    __tablename__ = "trips"

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(200), nullable=False)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False, index=True)
    currency_code = Column(String(3), nullable=False, default="EUR")  # Single currency for all amounts in this trip

    # Relationships
    participants = relationship("TripParticipant", back_populates="trip", cascade="all, delete-orphan")
    cost_categories = relationship("CostCategory", back_populates="trip", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="trip", cascade="all, delete-orphan")
    debts = relationship("Debt", back_populates="trip", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_trip_date_range"),
    )


class TripParticipant(BaseModel):
    """Association between a user and a trip: invited, then accepted."""
    __tablename__ = "trip_participants"

    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_accepted = Column(Boolean, default=False, nullable=False)
    presence_start_date = Column(Date, nullable=True)
    presence_end_date = Column(Date, nullable=True)

    # Relationships
    trip = relationship("Trip", back_populates="participants")
    user = relationship("User", back_populates="trips")

    __table_args__ = (
        UniqueConstraint('trip_id', 'user_id', name='uq_trip_participant'),
    )
