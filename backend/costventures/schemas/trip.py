"""
Pydantic schemas for Trip entity.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import date, datetime
from costventures.schemas.user import UserSummary


class TripBase(BaseModel):
    """Base trip schema."""
    name: str
    description: Optional[str] = None
    location: str
    start_date: date
    end_date: date


class TripCreate(TripBase):
    """Schema for trip creation."""
    currency_code: Optional[str] = None  # Defaults to DEFAULT_CURRENCY


class TripUpdate(BaseModel):
    """Schema for trip update."""
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class TripResponse(TripBase):
    """Schema for trip response."""
    id: int
    currency_code: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TripSummary(BaseModel):
    """Trip projection embedded in transaction views."""
    id: int
    name: str
    location: str
    start_date: date
    end_date: date
    currency_code: str

    class Config:
        from_attributes = True


class ParticipantResponse(BaseModel):
    """Schema for trip participant response."""
    user: UserSummary
    is_accepted: bool
    presence_start_date: Optional[date] = None
    presence_end_date: Optional[date] = None

    class Config:
        from_attributes = True


class CategoryCost(BaseModel):
    cost_category_id: int
    name: str
    total_cost: str


class TripDetailResponse(TripResponse):
    """Schema for detailed trip response with participants and the caller's balances."""
    participants: List[ParticipantResponse] = []
    total_cost: str
    category_costs: List[CategoryCost] = []
    user_debt: str
    user_credit: str


class ParticipantInvite(BaseModel):
    """Schema for participant invitation."""
    user_id: int


class PresenceUpdate(BaseModel):
    presence_start_date: date
    presence_end_date: date
