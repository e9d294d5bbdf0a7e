"""
Pydantic schemas for Cost entity.

Amounts are decimal strings ("12.50") on the way in and out.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import date, datetime
from costventures.schemas.user import UserSummary


class ContributorRequest(BaseModel):
    """A contributor; without an amount the user gets an even share of the remainder."""
    user_id: int
    amount: Optional[str] = None


class CostCreate(BaseModel):
    cost_category_id: int
    amount: str
    currency_code: Optional[str] = None  # Must match the trip currency when given
    description: Optional[str] = None
    deducted_at: datetime
    end_date: Optional[date] = None
    creditor: int
    contributors: List[ContributorRequest]


class CostUpdate(BaseModel):
    cost_category_id: Optional[int] = None
    amount: Optional[str] = None
    currency_code: Optional[str] = None
    description: Optional[str] = None
    deducted_at: Optional[datetime] = None
    end_date: Optional[date] = None
    creditor: Optional[int] = None
    contributors: Optional[List[ContributorRequest]] = None


class ContributionResponse(BaseModel):
    user: UserSummary
    amount: str
    is_creditor: bool


class CostResponse(BaseModel):
    id: int
    cost_category_id: int
    amount: str
    currency_code: str
    description: Optional[str] = None
    deducted_at: datetime
    end_date: Optional[date] = None
    creditor: UserSummary
    contributions: List[ContributionResponse] = []
    created_at: datetime
