"""
Pydantic schemas for Transaction entity.
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from costventures.schemas.user import UserSummary
from costventures.schemas.trip import TripSummary


class TransactionCreate(BaseModel):
    """The authenticated user is the creditor."""
    debtor_id: int
    amount: str
    currency_code: Optional[str] = None


class TransactionResponse(BaseModel):
    id: int
    trip: TripSummary
    creditor: UserSummary
    debtor: UserSummary
    amount: str
    currency_code: str
    is_confirmed: bool
    created_at: datetime
