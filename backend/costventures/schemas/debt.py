"""
Pydantic schemas for Debt views.
"""
from pydantic import BaseModel
from datetime import datetime
from costventures.schemas.user import UserSummary


class DebtResponse(BaseModel):
    """
    A debt seen from the requesting user, who is always `creditor`.

    A positive amount means `debtor` owes the requesting user; a negative
    amount means the requesting user owes `debtor`.
    """
    id: int
    trip_id: int
    creditor: UserSummary
    debtor: UserSummary
    amount: str
    currency_code: str
    updated_at: datetime
