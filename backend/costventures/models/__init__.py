"""Models package - Import all models for SQLAlchemy registration."""
from costventures.models.user import User, ActivationToken, PasswordResetToken
from costventures.models.trip import Trip, TripParticipant
from costventures.models.cost import CostCategory, Cost, CostContribution
from costventures.models.transaction import Transaction
from costventures.models.debt import Debt

__all__ = [
    "User",
    "ActivationToken",
    "PasswordResetToken",
    "Trip",
    "TripParticipant",
    "CostCategory",
    "Cost",
    "CostContribution",
    "Transaction",
    "Debt",
]
