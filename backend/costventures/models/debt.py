"""
Debt model: the persisted net balance between two participants of a trip.
"""
from sqlalchemy import Column, String, Numeric, ForeignKey, Integer, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from costventures.db.base import BaseModel


class Debt(BaseModel):
    """
    Net balance for one unordered user pair within a trip.

    Rows are stored canonically with the lower user id in `creditor_id`.
    A positive `amount` means the debtor owes the creditor; a negative one
    means the creditor owes the debtor. A zero row is a settled pair.
    """
    __tablename__ = "debts"

    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    creditor_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    debtor_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False, default=0)
    currency_code = Column(String(3), nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="debts")
    creditor = relationship("User", foreign_keys=[creditor_id])
    debtor = relationship("User", foreign_keys=[debtor_id])

    __table_args__ = (
        UniqueConstraint('trip_id', 'creditor_id', 'debtor_id', name='uq_debt_trip_pair'),
        CheckConstraint("creditor_id < debtor_id", name="ck_debt_canonical_pair"),
    )
