"""
Transaction model: one participant paying on behalf of another.
"""
from sqlalchemy import Column, String, Numeric, Boolean, ForeignKey, Integer, CheckConstraint
from sqlalchemy.orm import relationship
from costventures.db.base import BaseModel


class Transaction(BaseModel):
    """The creditor paid `amount` for the debtor within a trip."""
    __tablename__ = "transactions"

    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    creditor_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    debtor_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    currency_code = Column(String(3), nullable=False)
    is_confirmed = Column(Boolean, default=False, nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="transactions")
    creditor = relationship("User", foreign_keys=[creditor_id])
    debtor = relationship("User", foreign_keys=[debtor_id])

    __table_args__ = (
        CheckConstraint("creditor_id <> debtor_id", name="ck_transaction_distinct_parties"),
    )
