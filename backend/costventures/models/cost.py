"""
Cost category, cost and cost contribution models.
"""
from sqlalchemy import Column, String, Numeric, Date, DateTime, ForeignKey, Integer, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from costventures.db.base import BaseModel


class CostCategory(BaseModel):
    """Named grouping of costs within one trip."""
    __tablename__ = "cost_categories"

    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(100), nullable=True)
    color = Column(String(20), nullable=True)

    # Relationships
    trip = relationship("Trip", back_populates="cost_categories")
    costs = relationship("Cost", back_populates="cost_category", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('trip_id', 'name', name='uq_cost_category_trip_name'),
    )


class Cost(BaseModel):
    """A single expense paid by one creditor and split across contributors."""
    __tablename__ = "costs"

    cost_category_id = Column(Integer, ForeignKey("cost_categories.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    currency_code = Column(String(3), nullable=False)
    description = Column(Text, nullable=True)
    deducted_at = Column(DateTime, nullable=False)
    end_date = Column(Date, nullable=True)

    # Relationships
    cost_category = relationship("CostCategory", back_populates="costs")
    contributions = relationship(
        "CostContribution", back_populates="cost", cascade="all, delete-orphan",
        order_by="CostContribution.id"
    )


class CostContribution(BaseModel):
    """One user's share of a cost. Exactly one contribution per cost is the creditor's."""
    __tablename__ = "cost_contributions"

    cost_id = Column(Integer, ForeignKey("costs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    is_creditor = Column(Boolean, default=False, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)

    # Relationships
    cost = relationship("Cost", back_populates="contributions")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint('cost_id', 'user_id', name='uq_cost_contribution'),
    )
