from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship

from bakeryops.models.tenant import Base


class DailySales(Base):
    """
    One cashier shift closing: the four counted/recorded amounts, the
    transaction count, and the figures derived from them at submission.
    Rows are never edited after submission, only reviewed.
    """

    __tablename__ = "daily_sales"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True)
    cashier_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    date = Column(Date, nullable=False, index=True)
    shift_type = Column(String(20), nullable=False, default="morning")  # "morning" or "evening"
    shift_start = Column(DateTime, nullable=False)
    shift_end = Column(DateTime, nullable=False)

    # Entered by the cashier
    starting_cash = Column(Numeric(12, 2), nullable=False, default=0)
    total_cash_sales = Column(Numeric(12, 2), nullable=False, default=0)
    total_network_sales = Column(Numeric(12, 2), nullable=False, default=0)
    actual_cash_in_register = Column(Numeric(12, 2), nullable=False, default=0)
    total_transactions = Column(Integer, nullable=False, default=0)

    # Derived at submission
    total_sales = Column(Numeric(12, 2), nullable=False, default=0)
    discrepancy = Column(Numeric(12, 2), nullable=False, default=0)
    average_ticket = Column(Numeric(12, 2), nullable=False, default=0)

    signature = Column(Text, nullable=False)
    notes = Column(String(1000), nullable=True)

    status = Column(String(20), nullable=False, default="pending", index=True)  # pending / approved / rejected
    reviewed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    review_notes = Column(String(1000), nullable=True)
    # Set once the closing is rolled into a branch day journal
    consolidated_id = Column(Integer, ForeignKey("consolidated_sales.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    branch = relationship("Branch")
    cashier = relationship("User", foreign_keys=[cashier_id])
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_id])
    consolidated = relationship("ConsolidatedSales", back_populates="entries")
