from datetime import datetime

from sqlalchemy import Column, Integer, String, Date, DateTime, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from bakeryops.models.tenant import Base


class ConsolidatedSales(Base):
    """
    A branch's approved shift closings for one business day, rolled into a
    single journal. It is opened, then closed, then transferred to accounts.
    """

    __tablename__ = "consolidated_sales"
    __table_args__ = (
        UniqueConstraint("branch_id", "date", name="uq_consolidated_sales_branch_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)

    total_cash_sales = Column(Numeric(14, 2), nullable=False, default=0)
    total_network_sales = Column(Numeric(14, 2), nullable=False, default=0)
    total_sales = Column(Numeric(14, 2), nullable=False, default=0)
    total_transactions = Column(Integer, nullable=False, default=0)
    average_ticket = Column(Numeric(12, 2), nullable=False, default=0)
    total_discrepancy = Column(Numeric(14, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, default="open")  # open / closed / transferred
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    closed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    closed_at = Column(DateTime, nullable=True)
    transferred_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    transferred_at = Column(DateTime, nullable=True)

    branch = relationship("Branch")
    created_by = relationship("User", foreign_keys=[created_by_id])
    closed_by = relationship("User", foreign_keys=[closed_by_id])
    transferred_by = relationship("User", foreign_keys=[transferred_by_id])
    entries = relationship("DailySales", back_populates="consolidated", order_by="DailySales.shift_start")
