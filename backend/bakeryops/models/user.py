from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from bakeryops.models.tenant import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=False)
    name = Column(String(255), nullable=False, default="")
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="cashier")
    is_active = Column(Boolean, nullable=False, default=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    # Home branch for cashiers and branch managers; admins usually have none
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)

    tenant = relationship("Tenant")
    branch = relationship("Branch")

    @property
    def display_name(self) -> str:
        return self.name or self.email
