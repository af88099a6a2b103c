"""
Demo data for local development: one chain, two branches, a manager and
cashiers per branch, this month's targets and a few closed shifts.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from bakeryops.core.security import hash_password
from bakeryops.models.branch import Branch
from bakeryops.models.monthly_target import MonthlyTarget
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User
from bakeryops.services.daily_sales_service import business_today, submit_daily_sales


logger = logging.getLogger(__name__)

DEMO_SLUG = "demo"
DEMO_PASSWORD = "secret123"

DEMO_BRANCHES = [
    ("Olaya", "OLY", "Olaya St, Riyadh"),
    ("Malqa", "MLQ", "Anas Ibn Malik Rd, Riyadh"),
]

# starting cash, cash sales, network sales, counted cash, transactions
DEMO_SHIFTS = [
    ("100", "500", "300", "590", 40),
    ("150", "820.50", "610", "970.50", 57),
    ("100", "430", "515.25", "545", 36),
]


def seed_demo(db: Session) -> Tenant:
    tenant = db.query(Tenant).filter(Tenant.slug == DEMO_SLUG).first()
    if tenant:
        return tenant

    tenant = Tenant(name="Demo Bakery", slug=DEMO_SLUG)
    db.add(tenant)
    db.flush()

    admin = User(
        email="admin@demo.com",
        name="Demo Admin",
        hashed_password=hash_password(DEMO_PASSWORD),
        role="admin",
        tenant_id=tenant.id,
    )
    db.add(admin)

    today = business_today()
    cashiers = []
    for index, (name, code, address) in enumerate(DEMO_BRANCHES, start=1):
        branch = Branch(tenant_id=tenant.id, name=name, code=code, address=address)
        db.add(branch)
        db.flush()
        db.add(User(
            email=f"manager{index}@demo.com",
            name=f"{name} Manager",
            hashed_password=hash_password(DEMO_PASSWORD),
            role="branch_manager",
            tenant_id=tenant.id,
            branch_id=branch.id,
        ))
        cashier = User(
            email=f"cashier{index}@demo.com",
            name=f"{name} Cashier",
            hashed_password=hash_password(DEMO_PASSWORD),
            role="cashier",
            tenant_id=tenant.id,
            branch_id=branch.id,
        )
        db.add(cashier)
        db.add(MonthlyTarget(
            tenant_id=tenant.id,
            branch_id=branch.id,
            year=today.year,
            month=today.month,
            target_amount=Decimal("60000"),
        ))
        cashiers.append((branch, cashier))
    db.commit()

    now = datetime.utcnow().replace(second=0, microsecond=0)
    for index, shift in enumerate(DEMO_SHIFTS):
        branch, cashier = cashiers[index % len(cashiers)]
        starting, cash, network, counted, transactions = shift
        submit_daily_sales(
            db,
            tenant,
            cashier,
            branch_id=branch.id,
            shift_type="morning" if index % 2 == 0 else "evening",
            shift_start=now - timedelta(hours=8),
            shift_end=now,
            starting_cash=starting,
            total_cash_sales=cash,
            total_network_sales=network,
            actual_cash_in_register=counted,
            total_transactions=transactions,
            signature="data:image/png;base64,ZGVtbw==",
            business_date=today,
        )

    logger.info("Seeded demo tenant id=%s", tenant.id)
    return tenant
