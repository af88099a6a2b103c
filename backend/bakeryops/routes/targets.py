import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from bakeryops.core.database import get_db
from bakeryops.core.deps import get_current_user, get_tenant, require_manager
from bakeryops.core.reconciliation import as_float
from bakeryops.models.monthly_target import MonthlyTarget
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User
from bakeryops.routes.branches import get_branch_or_404
from bakeryops.services import activity_service


router = APIRouter()
logger = logging.getLogger(__name__)


class MonthlyTargetIn(BaseModel):
    branch_id: int
    year: int = Field(ge=2000, le=2100)
    month: int = Field(ge=1, le=12)
    target_amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)


class MonthlyTargetOut(BaseModel):
    id: int
    branch_id: int
    branch_name: Optional[str] = None
    year: int
    month: int
    target_amount: float


def _to_out(target: MonthlyTarget) -> MonthlyTargetOut:
    return MonthlyTargetOut(
        id=target.id,
        branch_id=target.branch_id,
        branch_name=target.branch.name if target.branch else None,
        year=target.year,
        month=target.month,
        target_amount=as_float(target.target_amount),
    )


@router.get("/", response_model=List[MonthlyTargetOut])
def list_targets(
    year: Optional[int] = None,
    month: Optional[int] = None,
    branch_id: Optional[int] = None,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    query = db.query(MonthlyTarget).filter(MonthlyTarget.tenant_id == tenant.id)
    if year:
        query = query.filter(MonthlyTarget.year == year)
    if month:
        query = query.filter(MonthlyTarget.month == month)
    if branch_id:
        query = query.filter(MonthlyTarget.branch_id == branch_id)
    targets = query.order_by(MonthlyTarget.year.desc(), MonthlyTarget.month.desc(), MonthlyTarget.branch_id.asc()).all()
    return [_to_out(t) for t in targets]


@router.post("/", response_model=MonthlyTargetOut)
def upsert_target(
    data: MonthlyTargetIn,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_manager),
):
    """Create the branch target for a month, or replace the amount if one exists."""
    get_branch_or_404(db, tenant, data.branch_id)

    target = (
        db.query(MonthlyTarget)
        .filter(
            MonthlyTarget.tenant_id == tenant.id,
            MonthlyTarget.branch_id == data.branch_id,
            MonthlyTarget.year == data.year,
            MonthlyTarget.month == data.month,
        )
        .first()
    )
    if target:
        target.target_amount = data.target_amount
    else:
        target = MonthlyTarget(
            tenant_id=tenant.id,
            branch_id=data.branch_id,
            year=data.year,
            month=data.month,
            target_amount=data.target_amount,
            created_by_id=user.id,
        )
        db.add(target)
    activity_service.record(
        db,
        tenant.id,
        activity_service.SET_MONTHLY_TARGET,
        user_id=user.id,
        branch_id=data.branch_id,
        details={"year": data.year, "month": data.month, "target_amount": float(data.target_amount)},
    )
    db.commit()
    db.refresh(target)
    logger.info("Monthly target branch=%s %s-%02d set to %s", data.branch_id, data.year, data.month, data.target_amount)
    return _to_out(target)
