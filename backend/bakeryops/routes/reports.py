from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from bakeryops.core.database import get_db
from bakeryops.core.deps import get_tenant, require_reviewer
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User
from bakeryops.services import performance_service

router = APIRouter()


class BranchComparisonOut(BaseModel):
    branch_id: int
    branch_name: str
    total_sales: float
    previous_sales: float
    growth: Optional[float] = None
    transactions: int
    previous_transactions: int
    transaction_growth: Optional[float] = None
    average_ticket: float
    previous_average_ticket: float
    ticket_growth: Optional[float] = None
    discrepancy: float
    target: float
    target_achievement: float


class CashierComparisonOut(BaseModel):
    cashier_id: int
    name: str
    branch_id: Optional[int] = None
    shifts: int
    total_sales: float
    previous_sales: float
    growth: Optional[float] = None
    transactions: int
    previous_transactions: int
    average_ticket: float
    previous_average_ticket: float
    discrepancy: float
    performance: float
    previous_performance: float


class SalesPointOut(BaseModel):
    day: int
    date: str
    previous_date: str
    current_sales: float
    previous_sales: float
    target: float


def _report(fn, db, tenant, branch_id, start_date, end_date):
    try:
        return fn(db, tenant, branch_id=branch_id, start_date=start_date, end_date=end_date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/branch-comparison", response_model=List[BranchComparisonOut])
def branch_comparison(
    branch_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_reviewer),
):
    """Branches in the window against the previous window of the same length"""
    return _report(performance_service.branch_comparison, db, tenant, branch_id, start_date, end_date)


@router.get("/cashier-comparison", response_model=List[CashierComparisonOut])
def cashier_comparison(
    branch_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_reviewer),
):
    return _report(performance_service.cashier_comparison, db, tenant, branch_id, start_date, end_date)


@router.get("/sales-over-time", response_model=List[SalesPointOut])
def sales_over_time(
    branch_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_reviewer),
):
    return _report(performance_service.sales_over_time, db, tenant, branch_id, start_date, end_date)
