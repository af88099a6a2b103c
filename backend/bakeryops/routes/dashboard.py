from datetime import date, datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from bakeryops.core.database import get_db
from bakeryops.core.deps import get_current_user, get_tenant
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User
from bakeryops.services import performance_service

router = APIRouter()


class DashboardStatsOut(BaseModel):
    date: str
    daily_sales: float
    daily_target: float
    daily_target_percentage: float
    monthly_sales_amount: float
    monthly_target: float
    monthly_target_percentage: float
    entries: int
    total_transactions: int
    average_ticket: float
    net_discrepancy: float
    pending_reviews: int


class CashierPerformanceOut(BaseModel):
    cashier_id: int
    name: str
    branch_id: Optional[int] = None
    shifts: int
    shift_start: Optional[datetime] = None
    shift_end: Optional[datetime] = None
    total_sales: float
    discrepancy: float
    discrepancy_status: str
    total_transactions: int
    average_ticket: float
    performance: float


class TargetAchievementOut(BaseModel):
    branch_id: int
    branch_name: str
    month: int
    year: int
    target: float
    achieved: float
    percentage: float
    status: str


class SalesPointOut(BaseModel):
    date: str
    cash_sales: float
    network_sales: float
    total_sales: float
    transactions: int
    average_ticket: float


@router.get("/stats", response_model=DashboardStatsOut)
def get_stats(
    branch_id: Optional[int] = None,
    on_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    return performance_service.dashboard_stats(db, tenant, branch_id, on_date)


@router.get("/cashier-performance", response_model=List[CashierPerformanceOut])
def get_cashier_performance(
    branch_id: Optional[int] = None,
    cashier_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    discrepancy_filter: Literal["all", "shortage", "surplus", "balanced"] = "all",
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    try:
        return performance_service.cashier_performance(
            db, tenant,
            branch_id=branch_id,
            cashier_id=cashier_id,
            start_date=start_date,
            end_date=end_date,
            discrepancy_filter=discrepancy_filter,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/target-achievement", response_model=List[TargetAchievementOut])
def get_target_achievement(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    try:
        return performance_service.target_achievement(db, tenant, month, year)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/sales-analytics", response_model=List[SalesPointOut])
def get_sales_analytics(
    branch_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    try:
        return performance_service.sales_analytics(
            db, tenant, branch_id=branch_id, start_date=start_date, end_date=end_date
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
