from datetime import date
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

Metric = Literal["total_sales", "average_ticket", "performance"]


class LeaderboardRowOut(BaseModel):
    rank: int
    cashier_id: int
    name: str
    branch_id: Optional[int] = None
    value: float
    shifts: int
    total_sales: float
    average_ticket: float
    performance: float


def _ranking(db, tenant, metric, branch_id, start_date, end_date):
    try:
        return performance_service.cashier_leaderboard(
            db, tenant, metric=metric, branch_id=branch_id, start_date=start_date, end_date=end_date
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/cashiers", response_model=List[LeaderboardRowOut])
def cashier_leaderboard(
    metric: Metric = "total_sales",
    branch_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    return _ranking(db, tenant, metric, branch_id, start_date, end_date)[:limit]


@router.get("/cashiers/my-rank", response_model=LeaderboardRowOut)
def my_rank(
    metric: Metric = "total_sales",
    branch_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    for row in _ranking(db, tenant, metric, branch_id, start_date, end_date):
        if row["cashier_id"] == user.id:
            return row
    raise HTTPException(status_code=404, detail="No ranked shifts for this user in the period")
