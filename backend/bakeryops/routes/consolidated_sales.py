from datetime import date, datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from bakeryops.core.database import get_db
from bakeryops.core.deps import get_tenant, require_reviewer
from bakeryops.core.reconciliation import as_float, discrepancy_status
from bakeryops.models.consolidated_sales import ConsolidatedSales
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User
from bakeryops.routes.branches import get_branch_or_404
from bakeryops.routes.daily_sales import DailySalesOut, serialize_daily_sales
from bakeryops.services import consolidation_service

router = APIRouter()


class ConsolidateRequest(BaseModel):
    branch_id: int
    business_date: date = Field(alias="date")

    class Config:
        populate_by_name = True


class ConsolidatedSalesOut(BaseModel):
    id: int
    branch_id: int
    branch_name: Optional[str] = None
    date: date
    total_cash_sales: float
    total_network_sales: float
    total_sales: float
    total_transactions: int
    average_ticket: float
    total_discrepancy: float
    discrepancy_status: str
    status: str
    created_by_id: Optional[int] = None
    created_at: datetime
    closed_by_id: Optional[int] = None
    closed_at: Optional[datetime] = None
    transferred_by_id: Optional[int] = None
    transferred_at: Optional[datetime] = None
    entry_count: int


class ConsolidatedSalesDetailOut(ConsolidatedSalesOut):
    entries: List[DailySalesOut] = []


def _fields(journal: ConsolidatedSales) -> dict:
    return dict(
        id=journal.id,
        branch_id=journal.branch_id,
        branch_name=journal.branch.name if journal.branch else None,
        date=journal.date,
        total_cash_sales=as_float(journal.total_cash_sales),
        total_network_sales=as_float(journal.total_network_sales),
        total_sales=as_float(journal.total_sales),
        total_transactions=journal.total_transactions,
        average_ticket=as_float(journal.average_ticket),
        total_discrepancy=as_float(journal.total_discrepancy),
        discrepancy_status=discrepancy_status(journal.total_discrepancy),
        status=journal.status,
        created_by_id=journal.created_by_id,
        created_at=journal.created_at,
        closed_by_id=journal.closed_by_id,
        closed_at=journal.closed_at,
        transferred_by_id=journal.transferred_by_id,
        transferred_at=journal.transferred_at,
        entry_count=len(journal.entries),
    )


def _detail(journal: ConsolidatedSales) -> ConsolidatedSalesDetailOut:
    return ConsolidatedSalesDetailOut(**_fields(journal), entries=[serialize_daily_sales(e) for e in journal.entries])


def _get_or_404(db: Session, tenant: Tenant, journal_id: int) -> ConsolidatedSales:
    journal = consolidation_service.query_consolidated(db, tenant).filter(ConsolidatedSales.id == journal_id).first()
    if not journal:
        raise HTTPException(status_code=404, detail="Consolidated sales not found")
    return journal


@router.get("/", response_model=List[ConsolidatedSalesOut])
def list_consolidated_sales(
    branch_id: Optional[int] = None,
    date: Optional[date] = None,
    status: Optional[Literal["open", "closed", "transferred"]] = None,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_reviewer),
):
    journals = (
        consolidation_service.query_consolidated(db, tenant, branch_id=branch_id, on_date=date, status=status)
        .order_by(ConsolidatedSales.date.desc(), ConsolidatedSales.id.desc())
        .all()
    )
    return [ConsolidatedSalesOut(**_fields(j)) for j in journals]


@router.post("/", response_model=ConsolidatedSalesDetailOut)
def consolidate(
    data: ConsolidateRequest,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_reviewer),
):
    """Roll a branch's approved closings for one day into a journal"""
    branch = get_branch_or_404(db, tenant, data.branch_id)
    try:
        journal = consolidation_service.consolidate_day(db, tenant, user, branch.id, data.business_date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _detail(journal)


@router.get("/{journal_id}", response_model=ConsolidatedSalesDetailOut)
def get_consolidated_sales(
    journal_id: int,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_reviewer),
):
    return _detail(_get_or_404(db, tenant, journal_id))


def _advance(db, tenant, user, journal_id, target_status):
    journal = _get_or_404(db, tenant, journal_id)
    try:
        journal = consolidation_service.advance(db, journal, user, target_status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _detail(journal)


@router.post("/{journal_id}/close", response_model=ConsolidatedSalesDetailOut)
def close_consolidated_sales(
    journal_id: int,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_reviewer),
):
    return _advance(db, tenant, user, journal_id, consolidation_service.CLOSED)


@router.post("/{journal_id}/transfer", response_model=ConsolidatedSalesDetailOut)
def transfer_consolidated_sales(
    journal_id: int,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_reviewer),
):
    return _advance(db, tenant, user, journal_id, consolidation_service.TRANSFERRED)
