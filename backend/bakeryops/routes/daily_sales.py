import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from bakeryops.core.database import get_db
from bakeryops.core.deps import get_current_user, get_tenant, require_reviewer
from bakeryops.core.reconciliation import (
    MAX_AMOUNT_EXPONENT,
    MAX_STORED_AMOUNT,
    ZERO,
    as_float,
    coerce_count,
    discrepancy_status,
    parse_amount,
    reconcile,
)
from bakeryops.core.roles import REVIEWER_ROLES, Role
from bakeryops.models.daily_sales import DailySales
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User
from bakeryops.routes.branches import get_branch_or_404
from bakeryops.services import daily_sales_service, export_service


router = APIRouter()
logger = logging.getLogger(__name__)

AMOUNT_FIELDS = ("starting_cash", "total_cash_sales", "total_network_sales", "actual_cash_in_register")


class ReconciliationPreviewIn(BaseModel):
    """Raw form values; anything unusable counts as 0."""

    starting_cash: Any = None
    total_cash_sales: Any = None
    total_network_sales: Any = None
    actual_cash_in_register: Any = None
    total_transactions: Any = None


class ReconciliationOut(BaseModel):
    total_sales: float
    discrepancy: float
    average_ticket: float
    discrepancy_status: str


class DailySalesCreate(BaseModel):
    branch_id: int
    cashier_id: Optional[int] = None
    business_date: Optional[date] = Field(default=None, alias="date")
    shift_type: Literal["morning", "evening"] = "morning"
    shift_start: Optional[datetime] = None
    shift_end: Optional[datetime] = None
    starting_cash: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_STORED_AMOUNT)
    total_cash_sales: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_STORED_AMOUNT)
    total_network_sales: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_STORED_AMOUNT)
    actual_cash_in_register: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_STORED_AMOUNT)
    total_transactions: int = Field(ge=1)
    signature: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=1000)

    class Config:
        populate_by_name = True

    # Blank or non-numeric counts as 0; oversized amounts are rejected, not zeroed
    @field_validator(*AMOUNT_FIELDS, mode="before")
    @classmethod
    def _coerce_amount(cls, value):
        amount = parse_amount(value)
        if amount is None:
            return ZERO
        if amount and amount.adjusted() > MAX_AMOUNT_EXPONENT:
            raise ValueError("Amount is too large")
        return amount

    @field_validator("total_transactions", mode="before")
    @classmethod
    def _coerce_transactions(cls, value):
        return coerce_count(value)


class ReviewRequest(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=1000)


class DailySalesOut(BaseModel):
    id: int
    branch_id: int
    branch_name: Optional[str] = None
    cashier_id: Optional[int] = None
    cashier_name: Optional[str] = None
    date: date
    shift_type: str
    shift_start: datetime
    shift_end: datetime
    starting_cash: float
    total_cash_sales: float
    total_network_sales: float
    actual_cash_in_register: float
    total_transactions: int
    total_sales: float
    discrepancy: float
    discrepancy_status: str
    average_ticket: float
    signature: str
    notes: Optional[str] = None
    status: str
    reviewed_by_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    consolidated_id: Optional[int] = None
    created_at: datetime


def serialize_daily_sales(entry: DailySales) -> DailySalesOut:
    return DailySalesOut(
        id=entry.id,
        branch_id=entry.branch_id,
        branch_name=entry.branch.name if entry.branch else None,
        cashier_id=entry.cashier_id,
        cashier_name=entry.cashier.display_name if entry.cashier else None,
        date=entry.date,
        shift_type=entry.shift_type,
        shift_start=entry.shift_start,
        shift_end=entry.shift_end,
        starting_cash=as_float(entry.starting_cash),
        total_cash_sales=as_float(entry.total_cash_sales),
        total_network_sales=as_float(entry.total_network_sales),
        actual_cash_in_register=as_float(entry.actual_cash_in_register),
        total_transactions=entry.total_transactions,
        total_sales=as_float(entry.total_sales),
        discrepancy=as_float(entry.discrepancy),
        discrepancy_status=discrepancy_status(entry.discrepancy),
        average_ticket=as_float(entry.average_ticket),
        signature=entry.signature,
        notes=entry.notes,
        status=entry.status,
        reviewed_by_id=entry.reviewed_by_id,
        reviewed_at=entry.reviewed_at,
        review_notes=entry.review_notes,
        consolidated_id=entry.consolidated_id,
        created_at=entry.created_at,
    )


def _is_cashier(user: User) -> bool:
    return user.role == Role.cashier.value


def _filtered_entries(
    db: Session,
    tenant: Tenant,
    user: User,
    branch_id: Optional[int],
    cashier_id: Optional[int],
    on_date: Optional[date],
    start_date: Optional[date],
    end_date: Optional[date],
    status: Optional[str],
) -> List[DailySales]:
    # Cashiers only ever see their own closings
    if _is_cashier(user):
        cashier_id = user.id
    try:
        query = daily_sales_service.query_daily_sales(
            db, tenant,
            branch_id=branch_id,
            cashier_id=cashier_id,
            on_date=on_date,
            start_date=start_date,
            end_date=end_date,
            status=status,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return query.order_by(DailySales.date.desc(), DailySales.shift_start.desc(), DailySales.id.desc()).all()


def _get_entry_or_404(db: Session, tenant: Tenant, user: User, entry_id: int) -> DailySales:
    entry = db.query(DailySales).filter(DailySales.id == entry_id, DailySales.tenant_id == tenant.id).first()
    if not entry:
        raise HTTPException(status_code=404, detail="Daily sales entry not found")
    if _is_cashier(user) and entry.cashier_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed to view this entry")
    return entry


@router.post("/preview", response_model=ReconciliationOut)
def preview_reconciliation(data: ReconciliationPreviewIn, user: User = Depends(get_current_user)):
    """Recompute the derived shift figures without saving anything."""
    figures = reconcile(
        data.starting_cash,
        data.total_cash_sales,
        data.total_network_sales,
        data.actual_cash_in_register,
        data.total_transactions,
    ).rounded()
    return ReconciliationOut(
        total_sales=as_float(figures.total_sales),
        discrepancy=as_float(figures.discrepancy),
        average_ticket=as_float(figures.average_ticket),
        discrepancy_status=figures.discrepancy_status,
    )


@router.post("/", response_model=DailySalesOut)
def create_daily_sales(
    data: DailySalesCreate,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    branch = get_branch_or_404(db, tenant, data.branch_id)
    if not branch.is_active:
        raise HTTPException(status_code=400, detail="Branch is inactive")

    cashier = user
    if data.cashier_id and data.cashier_id != user.id:
        if user.role not in {r.value for r in REVIEWER_ROLES}:
            raise HTTPException(status_code=403, detail="Cashiers can only submit their own shift")
        cashier = db.query(User).filter(User.id == data.cashier_id, User.tenant_id == tenant.id).first()
        if not cashier:
            raise HTTPException(status_code=404, detail="Cashier not found")

    try:
        entry = daily_sales_service.submit_daily_sales(
            db,
            tenant,
            cashier,
            branch_id=branch.id,
            business_date=data.business_date,
            shift_type=data.shift_type,
            shift_start=data.shift_start or datetime.utcnow(),
            shift_end=data.shift_end,
            starting_cash=data.starting_cash,
            total_cash_sales=data.total_cash_sales,
            total_network_sales=data.total_network_sales,
            actual_cash_in_register=data.actual_cash_in_register,
            total_transactions=data.total_transactions,
            signature=data.signature,
            notes=data.notes,
        )
    except ValueError as e:
        logger.warning("Rejected daily sales submission user=%s: %s", user.id, e)
        raise HTTPException(status_code=400, detail=str(e))
    return serialize_daily_sales(entry)


@router.get("/", response_model=List[DailySalesOut])
def list_daily_sales(
    branch_id: Optional[int] = None,
    cashier_id: Optional[int] = None,
    date: Optional[date] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[Literal["pending", "approved", "rejected"]] = None,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    entries = _filtered_entries(db, tenant, user, branch_id, cashier_id, date, start_date, end_date, status)
    return [serialize_daily_sales(entry) for entry in entries]


@router.get("/export")
def export_daily_sales(
    branch_id: Optional[int] = None,
    cashier_id: Optional[int] = None,
    date: Optional[date] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[Literal["pending", "approved", "rejected"]] = None,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_reviewer),
):
    """Export the filtered journal to an Excel file"""
    entries = _filtered_entries(db, tenant, user, branch_id, cashier_id, date, start_date, end_date, status)
    if not entries:
        raise HTTPException(status_code=404, detail="No daily sales to export")

    output = export_service.export_journal_xlsx(entries)
    return StreamingResponse(
        output,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=daily_sales_journal.xlsx"},
    )


@router.get("/{entry_id}", response_model=DailySalesOut)
def get_daily_sales(
    entry_id: int,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    return serialize_daily_sales(_get_entry_or_404(db, tenant, user, entry_id))


def _review(db: Session, tenant: Tenant, reviewer: User, entry_id: int, approve: bool, data: Optional[ReviewRequest]) -> DailySalesOut:
    entry = _get_entry_or_404(db, tenant, reviewer, entry_id)
    try:
        entry = daily_sales_service.review_daily_sales(db, entry, reviewer, approve, data.notes if data else None)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return serialize_daily_sales(entry)


@router.post("/{entry_id}/approve", response_model=DailySalesOut)
def approve_daily_sales(
    entry_id: int,
    data: Optional[ReviewRequest] = None,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_reviewer),
):
    return _review(db, tenant, user, entry_id, True, data)


@router.post("/{entry_id}/reject", response_model=DailySalesOut)
def reject_daily_sales(
    entry_id: int,
    data: Optional[ReviewRequest] = None,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_reviewer),
):
    return _review(db, tenant, user, entry_id, False, data)
