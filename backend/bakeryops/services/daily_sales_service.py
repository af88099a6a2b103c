"""
Service for shift closings (daily sales entries).

Submission recomputes every derived figure through the reconciliation
calculator; whatever totals the client computed are never trusted.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Query, Session

from bakeryops.core.config import settings
from bakeryops.core.reconciliation import (
    MAX_STORED_AMOUNT,
    SHORTAGE,
    coerce_amount,
    coerce_count,
    discrepancy_status,
    reconcile,
    to_money,
)
from bakeryops.models.daily_sales import DailySales
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User
from bakeryops.services import activity_service, notification_service


logger = logging.getLogger(__name__)

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
STATUSES = (PENDING, APPROVED, REJECTED)

SHIFT_TYPES = ("morning", "evening")


def business_now() -> datetime:
    return datetime.now(timezone(timedelta(hours=settings.timezone_offset_hours)))


def business_today() -> date:
    return business_now().date()


def as_naive_utc(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def submit_daily_sales(
    db: Session,
    tenant: Tenant,
    cashier: User,
    *,
    branch_id: int,
    shift_start: datetime,
    shift_end: Optional[datetime],
    starting_cash: Any,
    total_cash_sales: Any,
    total_network_sales: Any,
    actual_cash_in_register: Any,
    total_transactions: Any,
    signature: Optional[str],
    shift_type: str = "morning",
    business_date: Optional[date] = None,
    notes: Optional[str] = None,
) -> DailySales:
    """
    Persist a finalized shift closing and raise discrepancy alerts.

    Raises:
        ValueError: missing signature or shift end, shift end before start,
            unknown shift type, or an amount too large to store.
    """
    if shift_type not in SHIFT_TYPES:
        raise ValueError(f"shift_type must be one of {', '.join(SHIFT_TYPES)}")
    if not signature or not signature.strip():
        raise ValueError("Signature is required")
    if shift_end is None:
        raise ValueError("Shift end is required; end the shift before submitting")

    start = as_naive_utc(shift_start)
    end = as_naive_utc(shift_end)
    if end < start:
        raise ValueError("Shift end cannot be before shift start")

    starting = to_money(coerce_amount(starting_cash))
    cash = to_money(coerce_amount(total_cash_sales))
    network = to_money(coerce_amount(total_network_sales))
    actual = to_money(coerce_amount(actual_cash_in_register))
    transactions = coerce_count(total_transactions)
    if max(starting, cash, network, actual) > MAX_STORED_AMOUNT:
        raise ValueError(f"Amounts cannot exceed {MAX_STORED_AMOUNT}")

    figures = reconcile(starting, cash, network, actual, transactions).rounded()

    entry = DailySales(
        tenant_id=tenant.id,
        branch_id=branch_id,
        cashier_id=cashier.id,
        date=business_date or business_today(),
        shift_type=shift_type,
        shift_start=start,
        shift_end=end,
        starting_cash=starting,
        total_cash_sales=cash,
        total_network_sales=network,
        actual_cash_in_register=actual,
        total_transactions=transactions,
        total_sales=figures.total_sales,
        discrepancy=figures.discrepancy,
        average_ticket=figures.average_ticket,
        signature=signature,
        notes=(notes or "").strip() or None,
        status=PENDING,
    )
    db.add(entry)
    try:
        db.flush()
        notification_service.alert_discrepancy(db, entry)
        _record_submission(db, entry)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(entry)

    logger.info(
        "Daily sales submitted id=%s branch=%s cashier=%s total=%s discrepancy=%s",
        entry.id, branch_id, cashier.id, entry.total_sales, entry.discrepancy,
    )
    return entry


def _record_submission(db: Session, entry: DailySales) -> None:
    details = {
        "daily_sales_id": entry.id,
        "cashier_id": entry.cashier_id,
        "shift_type": entry.shift_type,
        "date": entry.date.isoformat(),
        "total_sales": float(entry.total_sales),
        "discrepancy": float(entry.discrepancy),
    }
    activity_service.record(
        db, entry.tenant_id, activity_service.CREATE_DAILY_SALES,
        user_id=entry.cashier_id, branch_id=entry.branch_id, details=details,
    )
    if discrepancy_status(entry.discrepancy) == SHORTAGE:
        activity_service.record(
            db, entry.tenant_id, activity_service.REGISTER_SHORTAGE,
            user_id=entry.cashier_id, branch_id=entry.branch_id, details=details,
        )


def query_daily_sales(
    db: Session,
    tenant: Tenant,
    *,
    branch_id: Optional[int] = None,
    cashier_id: Optional[int] = None,
    on_date: Optional[date] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[str] = None,
    exclude_rejected: bool = False,
) -> Query:
    if start_date and end_date and start_date > end_date:
        raise ValueError("start_date must be <= end_date")

    query = db.query(DailySales).filter(DailySales.tenant_id == tenant.id)
    if branch_id:
        query = query.filter(DailySales.branch_id == branch_id)
    if cashier_id:
        query = query.filter(DailySales.cashier_id == cashier_id)
    if on_date:
        query = query.filter(DailySales.date == on_date)
    if start_date:
        query = query.filter(DailySales.date >= start_date)
    if end_date:
        query = query.filter(DailySales.date <= end_date)
    if status:
        query = query.filter(DailySales.status == status)
    if exclude_rejected:
        query = query.filter(DailySales.status != REJECTED)
    return query


def review_daily_sales(
    db: Session,
    entry: DailySales,
    reviewer: User,
    approve: bool,
    notes: Optional[str] = None,
) -> DailySales:
    """
    Move a pending entry to approved or rejected. Figures are never touched.

    Raises:
        ValueError: the entry was already reviewed.
    """
    if entry.status != PENDING:
        raise ValueError(f"Daily sales entry is already {entry.status}")

    entry.status = APPROVED if approve else REJECTED
    entry.reviewed_by_id = reviewer.id
    entry.reviewed_at = datetime.utcnow()
    entry.review_notes = (notes or "").strip() or None
    try:
        notification_service.notify_review(db, entry)
        activity_service.record(
            db,
            entry.tenant_id,
            activity_service.APPROVE_DAILY_SALES if approve else activity_service.REJECT_DAILY_SALES,
            user_id=reviewer.id,
            branch_id=entry.branch_id,
            details={"daily_sales_id": entry.id, "cashier_id": entry.cashier_id, "notes": entry.review_notes},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(entry)

    logger.info("Daily sales %s %s by user=%s", entry.id, entry.status, reviewer.id)
    return entry


def expected_cash(entry: DailySales) -> Decimal:
    return Decimal(entry.total_cash_sales) + Decimal(entry.starting_cash)
