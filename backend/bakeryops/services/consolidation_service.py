"""
Daily consolidation of a branch's approved shift closings.

A consolidated journal is opened from the approved closings of one branch
and business day, then closed, then marked as transferred. Figures are
summed from the closings' stored inputs and run through the reconciliation
calculator like every other aggregate.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Query, Session

from bakeryops.core.reconciliation import to_money
from bakeryops.models.consolidated_sales import ConsolidatedSales
from bakeryops.models.daily_sales import DailySales
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User
from bakeryops.services import activity_service
from bakeryops.services.daily_sales_service import APPROVED, PENDING, query_daily_sales
from bakeryops.services.performance_service import summarize


logger = logging.getLogger(__name__)

OPEN = "open"
CLOSED = "closed"
TRANSFERRED = "transferred"
STATUSES = (OPEN, CLOSED, TRANSFERRED)

# Allowed moves: current status -> next status
_NEXT_STATUS = {OPEN: CLOSED, CLOSED: TRANSFERRED}


def query_consolidated(
    db: Session,
    tenant: Tenant,
    *,
    branch_id: Optional[int] = None,
    on_date: Optional[date] = None,
    status: Optional[str] = None,
) -> Query:
    query = db.query(ConsolidatedSales).filter(ConsolidatedSales.tenant_id == tenant.id)
    if branch_id:
        query = query.filter(ConsolidatedSales.branch_id == branch_id)
    if on_date:
        query = query.filter(ConsolidatedSales.date == on_date)
    if status:
        query = query.filter(ConsolidatedSales.status == status)
    return query


def consolidate_day(db: Session, tenant: Tenant, user: User, branch_id: int, on_date: date) -> ConsolidatedSales:
    """
    Roll the approved closings of a branch and day into one journal.

    Raises:
        ValueError: the day is already consolidated, closings are still
            pending review, or there is nothing approved to consolidate.
    """
    if query_consolidated(db, tenant, branch_id=branch_id, on_date=on_date).first():
        raise ValueError(f"Sales for {on_date.isoformat()} are already consolidated")

    day = query_daily_sales(db, tenant, branch_id=branch_id, on_date=on_date)
    pending = day.filter(DailySales.status == PENDING).count()
    if pending:
        raise ValueError(f"{pending} shift closing(s) still pending review")

    entries = (
        day.filter(DailySales.status == APPROVED, DailySales.consolidated_id.is_(None))
        .order_by(DailySales.shift_start.asc())
        .all()
    )
    if not entries:
        raise ValueError("No approved shift closings to consolidate")

    totals = summarize(entries)
    figures = totals.reconciliation
    journal = ConsolidatedSales(
        tenant_id=tenant.id,
        branch_id=branch_id,
        date=on_date,
        total_cash_sales=to_money(totals.total_cash_sales),
        total_network_sales=to_money(totals.total_network_sales),
        total_sales=figures.total_sales,
        total_transactions=totals.total_transactions,
        average_ticket=figures.average_ticket,
        total_discrepancy=figures.discrepancy,
        status=OPEN,
        created_by_id=user.id,
    )
    db.add(journal)
    try:
        db.flush()
        for entry in entries:
            entry.consolidated_id = journal.id
        activity_service.record(
            db, tenant.id, activity_service.CONSOLIDATE_SALES,
            user_id=user.id, branch_id=branch_id,
            details={
                "consolidated_id": journal.id,
                "date": on_date.isoformat(),
                "entries": len(entries),
                "total_sales": float(journal.total_sales),
            },
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(journal)

    logger.info(
        "Consolidated branch=%s date=%s entries=%s total=%s",
        branch_id, on_date, len(entries), journal.total_sales,
    )
    return journal


def advance(db: Session, journal: ConsolidatedSales, user: User, target_status: str) -> ConsolidatedSales:
    """
    Close an open journal or transfer a closed one.

    Raises:
        ValueError: the journal is not in the status the move starts from.
    """
    if _NEXT_STATUS.get(journal.status) != target_status:
        raise ValueError(f"Cannot mark a {journal.status} journal as {target_status}")

    now = datetime.utcnow()
    journal.status = target_status
    if target_status == CLOSED:
        journal.closed_by_id = user.id
        journal.closed_at = now
        action = activity_service.CLOSE_CONSOLIDATED_SALES
    else:
        journal.transferred_by_id = user.id
        journal.transferred_at = now
        action = activity_service.TRANSFER_CONSOLIDATED_SALES

    try:
        activity_service.record(
            db, journal.tenant_id, action,
            user_id=user.id, branch_id=journal.branch_id,
            details={"consolidated_id": journal.id, "date": journal.date.isoformat()},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(journal)

    logger.info("Consolidated journal %s %s by user=%s", journal.id, target_status, user.id)
    return journal
