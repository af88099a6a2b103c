"""
Dashboard and leaderboard aggregates over shift closings.

All figures are built from the stored inputs of each entry and fed back
through the reconciliation calculator, so totals, discrepancies and average
tickets agree with what the cashier saw on the form. Rejected entries never
count.
"""
from __future__ import annotations

import calendar
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple, TypedDict

from sqlalchemy.orm import Session

from bakeryops.core.reconciliation import (
    ZERO,
    ShiftReconciliation,
    cash_accuracy,
    discrepancy_status,
    reconcile,
    to_money,
)
from bakeryops.models.branch import Branch
from bakeryops.models.daily_sales import DailySales
from bakeryops.models.monthly_target import MonthlyTarget
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User
from bakeryops.services.daily_sales_service import business_today, query_daily_sales

MAX_RANGE_DAYS = 366

LEADERBOARD_METRICS = ("total_sales", "average_ticket", "performance")
DISCREPANCY_FILTERS = ("all", "shortage", "surplus", "balanced")


@dataclass
class ShiftTotals:
    """Summed inputs of a group of shift closings."""

    shifts: int = 0
    starting_cash: Decimal = ZERO
    total_cash_sales: Decimal = ZERO
    total_network_sales: Decimal = ZERO
    actual_cash_in_register: Decimal = ZERO
    total_transactions: int = 0
    first_shift_start: Optional[datetime] = None
    last_shift_end: Optional[datetime] = None

    def add(self, entry: DailySales) -> None:
        self.shifts += 1
        self.starting_cash += Decimal(entry.starting_cash)
        self.total_cash_sales += Decimal(entry.total_cash_sales)
        self.total_network_sales += Decimal(entry.total_network_sales)
        self.actual_cash_in_register += Decimal(entry.actual_cash_in_register)
        self.total_transactions += entry.total_transactions
        if self.first_shift_start is None or entry.shift_start < self.first_shift_start:
            self.first_shift_start = entry.shift_start
        if self.last_shift_end is None or entry.shift_end > self.last_shift_end:
            self.last_shift_end = entry.shift_end

    @property
    def reconciliation(self) -> ShiftReconciliation:
        return reconcile(
            self.starting_cash,
            self.total_cash_sales,
            self.total_network_sales,
            self.actual_cash_in_register,
            self.total_transactions,
        ).rounded()

    @property
    def expected_cash(self) -> Decimal:
        return self.total_cash_sales + self.starting_cash

    @property
    def performance(self) -> float:
        if self.shifts == 0:
            return 0.0
        return round(cash_accuracy(self.reconciliation.discrepancy, self.expected_cash), 2)


def summarize(entries: Iterable[DailySales]) -> ShiftTotals:
    totals = ShiftTotals()
    for entry in entries:
        totals.add(entry)
    return totals


def percentage(achieved: Decimal, target: Decimal) -> float:
    if not target or target <= 0:
        return 0.0
    return round(float(Decimal(achieved) / Decimal(target) * 100), 2)


def achievement_status(pct: float) -> str:
    if pct >= 95:
        return "excellent"
    if pct >= 85:
        return "very_good"
    if pct >= 75:
        return "good"
    return "needs_improvement"


def resolve_range(start_date: Optional[date], end_date: Optional[date]) -> Tuple[date, date]:
    """Default to month-to-date; reject inverted or oversized windows."""
    end = end_date or business_today()
    start = start_date or end.replace(day=1)
    if start > end:
        raise ValueError("start_date must be <= end_date")
    if (end - start).days + 1 > MAX_RANGE_DAYS:
        raise ValueError(f"Date range cannot exceed {MAX_RANGE_DAYS} days")
    return start, end


def monthly_target_amount(db: Session, tenant: Tenant, year: int, month: int, branch_id: Optional[int] = None) -> Decimal:
    query = db.query(MonthlyTarget).filter(
        MonthlyTarget.tenant_id == tenant.id,
        MonthlyTarget.year == year,
        MonthlyTarget.month == month,
    )
    if branch_id:
        query = query.filter(MonthlyTarget.branch_id == branch_id)
    return sum((Decimal(t.target_amount) for t in query.all()), ZERO)


class DashboardStats(TypedDict):
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


def dashboard_stats(db: Session, tenant: Tenant, branch_id: Optional[int] = None, on_date: Optional[date] = None) -> DashboardStats:
    day = on_date or business_today()
    month_start = day.replace(day=1)

    day_entries = query_daily_sales(db, tenant, branch_id=branch_id, on_date=day, exclude_rejected=True).all()
    month_entries = query_daily_sales(
        db, tenant, branch_id=branch_id, start_date=month_start, end_date=day, exclude_rejected=True
    ).all()

    today_totals = summarize(day_entries)
    month_totals = summarize(month_entries)
    today_figures = today_totals.reconciliation
    month_figures = month_totals.reconciliation

    monthly_target = monthly_target_amount(db, tenant, day.year, day.month, branch_id)
    days_in_month = calendar.monthrange(day.year, day.month)[1]
    daily_target = to_money(monthly_target / days_in_month) if monthly_target else ZERO

    return DashboardStats(
        date=day.isoformat(),
        daily_sales=float(today_figures.total_sales),
        daily_target=float(daily_target),
        daily_target_percentage=percentage(today_figures.total_sales, daily_target),
        monthly_sales_amount=float(month_figures.total_sales),
        monthly_target=float(monthly_target),
        monthly_target_percentage=percentage(month_figures.total_sales, monthly_target),
        entries=today_totals.shifts,
        total_transactions=today_totals.total_transactions,
        average_ticket=float(today_figures.average_ticket),
        net_discrepancy=float(today_figures.discrepancy),
        pending_reviews=sum(1 for e in day_entries if e.status == "pending"),
    )


@dataclass
class CashierRow:
    cashier_id: int
    name: str
    branch_id: Optional[int]
    totals: ShiftTotals = field(default_factory=ShiftTotals)

    def as_dict(self) -> Dict[str, Any]:
        figures = self.totals.reconciliation
        return {
            "cashier_id": self.cashier_id,
            "name": self.name,
            "branch_id": self.branch_id,
            "shifts": self.totals.shifts,
            "shift_start": self.totals.first_shift_start,
            "shift_end": self.totals.last_shift_end,
            "total_sales": float(figures.total_sales),
            "discrepancy": float(figures.discrepancy),
            "discrepancy_status": figures.discrepancy_status,
            "total_transactions": self.totals.total_transactions,
            "average_ticket": float(figures.average_ticket),
            "performance": self.totals.performance,
        }


def _cashier_rows(
    db: Session,
    tenant: Tenant,
    branch_id: Optional[int],
    cashier_id: Optional[int],
    start: date,
    end: date,
) -> List[CashierRow]:
    entries = (
        query_daily_sales(
            db, tenant,
            branch_id=branch_id, cashier_id=cashier_id,
            start_date=start, end_date=end, exclude_rejected=True,
        )
        .filter(DailySales.cashier_id.isnot(None))
        .order_by(DailySales.shift_start.asc())
        .all()
    )
    rows: "OrderedDict[int, CashierRow]" = OrderedDict()
    for entry in entries:
        row = rows.get(entry.cashier_id)
        if row is None:
            cashier: Optional[User] = entry.cashier
            row = CashierRow(
                cashier_id=entry.cashier_id,
                name=cashier.display_name if cashier else f"#{entry.cashier_id}",
                branch_id=cashier.branch_id if cashier else entry.branch_id,
            )
            rows[entry.cashier_id] = row
        row.totals.add(entry)
    return list(rows.values())


def cashier_performance(
    db: Session,
    tenant: Tenant,
    *,
    branch_id: Optional[int] = None,
    cashier_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    discrepancy_filter: str = "all",
) -> List[Dict[str, Any]]:
    """Per-cashier aggregates; the filter applies to each cashier's net discrepancy."""
    if discrepancy_filter not in DISCREPANCY_FILTERS:
        raise ValueError(f"discrepancy_filter must be one of {', '.join(DISCREPANCY_FILTERS)}")
    start, end = resolve_range(start_date, end_date)
    rows = [row.as_dict() for row in _cashier_rows(db, tenant, branch_id, cashier_id, start, end)]
    if discrepancy_filter != "all":
        rows = [row for row in rows if row["discrepancy_status"] == discrepancy_filter]
    rows.sort(key=lambda r: (-r["total_sales"], r["cashier_id"]))
    return rows


def target_achievement(db: Session, tenant: Tenant, month: Optional[int] = None, year: Optional[int] = None) -> List[Dict[str, Any]]:
    today = business_today()
    month = month or today.month
    year = year or today.year
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")

    month_start = date(year, month, 1)
    month_end = date(year, month, calendar.monthrange(year, month)[1])

    targets = {
        t.branch_id: Decimal(t.target_amount)
        for t in db.query(MonthlyTarget).filter(
            MonthlyTarget.tenant_id == tenant.id,
            MonthlyTarget.year == year,
            MonthlyTarget.month == month,
        )
    }
    entries = query_daily_sales(db, tenant, start_date=month_start, end_date=month_end, exclude_rejected=True).all()
    by_branch: Dict[int, ShiftTotals] = {}
    for entry in entries:
        by_branch.setdefault(entry.branch_id, ShiftTotals()).add(entry)

    branches = (
        db.query(Branch)
        .filter(Branch.tenant_id == tenant.id, Branch.is_active.is_(True))
        .order_by(Branch.name.asc())
        .all()
    )
    result = []
    for branch in branches:
        achieved = by_branch.get(branch.id, ShiftTotals()).reconciliation.total_sales
        target = targets.get(branch.id)
        pct = percentage(achieved, target) if target else 0.0
        result.append({
            "branch_id": branch.id,
            "branch_name": branch.name,
            "month": month,
            "year": year,
            "target": float(target) if target else 0.0,
            "achieved": float(achieved),
            "percentage": pct,
            "status": achievement_status(pct) if target else "no_target",
        })
    return result


def sales_analytics(
    db: Session,
    tenant: Tenant,
    *,
    branch_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """Daily series over the window, zero-filled for days without entries."""
    start, end = resolve_range(start_date, end_date)
    entries = query_daily_sales(
        db, tenant, branch_id=branch_id, start_date=start, end_date=end, exclude_rejected=True
    ).all()

    days: "OrderedDict[date, ShiftTotals]" = OrderedDict()
    current = start
    while current <= end:
        days[current] = ShiftTotals()
        current += timedelta(days=1)
    for entry in entries:
        days[entry.date].add(entry)

    series = []
    for day, totals in days.items():
        figures = totals.reconciliation
        series.append({
            "date": day.isoformat(),
            "cash_sales": float(totals.total_cash_sales),
            "network_sales": float(totals.total_network_sales),
            "total_sales": float(figures.total_sales),
            "transactions": totals.total_transactions,
            "average_ticket": float(figures.average_ticket),
        })
    return series


def cashier_leaderboard(
    db: Session,
    tenant: Tenant,
    *,
    metric: str = "total_sales",
    branch_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """Cashiers ranked by metric, ties share a rank (1, 2, 2, 4)."""
    if metric not in LEADERBOARD_METRICS:
        raise ValueError(f"metric must be one of {', '.join(LEADERBOARD_METRICS)}")
    start, end = resolve_range(start_date, end_date)
    rows = [row.as_dict() for row in _cashier_rows(db, tenant, branch_id, None, start, end)]
    rows.sort(key=lambda r: (-r[metric], r["name"], r["cashier_id"]))

    ranked = []
    previous_value = None
    rank = 0
    for position, row in enumerate(rows, start=1):
        if row[metric] != previous_value:
            rank = position
            previous_value = row[metric]
        ranked.append({
            "rank": rank,
            "cashier_id": row["cashier_id"],
            "name": row["name"],
            "branch_id": row["branch_id"],
            "value": row[metric],
            "shifts": row["shifts"],
            "total_sales": row["total_sales"],
            "average_ticket": row["average_ticket"],
            "performance": row["performance"],
        })
    return ranked


def previous_range(start: date, end: date) -> Tuple[date, date]:
    """The window of the same length ending the day before start."""
    length = (end - start).days
    previous_end = start - timedelta(days=1)
    return previous_end - timedelta(days=length), previous_end


def growth(current, previous) -> Optional[float]:
    """Percent change; None when there is nothing to compare against."""
    if not previous:
        return None
    return round(float((Decimal(current) - Decimal(previous)) / Decimal(previous) * 100), 2)


def _days(start: date, end: date) -> List[date]:
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def daily_targets(
    db: Session,
    tenant: Tenant,
    start: date,
    end: date,
    branch_id: Optional[int] = None,
) -> Dict[date, Decimal]:
    """Monthly targets spread evenly over the days of their month."""
    days = _days(start, end)
    months = {(d.year, d.month) for d in days}
    query = db.query(MonthlyTarget).filter(MonthlyTarget.tenant_id == tenant.id)
    if branch_id:
        query = query.filter(MonthlyTarget.branch_id == branch_id)

    per_month: Dict[Tuple[int, int], Decimal] = {}
    for target in query.all():
        key = (target.year, target.month)
        if key in months:
            per_month[key] = per_month.get(key, ZERO) + Decimal(target.target_amount)

    result = {}
    for d in days:
        amount = per_month.get((d.year, d.month), ZERO)
        result[d] = amount / calendar.monthrange(d.year, d.month)[1] if amount else ZERO
    return result


def _totals_by(entries: Iterable[DailySales], key) -> Dict[Any, ShiftTotals]:
    grouped: Dict[Any, ShiftTotals] = {}
    for entry in entries:
        grouped.setdefault(key(entry), ShiftTotals()).add(entry)
    return grouped


def branch_comparison(
    db: Session,
    tenant: Tenant,
    *,
    branch_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """Each branch's window against the window just before it, plus target achievement."""
    start, end = resolve_range(start_date, end_date)
    previous_start, previous_end = previous_range(start, end)

    current = _totals_by(
        query_daily_sales(db, tenant, branch_id=branch_id, start_date=start, end_date=end, exclude_rejected=True),
        lambda e: e.branch_id,
    )
    previous = _totals_by(
        query_daily_sales(
            db, tenant, branch_id=branch_id, start_date=previous_start, end_date=previous_end, exclude_rejected=True
        ),
        lambda e: e.branch_id,
    )

    branches = db.query(Branch).filter(Branch.tenant_id == tenant.id, Branch.is_active.is_(True))
    if branch_id:
        branches = branches.filter(Branch.id == branch_id)

    rows = []
    for branch in branches.all():
        now = current.get(branch.id, ShiftTotals())
        before = previous.get(branch.id, ShiftTotals())
        now_figures = now.reconciliation
        before_figures = before.reconciliation
        target = to_money(sum(daily_targets(db, tenant, start, end, branch.id).values(), ZERO))
        rows.append({
            "branch_id": branch.id,
            "branch_name": branch.name,
            "total_sales": float(now_figures.total_sales),
            "previous_sales": float(before_figures.total_sales),
            "growth": growth(now_figures.total_sales, before_figures.total_sales),
            "transactions": now.total_transactions,
            "previous_transactions": before.total_transactions,
            "transaction_growth": growth(now.total_transactions, before.total_transactions),
            "average_ticket": float(now_figures.average_ticket),
            "previous_average_ticket": float(before_figures.average_ticket),
            "ticket_growth": growth(now_figures.average_ticket, before_figures.average_ticket),
            "discrepancy": float(now_figures.discrepancy),
            "target": float(target),
            "target_achievement": percentage(now_figures.total_sales, target),
        })
    rows.sort(key=lambda r: (-r["total_sales"], r["branch_name"]))
    return rows


def cashier_comparison(
    db: Session,
    tenant: Tenant,
    *,
    branch_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """Cashiers active in either window, current figures against the previous window."""
    start, end = resolve_range(start_date, end_date)
    previous_start, previous_end = previous_range(start, end)

    current = {row.cashier_id: row for row in _cashier_rows(db, tenant, branch_id, None, start, end)}
    previous = {row.cashier_id: row for row in _cashier_rows(db, tenant, branch_id, None, previous_start, previous_end)}

    rows = []
    for cashier_id in set(current) | set(previous):
        known = current.get(cashier_id) or previous[cashier_id]
        now = current[cashier_id].totals if cashier_id in current else ShiftTotals()
        before = previous[cashier_id].totals if cashier_id in previous else ShiftTotals()
        now_figures = now.reconciliation
        before_figures = before.reconciliation
        rows.append({
            "cashier_id": cashier_id,
            "name": known.name,
            "branch_id": known.branch_id,
            "shifts": now.shifts,
            "total_sales": float(now_figures.total_sales),
            "previous_sales": float(before_figures.total_sales),
            "growth": growth(now_figures.total_sales, before_figures.total_sales),
            "transactions": now.total_transactions,
            "previous_transactions": before.total_transactions,
            "average_ticket": float(now_figures.average_ticket),
            "previous_average_ticket": float(before_figures.average_ticket),
            "discrepancy": float(now_figures.discrepancy),
            "performance": now.performance,
            "previous_performance": before.performance,
        })
    rows.sort(key=lambda r: (-r["total_sales"], r["name"], r["cashier_id"]))
    return rows


def sales_over_time(
    db: Session,
    tenant: Tenant,
    *,
    branch_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """Day-by-day sales of the window beside the same day offset of the previous window."""
    start, end = resolve_range(start_date, end_date)
    previous_start, previous_end = previous_range(start, end)

    current = _totals_by(
        query_daily_sales(db, tenant, branch_id=branch_id, start_date=start, end_date=end, exclude_rejected=True),
        lambda e: e.date,
    )
    previous = _totals_by(
        query_daily_sales(
            db, tenant, branch_id=branch_id, start_date=previous_start, end_date=previous_end, exclude_rejected=True
        ),
        lambda e: e.date,
    )
    targets = daily_targets(db, tenant, start, end, branch_id)

    series = []
    for offset, day in enumerate(_days(start, end)):
        previous_day = previous_start + timedelta(days=offset)
        series.append({
            "day": offset + 1,
            "date": day.isoformat(),
            "previous_date": previous_day.isoformat(),
            "current_sales": float(current.get(day, ShiftTotals()).reconciliation.total_sales),
            "previous_sales": float(previous.get(previous_day, ShiftTotals()).reconciliation.total_sales),
            "target": float(to_money(targets[day])),
        })
    return series
