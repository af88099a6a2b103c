from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from bakeryops.core.config import settings
from bakeryops.core.reconciliation import SHORTAGE, discrepancy_status
from bakeryops.core.roles import Role
from bakeryops.models.daily_sales import DailySales
from bakeryops.models.notification import Notification
from bakeryops.models.user import User


logger = logging.getLogger(__name__)

INFO = "info"
SUCCESS = "success"
WARNING = "warning"
ERROR = "error"


def notify(
    db: Session,
    tenant_id: int,
    user_ids: Iterable[int],
    title: str,
    message: str,
    type: str = INFO,
    link: Optional[str] = None,
) -> List[Notification]:
    """Queue one notification per recipient; the caller commits."""
    created = []
    for user_id in sorted(set(user_ids)):
        notification = Notification(
            tenant_id=tenant_id,
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            link=link,
        )
        db.add(notification)
        created.append(notification)
    return created


def discrepancy_recipients(db: Session, tenant_id: int, branch_id: int) -> List[int]:
    """Admins of the chain plus managers of the branch."""
    rows = (
        db.query(User.id)
        .filter(
            User.tenant_id == tenant_id,
            User.is_active.is_(True),
            or_(
                User.role == Role.admin.value,
                and_(User.role == Role.branch_manager.value, User.branch_id == branch_id),
            ),
        )
        .all()
    )
    return [row[0] for row in rows]


def needs_discrepancy_alert(amount: Decimal) -> bool:
    threshold = settings.discrepancy_alert_threshold
    return threshold >= 0 and amount != 0 and abs(amount) >= threshold


def alert_discrepancy(db: Session, entry: DailySales) -> List[Notification]:
    if not needs_discrepancy_alert(entry.discrepancy):
        return []
    kind = discrepancy_status(entry.discrepancy)
    label = "Cash shortage" if kind == SHORTAGE else "Cash surplus"
    cashier_name = entry.cashier.display_name if entry.cashier else "Unknown cashier"
    message = (
        f"{cashier_name} closed the {entry.shift_type} shift of {entry.date.isoformat()} "
        f"at {entry.branch.name} with a {kind} of "
        f"{abs(entry.discrepancy):.2f} {settings.currency}."
    )
    recipients = discrepancy_recipients(db, entry.tenant_id, entry.branch_id)
    logger.info(
        "Discrepancy alert daily_sales=%s amount=%s recipients=%s",
        entry.id, entry.discrepancy, len(recipients),
    )
    return notify(
        db,
        entry.tenant_id,
        recipients,
        title=label,
        message=message,
        type=WARNING,
        link=f"/daily-sales/{entry.id}",
    )


def notify_review(db: Session, entry: DailySales) -> List[Notification]:
    if entry.cashier_id is None:
        return []
    approved = entry.status == "approved"
    message = f"Your {entry.shift_type} shift of {entry.date.isoformat()} was {entry.status}."
    if entry.review_notes:
        message = f"{message} {entry.review_notes}"
    return notify(
        db,
        entry.tenant_id,
        [entry.cashier_id],
        title="Daily sales approved" if approved else "Daily sales rejected",
        message=message,
        type=SUCCESS if approved else ERROR,
        link=f"/daily-sales/{entry.id}",
    )


def list_for_user(db: Session, user: User, unread_only: bool = False, limit: int = 50) -> List[Notification]:
    query = db.query(Notification).filter(
        Notification.tenant_id == user.tenant_id,
        Notification.user_id == user.id,
    )
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def mark_read(db: Session, user: User, notification_id: int) -> Optional[Notification]:
    notification = (
        db.query(Notification)
        .filter(
            Notification.id == notification_id,
            Notification.tenant_id == user.tenant_id,
            Notification.user_id == user.id,
        )
        .first()
    )
    if notification is None:
        return None
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, user: User) -> int:
    updated = (
        db.query(Notification)
        .filter(
            Notification.tenant_id == user.tenant_id,
            Notification.user_id == user.id,
            Notification.is_read.is_(False),
        )
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return updated
