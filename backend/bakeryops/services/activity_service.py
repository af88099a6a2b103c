from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from bakeryops.models.activity import Activity
from bakeryops.models.tenant import Tenant


logger = logging.getLogger(__name__)

CREATE_DAILY_SALES = "create_daily_sales"
REGISTER_SHORTAGE = "register_shortage"
APPROVE_DAILY_SALES = "approve_daily_sales"
REJECT_DAILY_SALES = "reject_daily_sales"
SET_MONTHLY_TARGET = "set_monthly_target"
CONSOLIDATE_SALES = "consolidate_sales"
CLOSE_CONSOLIDATED_SALES = "close_consolidated_sales"
TRANSFER_CONSOLIDATED_SALES = "transfer_consolidated_sales"


def record(
    db: Session,
    tenant_id: int,
    action: str,
    user_id: Optional[int] = None,
    branch_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Activity:
    """Add an activity row; the caller commits with the change it describes."""
    activity = Activity(
        tenant_id=tenant_id,
        user_id=user_id,
        branch_id=branch_id,
        action=action,
        details=details or {},
    )
    db.add(activity)
    logger.debug("Activity %s tenant=%s branch=%s user=%s", action, tenant_id, branch_id, user_id)
    return activity


def list_recent(db: Session, tenant: Tenant, branch_id: Optional[int] = None, limit: int = 10) -> List[Activity]:
    query = db.query(Activity).filter(Activity.tenant_id == tenant.id)
    if branch_id:
        query = query.filter(Activity.branch_id == branch_id)
    return query.order_by(Activity.created_at.desc(), Activity.id.desc()).limit(limit).all()
