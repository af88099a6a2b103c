from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from bakeryops.core.database import get_db
from bakeryops.core.deps import get_current_user, get_tenant
from bakeryops.models.activity import Activity
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User
from bakeryops.services import activity_service

router = APIRouter()


class ActivityOut(BaseModel):
    id: int
    action: str
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    user_role: Optional[str] = None
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None
    details: Dict[str, Any] = {}
    created_at: datetime


def _to_out(activity: Activity) -> ActivityOut:
    return ActivityOut(
        id=activity.id,
        action=activity.action,
        user_id=activity.user_id,
        user_name=activity.user.display_name if activity.user else None,
        user_role=activity.user.role if activity.user else None,
        branch_id=activity.branch_id,
        branch_name=activity.branch.name if activity.branch else None,
        details=activity.details or {},
        created_at=activity.created_at,
    )


@router.get("/", response_model=List[ActivityOut])
def list_activities(
    branch_id: Optional[int] = None,
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    """Recent activity feed for the dashboard"""
    return [_to_out(a) for a in activity_service.list_recent(db, tenant, branch_id=branch_id, limit=limit)]
