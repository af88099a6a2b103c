import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from bakeryops.core.database import get_db
from bakeryops.core.deps import get_current_user, get_tenant, require_admin
from bakeryops.models.branch import Branch
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User


router = APIRouter()
logger = logging.getLogger(__name__)


class BranchIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = None
    is_active: bool = True


class BranchOut(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    address: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


def get_branch_or_404(db: Session, tenant: Tenant, branch_id: int) -> Branch:
    branch = db.query(Branch).filter(Branch.id == branch_id, Branch.tenant_id == tenant.id).first()
    if not branch:
        raise HTTPException(status_code=404, detail="Branch not found")
    return branch


def _ensure_unique_code(db: Session, tenant: Tenant, code: Optional[str], exclude_id: Optional[int] = None) -> None:
    if not code:
        return
    query = db.query(Branch).filter(Branch.tenant_id == tenant.id, Branch.code == code)
    if exclude_id is not None:
        query = query.filter(Branch.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=400, detail="Branch code already exists")


@router.get("/", response_model=List[BranchOut])
def list_branches(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    query = db.query(Branch).filter(Branch.tenant_id == tenant.id)
    if not include_inactive:
        query = query.filter(Branch.is_active.is_(True))
    return query.order_by(Branch.name.asc()).all()


@router.get("/{branch_id}", response_model=BranchOut)
def get_branch(
    branch_id: int,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    return get_branch_or_404(db, tenant, branch_id)


@router.post("/", response_model=BranchOut)
def create_branch(
    data: BranchIn,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_admin),
):
    _ensure_unique_code(db, tenant, data.code)
    branch = Branch(tenant_id=tenant.id, **data.model_dump())
    db.add(branch)
    db.commit()
    db.refresh(branch)
    logger.info("Branch created id=%s tenant=%s", branch.id, tenant.slug)
    return branch


@router.put("/{branch_id}", response_model=BranchOut)
def update_branch(
    branch_id: int,
    data: BranchIn,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(require_admin),
):
    branch = get_branch_or_404(db, tenant, branch_id)
    _ensure_unique_code(db, tenant, data.code, exclude_id=branch.id)
    for key, value in data.model_dump().items():
        setattr(branch, key, value)
    db.commit()
    db.refresh(branch)
    return branch
