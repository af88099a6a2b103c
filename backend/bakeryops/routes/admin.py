from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from bakeryops.core.deps import get_current_user, get_tenant, require_admin
from bakeryops.core.database import get_db
from bakeryops.core.security import hash_password
from bakeryops.core.roles import Role
from bakeryops.models.branch import Branch
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User

router = APIRouter()

RoleName = Literal["admin", "branch_manager", "supervisor", "cashier"]


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    name: str = ""
    role: RoleName = "cashier"
    branch_id: Optional[int] = None


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    password: str | None = None
    name: str | None = None
    role: RoleName | None = None
    branch_id: int | None = None
    is_active: bool | None = None


class UserOut(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: str
    branch_id: Optional[int] = None
    is_active: bool

    class Config:
        from_attributes = True


def _ensure_branch(db: Session, tenant: Tenant, branch_id: Optional[int]) -> None:
    if branch_id is None:
        return
    if not db.query(Branch).filter(Branch.id == branch_id, Branch.tenant_id == tenant.id).first():
        raise HTTPException(status_code=404, detail="Branch not found")


@router.get("/users", response_model=List[UserOut])
def list_users(
    role: Optional[RoleName] = None,
    branch_id: Optional[int] = None,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    user: User = Depends(get_current_user),
):
    """List users of the chain; all authenticated users can read it for cashier selectors"""
    query = db.query(User).filter(User.tenant_id == tenant.id)
    if role:
        query = query.filter(User.role == role)
    if branch_id:
        query = query.filter(User.branch_id == branch_id)
    return query.order_by(User.id.asc()).all()


@router.post("/users", response_model=UserOut)
def create_user(data: UserCreate, db: Session = Depends(get_db), tenant: Tenant = Depends(get_tenant), user: User = Depends(require_admin)):
    if db.query(User).filter(User.tenant_id == tenant.id, User.email == data.email).first():
        raise HTTPException(status_code=400, detail="Email already exists for this tenant")
    _ensure_branch(db, tenant, data.branch_id)
    new_user = User(
        email=data.email,
        name=data.name,
        hashed_password=hash_password(data.password),
        role=data.role,
        branch_id=data.branch_id,
        tenant_id=tenant.id,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    return new_user


@router.put("/users/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    current_user: User = Depends(require_admin),
):
    user_to_update = db.query(User).filter(User.id == user_id, User.tenant_id == tenant.id).first()
    if not user_to_update:
        raise HTTPException(status_code=404, detail="User not found")

    # An admin cannot demote or deactivate themselves
    if user_to_update.id == current_user.id:
        if data.role and data.role != Role.admin.value:
            raise HTTPException(status_code=400, detail="Cannot change your own admin role")
        if data.is_active is False:
            raise HTTPException(status_code=400, detail="Cannot deactivate yourself")

    if data.email:
        existing = db.query(User).filter(
            User.tenant_id == tenant.id,
            User.email == data.email,
            User.id != user_id,
        ).first()
        if existing:
            raise HTTPException(status_code=400, detail="Email already exists")
        user_to_update.email = data.email

    if data.password:
        user_to_update.hashed_password = hash_password(data.password)
    if data.name is not None:
        user_to_update.name = data.name
    if data.role:
        user_to_update.role = data.role
    if data.branch_id is not None:
        _ensure_branch(db, tenant, data.branch_id)
        user_to_update.branch_id = data.branch_id
    if data.is_active is not None:
        user_to_update.is_active = data.is_active

    db.commit()
    db.refresh(user_to_update)
    return user_to_update


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    current_user: User = Depends(require_admin),
):
    user_to_delete = db.query(User).filter(User.id == user_id, User.tenant_id == tenant.id).first()
    if not user_to_delete:
        raise HTTPException(status_code=404, detail="User not found")
    if user_to_delete.id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot delete yourself")

    db.delete(user_to_delete)
    db.commit()
    return {"message": "User deleted successfully"}
