import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from bakeryops.core.database import get_db
from bakeryops.core.security import REFRESH, decode_token, hash_password, issue_token_pair, verify_password
from bakeryops.core.deps import get_tenant
from bakeryops.core.roles import Role
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User


router = APIRouter()
logger = logging.getLogger(__name__)


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    name: str = ""
    tenant_name: str
    tenant_slug: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


def _tokens_for(user: User, tenant: Tenant) -> TokenResponse:
    access, refresh = issue_token_pair(user.id, tenant.slug)
    return TokenResponse(access_token=access, refresh_token=refresh)


@router.post("/register", response_model=TokenResponse)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """Create a bakery chain together with its first admin."""
    if db.query(Tenant).filter(Tenant.slug == data.tenant_slug).first():
        raise HTTPException(status_code=400, detail="Tenant already exists")

    tenant = Tenant(name=data.tenant_name, slug=data.tenant_slug)
    db.add(tenant)
    db.flush()

    user = User(
        email=data.email,
        name=data.name,
        hashed_password=hash_password(data.password),
        role=Role.admin.value,
        tenant_id=tenant.id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered tenant slug=%s admin=%s", tenant.slug, user.id)
    return _tokens_for(user, tenant)


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db), tenant: Tenant = Depends(get_tenant)):
    user = db.query(User).filter(User.email == data.email, User.tenant_id == tenant.id).first()
    if not user or not user.is_active or not verify_password(data.password, user.hashed_password):
        logger.warning("Failed login tenant=%s email=%s", tenant.slug, data.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _tokens_for(user, tenant)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token_endpoint(data: RefreshRequest, db: Session = Depends(get_db), tenant: Tenant = Depends(get_tenant)):
    payload = decode_token(data.refresh_token)
    if not payload or payload.get("type") != REFRESH:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    user = db.query(User).filter(User.id == int(payload["sub"]), User.tenant_id == tenant.id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return _tokens_for(user, tenant)
