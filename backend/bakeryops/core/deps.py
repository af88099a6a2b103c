from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from bakeryops.core.config import settings
from bakeryops.core.database import get_db
from bakeryops.core.security import ACCESS, decode_token
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User
from bakeryops.core.roles import ADMIN_ROLES, MANAGER_ROLES, REVIEWER_ROLES


def get_tenant_slug(request: Request) -> str:
    header_value = request.headers.get(settings.tenant_header)
    if header_value:
        return header_value
    # Fallback: subdomain e.g., chain.myapp.com
    host = request.headers.get("host", "")
    parts = host.split(":")[0].split(".")
    if len(parts) >= 3:
        return parts[0]
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing tenant header")


def get_tenant(db: Session = Depends(get_db), tenant_slug: str = Depends(get_tenant_slug)) -> Tenant:
    tenant = db.query(Tenant).filter(Tenant.slug == tenant_slug).first()
    if not tenant or not tenant.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    return tenant


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None),
    tenant: Tenant = Depends(get_tenant),
) -> User:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    token = authorization.split(" ", 1)[1]
    payload = decode_token(token)
    if not payload or payload.get("type") != ACCESS:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    user_id = payload.get("sub")
    user = db.query(User).filter(User.id == int(user_id), User.tenant_id == tenant.id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def _require_roles(user: User, roles: set) -> User:
    if user.role not in {r.value for r in roles}:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    return _require_roles(user, ADMIN_ROLES)


def require_manager(user: User = Depends(get_current_user)) -> User:
    return _require_roles(user, MANAGER_ROLES)


def require_reviewer(user: User = Depends(get_current_user)) -> User:
    return _require_roles(user, REVIEWER_ROLES)
