from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from passlib.context import CryptContext

from bakeryops.core.config import settings


password_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=12,
)

ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    return password_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return password_context.verify(password, hashed_password)


def create_token(subject: str, expires_minutes: int, token_type: str, tenant_slug: Optional[str] = None) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": subject,
        "type": token_type,
        "exp": now + timedelta(minutes=expires_minutes),
        "iat": now,
    }
    if tenant_slug:
        payload["tenant"] = tenant_slug
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def issue_token_pair(user_id: int, tenant_slug: str) -> tuple[str, str]:
    access = create_token(str(user_id), settings.access_token_expire_minutes, ACCESS, tenant_slug)
    refresh = create_token(str(user_id), settings.refresh_token_expire_minutes, REFRESH, tenant_slug)
    return access, refresh


def decode_token(token: str) -> Optional[dict[str, Any]]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        return None
