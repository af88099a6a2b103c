#!/usr/bin/env python3
"""
Create (or reset) an admin user for a bakery chain.
Run inside the backend container: docker-compose exec backend python create_admin.py demo admin@demo.com
"""
import argparse
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from bakeryops.core.database import SessionLocal
from bakeryops.core.security import hash_password
from bakeryops.models.tenant import Tenant
from bakeryops.models.user import User


def create_admin(slug: str, email: str, password: str, name: str) -> int:
    db = SessionLocal()
    try:
        tenant = db.query(Tenant).filter(Tenant.slug == slug).first()
        if not tenant:
            print(f"Creating tenant '{slug}'...")
            tenant = Tenant(name=slug, slug=slug)
            db.add(tenant)
            db.flush()

        user = db.query(User).filter(User.tenant_id == tenant.id, User.email == email).first()
        if user:
            user.role = "admin"
            user.is_active = True
            user.hashed_password = hash_password(password)
            action = "updated"
        else:
            user = User(
                email=email,
                name=name,
                hashed_password=hash_password(password),
                role="admin",
                tenant_id=tenant.id,
            )
            db.add(user)
            action = "created"
        db.commit()
    except Exception as e:
        db.rollback()
        print(f"Error creating admin user: {e}")
        return 1
    finally:
        db.close()

    print(f"Admin '{email}' {action} for tenant '{slug}'")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or reset a chain admin")
    parser.add_argument("tenant", help="tenant slug, sent as X-Tenant-ID")
    parser.add_argument("email")
    parser.add_argument("--password", default="admin123")
    parser.add_argument("--name", default="Administrator")
    args = parser.parse_args()
    sys.exit(create_admin(args.tenant, args.email, args.password, args.name))
