"""
Drop every table, recreate the schema and load the demo chain.
"""
from bakeryops.core.database import SessionLocal, engine
from bakeryops.models.tenant import Base
import bakeryops.models  # noqa: F401
from bakeryops.services.seed import DEMO_PASSWORD, DEMO_SLUG, seed_demo


def recreate_db():
    print("Dropping existing tables...")
    Base.metadata.drop_all(bind=engine)

    print("Creating tables...")
    Base.metadata.create_all(bind=engine)

    print("Seeding demo data...")
    db = SessionLocal()
    try:
        seed_demo(db)
    except Exception as e:
        print(f"Error seeding data: {e}")
        db.rollback()
        raise
    finally:
        db.close()

    print("Database recreated successfully!")
    print("\nLogin credentials:")
    print("   Email: admin@demo.com")
    print(f"   Password: {DEMO_PASSWORD}")
    print(f"   Tenant: {DEMO_SLUG}")


if __name__ == "__main__":
    recreate_db()
