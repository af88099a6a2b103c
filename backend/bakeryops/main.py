import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bakeryops.core.config import settings
from bakeryops.routes.auth import router as auth_router
from bakeryops.routes.health import router as health_router
from bakeryops.routes.admin import router as admin_router
from bakeryops.routes.branches import router as branches_router
from bakeryops.routes.daily_sales import router as daily_sales_router
from bakeryops.routes.targets import router as targets_router
from bakeryops.routes.dashboard import router as dashboard_router
from bakeryops.routes.notifications import router as notifications_router
from bakeryops.routes.leaderboards import router as leaderboards_router
from bakeryops.routes.activities import router as activities_router
from bakeryops.routes.reports import router as reports_router
from bakeryops.routes.consolidated_sales import router as consolidated_sales_router
from bakeryops.core.database import SessionLocal, init_db
from bakeryops.services.seed import seed_demo


logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Bakery Ops API", version="0.1.0")

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(admin_router, prefix="/admin", tags=["admin"])
    app.include_router(branches_router, prefix="/branches", tags=["branches"])
    app.include_router(daily_sales_router, prefix="/daily-sales", tags=["daily-sales"])
    app.include_router(targets_router, prefix="/monthly-targets", tags=["monthly-targets"])
    app.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])
    app.include_router(notifications_router, prefix="/notifications", tags=["notifications"])
    app.include_router(leaderboards_router, prefix="/leaderboards", tags=["leaderboards"])
    app.include_router(activities_router, prefix="/activities", tags=["activities"])
    app.include_router(reports_router, prefix="/reports", tags=["reports"])
    app.include_router(consolidated_sales_router, prefix="/consolidated-sales", tags=["consolidated-sales"])

    return app


app = create_app()

# Only seed in development or when explicitly requested
if settings.env == "dev" or os.getenv("FORCE_SEED") == "true":
    try:
        init_db()
        with SessionLocal() as db:
            seed_demo(db)
    except Exception:
        logger.exception("Demo seeding failed; continuing without demo data")
