from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from .config import settings
from .database import engine, Base
from .routers import calculator, skus, projects, bundles

logger = logging.getLogger("fence_bom")

# Create tables (handles new tables but won't add columns to existing ones)
Base.metadata.create_all(bind=engine)

BASE_REVISION = "5b7e2f0c9a31"


def _run_migrations():
    """Run pending Alembic migrations on startup.

    Databases created by Base.metadata.create_all() before Alembic was
    introduced have no alembic_version table; the base migration is stamped
    as applied first.
    """
    try:
        from alembic.config import Config
        from alembic import command
        from sqlalchemy import inspect

        alembic_ini = os.path.join(os.path.dirname(__file__), "..", "alembic.ini")
        if not os.path.exists(alembic_ini):
            logger.info("alembic.ini not found, skipping migrations")
            return

        alembic_cfg = Config(alembic_ini)
        alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

        insp = inspect(engine)
        table_names = insp.get_table_names()
        if "alembic_version" not in table_names and "bom_projects" in table_names:
            logger.info("Stamping base migration %s (tables already exist)", BASE_REVISION)
            command.stamp(alembic_cfg, BASE_REVISION)

        logger.info("Running pending Alembic migrations...")
        command.upgrade(alembic_cfg, "head")
        logger.info("Migrations complete")

    except Exception as e:
        # Migration errors must not prevent app startup
        logger.warning("Alembic migration warning: %s", e)


app = FastAPI(
    title="Fence BOM Hub",
    description="Fence bill of materials, labor costing and yard fulfillment",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(calculator.router, prefix="/api")
app.include_router(skus.router, prefix="/api")
app.include_router(projects.router, prefix="/api")
app.include_router(bundles.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "fence-bom", "company": settings.COMPANY_NAME}


@app.on_event("startup")
def auto_migrate():
    """Run pending Alembic migrations on startup."""
    _run_migrations()


@app.on_event("startup")
def auto_seed():
    """Seed the default labor codes on first run."""
    from .database import SessionLocal
    from .catalog import seed_labor_codes
    db = SessionLocal()
    try:
        added = seed_labor_codes(db)
        if added:
            logger.info("Seeded %d labor codes", added)
    finally:
        db.close()
