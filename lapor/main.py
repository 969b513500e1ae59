import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session

from lapor.core.config import settings
from lapor.core.db import Base, engine, SessionLocal
from lapor.core.errors import register_error_handlers
from lapor.routers.admin import router as admin_router
from lapor.routers.auth import router as auth_router
from lapor.routers.categories import router as categories_router
from lapor.routers.petugas import router as petugas_router
from lapor.routers.reports import router as reports_router
from lapor.services.seed import seed_defaults
from lapor.services.storage import ensure_upload_dir

# Import models so SQLAlchemy registers them before create_all()
import lapor.models.profile  # noqa: F401
import lapor.models.category  # noqa: F401
import lapor.models.report  # noqa: F401
import lapor.models.report_update  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title=settings.APP_NAME, version="0.1.0")

Base.metadata.create_all(bind=engine)

with SessionLocal() as db:  # type: Session
    seed_defaults(db)

register_error_handlers(app)

app.include_router(auth_router)
app.include_router(categories_router)
app.include_router(reports_router)
app.include_router(petugas_router)
app.include_router(admin_router)

# public URLs of uploaded images
ensure_upload_dir()
app.mount("/storage", StaticFiles(directory=settings.UPLOAD_DIR), name="storage")


@app.get("/")
def root():
    return {"name": settings.APP_NAME, "docs": "/docs", "health": "/health"}


@app.get("/health")
def health():
    return {"ok": True}
