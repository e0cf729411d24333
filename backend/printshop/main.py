from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pathlib import Path
import logging
import os

from printshop.core.config import settings
from printshop.core.store import StoreError
from printshop.core.storage import StorageError
from printshop.routes.auth import router as auth_router
from printshop.routes.health import router as health_router
from printshop.routes.clients import router as clients_router
from printshop.routes.products import router as products_router
from printshop.routes.inventory import router as inventory_router
from printshop.routes.orders import router as orders_router
from printshop.routes.quotation import router as quotation_router
from printshop.routes.finance import router as finance_router
from printshop.routes.analytics import router as analytics_router
from printshop.routes.reinvestment import router as reinvestment_router
from printshop.routes.tags import router as tags_router
from printshop.routes.audit import router as audit_router
from printshop.routes.export import router as export_router
from printshop.routes.status_history import router as status_history_router
from printshop.core.database import SessionLocal, init_db
from printshop.services.seed import seed_demo


logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Print Shop API", version="0.1.0")

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return JSONResponse(status_code=400, content={"detail": exc.message, "table": exc.table})

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(clients_router, prefix="/clients", tags=["clients"])
    app.include_router(products_router, prefix="/products", tags=["products"])
    app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
    app.include_router(orders_router, prefix="/orders", tags=["orders"])
    app.include_router(quotation_router, prefix="/quotation", tags=["quotation"])
    app.include_router(finance_router, prefix="/finance", tags=["finance"])
    app.include_router(analytics_router, prefix="/analytics", tags=["analytics"])
    app.include_router(reinvestment_router, prefix="/reinvestment", tags=["reinvestment"])
    app.include_router(tags_router, prefix="/tags", tags=["tags"])
    app.include_router(audit_router, prefix="/audit", tags=["audit"])
    app.include_router(export_router, prefix="/export", tags=["export"])
    app.include_router(status_history_router, prefix="/status-history", tags=["status-history"])

    storage_dir = Path(settings.storage_dir)
    storage_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/storage", StaticFiles(directory=str(storage_dir)), name="storage")

    return app


app = create_app()

# Only seed in development or when explicitly requested
if settings.env == "dev" or os.getenv("FORCE_SEED") == "true":
    try:
        init_db()
        with SessionLocal() as db:
            seed_demo(db)
    except Exception:
        logger.exception("demo seed failed")
