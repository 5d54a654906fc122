import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.db import models
from app.db.session import engine
from app.reconciliacao.router import get_reconciliation_service
from app.reconciliacao.router import router as reconciliacao_router
from app.reconciliacao.scheduler import build_scheduler

if not logging.getLogger().handlers:
    logging.basicConfig(level=logging.INFO)

logger = logging.getLogger("nexa")

app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Nexa Oper - Reconciliacao de escalas e turnos realizados",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    models.Base.metadata.create_all(bind=engine)
    if settings.ENV.lower() == "production":
        if not settings.INTERNAL_API_SECRET:
            logger.warning("INTERNAL_API_SECRET nao definido: reconciliacao manual desabilitada.")
        if settings.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
            logger.warning("SQLALCHEMY_DATABASE_URI aponta para SQLite em producao.")
    if settings.RECONCILIACAO_CRON_ENABLED:
        scheduler = build_scheduler(get_reconciliation_service(), settings)
        scheduler.start()
        app.state.scheduler = scheduler


@app.on_event("shutdown")
def on_shutdown() -> None:
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.shutdown(wait=False)


app.include_router(reconciliacao_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"ok": True}
