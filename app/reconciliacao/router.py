import hmac
import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.db.session import SessionLocal
from app.reconciliacao.schemas import ReconcileRequest
from app.reconciliacao.service import ReconciliationAlreadyRunning, ReconciliationConfig, ReconciliationService


logger = logging.getLogger("nexa.reconciliacao")
router = APIRouter(prefix="/internal/reconciliacao", tags=["Reconciliacao"])

SECRET_HEADER = "X-Internal-Secret"


@lru_cache(maxsize=1)
def get_reconciliation_service() -> ReconciliationService:
    return ReconciliationService(SessionLocal, ReconciliationConfig.from_settings(settings))


def _verify_internal_secret(request: Request) -> None:
    secret = settings.INTERNAL_API_SECRET
    if not secret:
        logger.error("INTERNAL_API_SECRET nao configurado, endpoint interno bloqueado")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Endpoint interno indisponivel")
    header = request.headers.get(SECRET_HEADER) or ""
    if not hmac.compare_digest(header.encode("utf-8"), secret.encode("utf-8")):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso negado")


@router.post("/run", dependencies=[Depends(_verify_internal_secret)])
def run_reconciliation(
    payload: Optional[ReconcileRequest] = None,
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    try:
        result = service.run(payload or ReconcileRequest(), triggered_by="api")
    except ReconciliationAlreadyRunning as exc:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"message": str(exc), "code": "ALREADY_RUNNING"},
        )
    except Exception:
        logger.exception("Erro interno na reconciliacao")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Ocorreu um erro, tente novamente mais tarde", "code": "RECONCILIATION_FAILED"},
        )
    return result.model_dump(by_alias=True)
