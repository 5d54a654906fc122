import argparse
import json
import logging

from app.core.config import settings
from app.db import models
from app.db.session import SessionLocal, engine
from app.reconciliacao.schemas import ReconcileRequest
from app.reconciliacao.service import ReconciliationAlreadyRunning, ReconciliationConfig, ReconciliationService


def main() -> None:
    parser = argparse.ArgumentParser(description="Executa a reconciliacao de turnos sob demanda.")
    parser.add_argument("--data", dest="data_referencia", help="YYYY-MM-DD ou ISO datetime (padrao: hoje)")
    parser.add_argument("--equipe", dest="equipe_id", type=int, help="Filtra por equipe")
    parser.add_argument("--dias", dest="intervalo_dias", type=int, default=1, help="Quantidade de dias")
    parser.add_argument("--dry-run", dest="dry_run", action="store_true", help="Nao grava nada")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    models.Base.metadata.create_all(bind=engine)

    params = ReconcileRequest(
        data_referencia=args.data_referencia,
        equipe_id=args.equipe_id,
        intervalo_dias=args.intervalo_dias,
        dry_run=args.dry_run,
    )
    service = ReconciliationService(SessionLocal, ReconciliationConfig.from_settings(settings))
    try:
        result = service.run(params, triggered_by="cli")
    except ReconciliationAlreadyRunning as exc:
        raise SystemExit(f"{exc}. Tente novamente mais tarde.")
    print(json.dumps(result.model_dump(by_alias=True), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
