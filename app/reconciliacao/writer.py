"""Idempotent writes of the records derived by reconciliation.

Every record is one ``INSERT ... ON CONFLICT DO NOTHING`` keyed by its natural
unique tuple and committed on its own, so re-running a day only counts skips.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.timezone import DayRange, date_label, to_db_datetime
from app.db import models
from app.db.upsert import dialect_insert, is_unique_violation
from app.reconciliacao.schemas import ReconcileStats


logger = logging.getLogger("nexa.reconciliacao")

MOTIVO_FALTA_ABERTURA = "falta_abertura"
TIPO_DIVERGENCIA_EQUIPE = "equipe_divergente"
TIPO_HE_FOLGA_TRABALHADA = "folga_trabalhada"
TIPO_HE_EXTRAFORA = "extrafora"
CREATED_BY_SYSTEM = "system"


@dataclass
class DayContext:
    db: Session
    day: DayRange
    run_id: str
    stats: ReconcileStats
    warnings: list[str]
    now: datetime
    grace_minutes: int = 30
    justificativas: dict[int, bool] = field(default_factory=dict)

    @property
    def data_referencia(self) -> datetime:
        return to_db_datetime(self.day.start)

    @property
    def label(self) -> str:
        return date_label(self.day.start)


def _warn(ctx: DayContext, prefix: str, exc: Exception) -> None:
    message = f"{prefix}: {exc}"
    ctx.warnings.append(message)
    logger.warning("[%s] %s", ctx.run_id, message)


def _insert_ignore(ctx: DayContext, model, values: dict, conflict_columns: list[str], prefix: str) -> bool:
    stmt = dialect_insert(ctx.db, model).values(**values).on_conflict_do_nothing(index_elements=conflict_columns)
    try:
        result = ctx.db.execute(stmt)
        ctx.db.commit()
    except IntegrityError as exc:
        ctx.db.rollback()
        if is_unique_violation(exc):
            ctx.stats.skipped += 1
        else:
            _warn(ctx, prefix, exc)
        return False
    except SQLAlchemyError as exc:
        ctx.db.rollback()
        _warn(ctx, prefix, exc)
        return False

    if result.rowcount == 1:
        ctx.stats.created += 1
        return True
    ctx.stats.skipped += 1
    return False


def register_falta(ctx: DayContext, slot) -> bool:
    created = _insert_ignore(
        ctx,
        models.Falta,
        {
            "data_referencia": ctx.data_referencia,
            "equipe_id": slot.equipe_id,
            "eletricista_id": slot.eletricista_id,
            "escala_slot_id": slot.id,
            "motivo_sistema": MOTIVO_FALTA_ABERTURA,
            "status": "pendente",
            "created_by": CREATED_BY_SYSTEM,
            "created_at": datetime.utcnow(),
        },
        ["data_referencia", "equipe_id", "eletricista_id", "motivo_sistema"],
        f"Erro falta eletricista {slot.eletricista_id}",
    )
    if created:
        logger.info(
            "[%s] Falta registrada (eletricista %s, equipe %s, dia %s)",
            ctx.run_id,
            slot.eletricista_id,
            slot.equipe_id,
            ctx.label,
        )
    return created


def register_divergencia(ctx: DayContext, slot, equipe_real_id: int) -> bool:
    created = _insert_ignore(
        ctx,
        models.DivergenciaEscala,
        {
            "data_referencia": ctx.data_referencia,
            "equipe_prevista_id": slot.equipe_id,
            "equipe_real_id": equipe_real_id,
            "eletricista_id": slot.eletricista_id,
            "tipo": TIPO_DIVERGENCIA_EQUIPE,
            "created_by": CREATED_BY_SYSTEM,
            "created_at": datetime.utcnow(),
        },
        ["data_referencia", "eletricista_id", "equipe_prevista_id", "equipe_real_id"],
        f"Erro divergencia eletricista {slot.eletricista_id}",
    )
    if created:
        logger.info(
            "[%s] Divergencia: previsto equipe %s, abriu na equipe %s (eletricista %s)",
            ctx.run_id,
            slot.equipe_id,
            equipe_real_id,
            slot.eletricista_id,
        )
    return created


def register_hora_extra(
    ctx: DayContext,
    eletricista_id: int,
    abertura,
    tipo: str,
    horas: Decimal,
    escala_slot_id: Optional[int] = None,
) -> bool:
    created = _insert_ignore(
        ctx,
        models.HoraExtra,
        {
            "data_referencia": ctx.data_referencia,
            "eletricista_id": eletricista_id,
            "turno_realizado_eletricista_id": abertura.id,
            "escala_slot_id": escala_slot_id,
            "tipo": tipo,
            "horas_previstas": Decimal("0"),
            "horas_realizadas": horas,
            "diferenca_horas": horas,
            "status": "pendente",
            "created_by": CREATED_BY_SYSTEM,
            "created_at": datetime.utcnow(),
        },
        ["turno_realizado_eletricista_id", "tipo"],
        f"Erro hora extra {tipo} abertura {abertura.id}",
    )
    if created:
        logger.info(
            "[%s] Hora extra %s registrada (eletricista %s, abertura %s, %sh)",
            ctx.run_id,
            tipo,
            eletricista_id,
            abertura.id,
            horas,
        )
    return created
