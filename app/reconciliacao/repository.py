import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session, joinedload

from app.core.timezone import DayRange, to_db_datetime
from app.db import models


logger = logging.getLogger("nexa.reconciliacao")


@dataclass(frozen=True)
class PlannedSlot:
    id: int
    data: datetime
    eletricista_id: int
    eletricista_status: str
    equipe_id: int
    periodo_status: str
    estado: str
    inicio_previsto: Optional[str] = None
    fim_previsto: Optional[str] = None

    @property
    def is_folga(self) -> bool:
        return self.estado == models.ESTADO_SLOT_FOLGA


@dataclass(frozen=True)
class ShiftOpening:
    id: int
    eletricista_id: int
    equipe_id: int
    aberto_em: datetime
    fechado_em: Optional[datetime]


@dataclass
class DayBatch:
    slots: list[PlannedSlot] = field(default_factory=list)
    planned_electrician_ids: set[int] = field(default_factory=set)
    openings: list[ShiftOpening] = field(default_factory=list)


def _bounds(day: DayRange) -> tuple[datetime, datetime]:
    return to_db_datetime(day.start), to_db_datetime(day.end)


def fetch_planned_slots(db: Session, day: DayRange, equipe_id: Optional[int] = None) -> list[PlannedSlot]:
    inicio, fim = _bounds(day)
    query = (
        db.query(models.SlotEscala)
        .join(models.SlotEscala.escala_equipe_periodo)
        .options(
            joinedload(models.SlotEscala.eletricista),
            joinedload(models.SlotEscala.escala_equipe_periodo),
        )
        .filter(models.SlotEscala.data >= inicio, models.SlotEscala.data <= fim)
    )
    if equipe_id:
        query = query.filter(models.EscalaEquipePeriodo.equipe_id == equipe_id)
    else:
        # global runs never touch draft rosters
        query = query.filter(models.EscalaEquipePeriodo.status == models.STATUS_PERIODO_PUBLICADA)

    slots = []
    for row in query.order_by(models.SlotEscala.id).all():
        slots.append(
            PlannedSlot(
                id=row.id,
                data=row.data,
                eletricista_id=row.eletricista_id,
                eletricista_status=(row.eletricista.status if row.eletricista else None) or "ATIVO",
                equipe_id=row.escala_equipe_periodo.equipe_id,
                periodo_status=row.escala_equipe_periodo.status,
                estado=row.estado,
                inicio_previsto=row.inicio_previsto,
                fim_previsto=row.fim_previsto,
            )
        )
    return slots


def fetch_planned_electrician_ids(db: Session, day: DayRange) -> set[int]:
    inicio, fim = _bounds(day)
    rows = (
        db.query(models.SlotEscala.eletricista_id)
        .join(models.SlotEscala.escala_equipe_periodo)
        .filter(
            models.SlotEscala.data >= inicio,
            models.SlotEscala.data <= fim,
            models.EscalaEquipePeriodo.status == models.STATUS_PERIODO_PUBLICADA,
        )
        .distinct()
        .all()
    )
    return {row[0] for row in rows}


def fetch_shift_openings(db: Session, day: DayRange) -> list[ShiftOpening]:
    inicio, fim = _bounds(day)
    rows = (
        db.query(models.TurnoRealizadoEletricista, models.TurnoRealizado.equipe_id)
        .join(models.TurnoRealizadoEletricista.turno_realizado)
        .filter(
            models.TurnoRealizado.data_referencia >= inicio,
            models.TurnoRealizado.data_referencia <= fim,
        )
        .order_by(models.TurnoRealizadoEletricista.id)
        .all()
    )
    return [
        ShiftOpening(
            id=abertura.id,
            eletricista_id=abertura.eletricista_id,
            equipe_id=equipe_id,
            aberto_em=abertura.aberto_em,
            fechado_em=abertura.fechado_em,
        )
        for abertura, equipe_id in rows
    ]


def _with_session(session_factory: Callable[[], Session], fn, *args):
    db = session_factory()
    try:
        return fn(db, *args)
    finally:
        db.close()


def fetch_day_batch(
    session_factory: Callable[[], Session],
    day: DayRange,
    equipe_id: Optional[int] = None,
) -> DayBatch:
    """Loads everything one day needs with three concurrent queries."""
    with ThreadPoolExecutor(max_workers=3, thread_name_prefix="reconciliacao-batch") as pool:
        slots_future = pool.submit(_with_session, session_factory, fetch_planned_slots, day, equipe_id)
        planned_future = pool.submit(_with_session, session_factory, fetch_planned_electrician_ids, day)
        openings_future = pool.submit(_with_session, session_factory, fetch_shift_openings, day)
        return DayBatch(
            slots=slots_future.result(),
            planned_electrician_ids=planned_future.result(),
            openings=openings_future.result(),
        )


def team_justification_suppresses(db: Session, day: DayRange, equipe_id: int) -> bool:
    inicio, fim = _bounds(day)
    justificativa = (
        db.query(models.JustificativaEquipe)
        .options(joinedload(models.JustificativaEquipe.tipo_justificativa))
        .filter(
            models.JustificativaEquipe.equipe_id == equipe_id,
            models.JustificativaEquipe.data_referencia >= inicio,
            models.JustificativaEquipe.data_referencia <= fim,
            models.JustificativaEquipe.status == "aprovada",
        )
        .first()
    )
    if not justificativa:
        return False
    return not justificativa.tipo_justificativa.gera_falta
