import logging
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from app.reconciliacao import writer
from app.reconciliacao.repository import PlannedSlot, ShiftOpening, team_justification_suppresses
from app.reconciliacao.writer import DayContext


logger = logging.getLogger("nexa.reconciliacao")

# electrician statuses that already explain a missing shift
STATUS_JUSTIFICA_FALTA = {
    "FERIAS",
    "LICENCA_MEDICA",
    "LICENCA_MATERNIDADE",
    "LICENCA_PATERNIDADE",
    "SUSPENSAO",
    "TREINAMENTO",
    "AFASTADO",
    "DESLIGADO",
    "APOSENTADO",
}

_HOURS_SCALE = Decimal("0.01")


def group_openings_by_electrician(openings: Iterable[ShiftOpening]) -> dict[int, list[ShiftOpening]]:
    grouped: dict[int, list[ShiftOpening]] = {}
    for abertura in openings:
        grouped.setdefault(abertura.eletricista_id, []).append(abertura)
    return grouped


def worked_hours(aberto_em: datetime, fechado_em: Optional[datetime]) -> Optional[Decimal]:
    if fechado_em is None:
        return None
    seconds = (fechado_em - aberto_em).total_seconds()
    return (Decimal(str(seconds)) / Decimal(3600)).quantize(_HOURS_SCALE, rounding=ROUND_HALF_UP)


def _expected_start_passed(ctx: DayContext, slot: PlannedSlot) -> bool:
    if not slot.inicio_previsto:
        return True
    try:
        hora, minuto = (int(part) for part in slot.inicio_previsto.split(":")[:2])
    except ValueError:
        return True
    limite = ctx.day.start + timedelta(hours=hora, minutes=minuto + ctx.grace_minutes)
    return ctx.now >= limite


def _justification_suppresses(ctx: DayContext, equipe_id: int) -> bool:
    if equipe_id not in ctx.justificativas:
        ctx.justificativas[equipe_id] = team_justification_suppresses(ctx.db, ctx.day, equipe_id)
    return ctx.justificativas[equipe_id]


def _register_overtime(
    ctx: DayContext,
    eletricista_id: int,
    abertura: ShiftOpening,
    tipo: str,
    escala_slot_id: Optional[int] = None,
) -> None:
    horas = worked_hours(abertura.aberto_em, abertura.fechado_em)
    if horas is None:
        logger.debug(
            "[%s] Abertura %s ainda sem fechamento, hora extra %s adiada", ctx.run_id, abertura.id, tipo
        )
        ctx.stats.skipped += 1
        return
    writer.register_hora_extra(ctx, eletricista_id, abertura, tipo, horas, escala_slot_id)


def process_slot(ctx: DayContext, slot: PlannedSlot, openings_by_electrician: dict[int, list[ShiftOpening]]) -> None:
    aberturas = openings_by_electrician.get(slot.eletricista_id, [])

    if slot.is_folga:
        if aberturas:
            abertura = next((a for a in aberturas if a.equipe_id == slot.equipe_id), aberturas[0])
            logger.debug(
                "[%s] Folga trabalhada (eletricista %s, abertura %s)", ctx.run_id, slot.eletricista_id, abertura.id
            )
            _register_overtime(ctx, slot.eletricista_id, abertura, writer.TIPO_HE_FOLGA_TRABALHADA, slot.id)
        return

    if any(a.equipe_id == slot.equipe_id for a in aberturas):
        return

    if aberturas:
        writer.register_divergencia(ctx, slot, aberturas[0].equipe_id)
        return

    if _justification_suppresses(ctx, slot.equipe_id):
        logger.debug(
            "[%s] Justificativa aprovada sem falta para equipe %s no dia %s", ctx.run_id, slot.equipe_id, ctx.label
        )
        ctx.stats.skipped += 1
        return

    if slot.eletricista_status in STATUS_JUSTIFICA_FALTA:
        logger.debug(
            "[%s] Status %s do eletricista %s justifica ausencia",
            ctx.run_id,
            slot.eletricista_status,
            slot.eletricista_id,
        )
        ctx.stats.skipped += 1
        return

    if not _expected_start_passed(ctx, slot):
        logger.debug(
            "[%s] Slot %s ainda dentro da tolerancia de %s min", ctx.run_id, slot.id, ctx.grace_minutes
        )
        ctx.stats.skipped += 1
        return

    writer.register_falta(ctx, slot)


def process_extrafora(
    ctx: DayContext,
    openings_by_electrician: dict[int, list[ShiftOpening]],
    planned_electrician_ids: set[int],
) -> None:
    for eletricista_id, aberturas in openings_by_electrician.items():
        if eletricista_id in planned_electrician_ids:
            continue
        for abertura in aberturas:
            _register_overtime(ctx, eletricista_id, abertura, writer.TIPO_HE_EXTRAFORA)
