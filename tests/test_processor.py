from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.core.timezone import day_range, parse_date_input
from app.db import models
from app.reconciliacao.processor import (
    group_openings_by_electrician,
    process_extrafora,
    process_slot,
    worked_hours,
)
from app.reconciliacao.repository import (
    fetch_day_batch,
    fetch_planned_electrician_ids,
    fetch_planned_slots,
    fetch_shift_openings,
)
from app.reconciliacao.schemas import ReconcileStats
from app.reconciliacao.writer import DayContext

DIA = "2025-03-10"


def _ctx(db, now=None):
    return DayContext(
        db=db,
        day=day_range(parse_date_input(DIA)),
        run_id="run-test",
        stats=ReconcileStats(),
        warnings=[],
        now=now or datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def _process_day(ctx, session_factory, equipe_id=None):
    batch = fetch_day_batch(session_factory, ctx.day, equipe_id)
    grouped = group_openings_by_electrician(batch.openings)
    for slot in batch.slots:
        process_slot(ctx, slot, grouped)
    process_extrafora(ctx, grouped, batch.planned_electrician_ids)
    return batch


def test_worked_hours():
    assert worked_hours(datetime(2025, 3, 10, 11, 0), datetime(2025, 3, 10, 14, 30)) == Decimal("3.50")
    assert worked_hours(datetime(2025, 3, 10, 11, 0), datetime(2025, 3, 10, 11, 20)) == Decimal("0.33")
    assert worked_hours(datetime(2025, 3, 10, 11, 0), None) is None


def test_fetch_slots_respects_publication_and_team_filter(db_session, roster):
    t1, t2 = roster.equipe("T1"), roster.equipe("T2")
    e1, e2 = roster.eletricista("E1"), roster.eletricista("E2")
    roster.slot(roster.periodo(t1), e1)
    roster.slot(roster.periodo(t2, status="RASCUNHO"), e2)
    day = day_range(parse_date_input(DIA))

    global_slots = fetch_planned_slots(db_session, day)
    assert [s.eletricista_id for s in global_slots] == [e1.id]
    assert global_slots[0].equipe_id == t1.id

    team_slots = fetch_planned_slots(db_session, day, equipe_id=t2.id)
    assert [s.eletricista_id for s in team_slots] == [e2.id]
    assert fetch_planned_electrician_ids(db_session, day) == {e1.id}


def test_fetch_scoped_to_business_day(db_session, roster):
    t1 = roster.equipe("T1")
    e1 = roster.eletricista("E1")
    periodo = roster.periodo(t1)
    roster.slot(periodo, e1, dia="2025-03-11")
    roster.abertura(t1, e1, dia="2025-03-11")
    day = day_range(parse_date_input(DIA))

    assert fetch_planned_slots(db_session, day) == []
    assert fetch_shift_openings(db_session, day) == []


def test_divergence_when_opened_under_other_team(db_session, session_factory, roster):
    t1, t2 = roster.equipe("T1"), roster.equipe("T2")
    e1 = roster.eletricista("E1")
    roster.slot(roster.periodo(t1), e1)
    roster.abertura(t2, e1)
    ctx = _ctx(db_session)

    _process_day(ctx, session_factory)
    _process_day(ctx, session_factory)

    divergencias = db_session.query(models.DivergenciaEscala).all()
    assert len(divergencias) == 1
    assert divergencias[0].equipe_prevista_id == t1.id
    assert divergencias[0].equipe_real_id == t2.id
    assert divergencias[0].tipo == "equipe_divergente"
    assert db_session.query(models.Falta).count() == 0
    assert ctx.stats.created == 1
    assert ctx.stats.skipped == 1


@pytest.mark.parametrize("gera_falta, faltas_esperadas", [(False, 0), (True, 1)])
def test_team_justification_and_absence(db_session, session_factory, roster, gera_falta, faltas_esperadas):
    t1 = roster.equipe("T1")
    e1 = roster.eletricista("E1")
    roster.slot(roster.periodo(t1), e1)
    roster.justificativa(t1, gera_falta=gera_falta)
    ctx = _ctx(db_session)

    _process_day(ctx, session_factory)

    assert db_session.query(models.Falta).count() == faltas_esperadas


def test_pending_justification_does_not_suppress(db_session, session_factory, roster):
    t1 = roster.equipe("T1")
    e1 = roster.eletricista("E1")
    roster.slot(roster.periodo(t1), e1)
    roster.justificativa(t1, gera_falta=False, status="pendente")
    ctx = _ctx(db_session)

    _process_day(ctx, session_factory)

    falta = db_session.query(models.Falta).one()
    assert falta.motivo_sistema == "falta_abertura"
    assert falta.status == "pendente"
    assert falta.created_by == "system"


def test_electrician_on_vacation_has_no_absence(db_session, session_factory, roster):
    t1 = roster.equipe("T1")
    e1 = roster.eletricista("E1", status="FERIAS")
    roster.slot(roster.periodo(t1), e1)
    ctx = _ctx(db_session)

    _process_day(ctx, session_factory)

    assert db_session.query(models.Falta).count() == 0
    assert ctx.stats.skipped == 1


def test_absence_waits_for_grace_period(db_session, session_factory, roster):
    t1 = roster.equipe("T1")
    e1 = roster.eletricista("E1")
    roster.slot(roster.periodo(t1), e1, inicio_previsto="08:00")

    # 08:20 local, still inside the 30 minute tolerance
    ctx = _ctx(db_session, now=datetime(2025, 3, 10, 11, 20, tzinfo=timezone.utc))
    _process_day(ctx, session_factory)
    assert db_session.query(models.Falta).count() == 0

    ctx = _ctx(db_session, now=datetime(2025, 3, 10, 11, 31, tzinfo=timezone.utc))
    _process_day(ctx, session_factory)
    assert db_session.query(models.Falta).count() == 1


def test_day_off_worked_creates_overtime(db_session, session_factory, roster):
    t1 = roster.equipe("T1")
    e2 = roster.eletricista("E2")
    slot = roster.slot(roster.periodo(t1), e2, estado="FOLGA")
    abertura = roster.abertura(t1, e2, aberto="08:00", fechado="11:30")
    ctx = _ctx(db_session)

    _process_day(ctx, session_factory)

    hora_extra = db_session.query(models.HoraExtra).one()
    assert hora_extra.tipo == "folga_trabalhada"
    assert hora_extra.turno_realizado_eletricista_id == abertura.id
    assert hora_extra.escala_slot_id == slot.id
    assert hora_extra.horas_previstas == Decimal("0")
    assert hora_extra.horas_realizadas == Decimal("3.50")
    assert hora_extra.diferenca_horas == Decimal("3.50")


def test_open_shift_is_not_reconciled_as_overtime(db_session, session_factory, roster):
    t1 = roster.equipe("T1")
    e2 = roster.eletricista("E2")
    roster.slot(roster.periodo(t1), e2, estado="FOLGA")
    roster.abertura(t1, e2, aberto="08:00", fechado=None)
    ctx = _ctx(db_session)

    _process_day(ctx, session_factory)

    assert db_session.query(models.HoraExtra).count() == 0
    assert ctx.stats.skipped == 1


def test_unplanned_opening_is_extrafora(db_session, session_factory, roster):
    t1 = roster.equipe("T1")
    e1, e4 = roster.eletricista("E1"), roster.eletricista("E4")
    roster.slot(roster.periodo(t1), e1)
    roster.abertura(t1, e1)
    abertura = roster.abertura(t1, e4, aberto="13:00", fechado="15:00")
    ctx = _ctx(db_session)

    _process_day(ctx, session_factory)
    _process_day(ctx, session_factory)

    hora_extra = db_session.query(models.HoraExtra).one()
    assert hora_extra.tipo == "extrafora"
    assert hora_extra.eletricista_id == e4.id
    assert hora_extra.turno_realizado_eletricista_id == abertura.id
    assert hora_extra.escala_slot_id is None
    assert hora_extra.horas_realizadas == Decimal("2.00")


def test_unexpected_write_error_becomes_warning(db_session, session_factory, roster):
    t1 = roster.equipe("T1")
    e1 = roster.eletricista("E1")
    roster.slot(roster.periodo(t1), e1)
    ctx = _ctx(db_session)
    batch = fetch_day_batch(session_factory, ctx.day)
    slot = batch.slots[0]
    broken = replace(slot, equipe_id=None)

    process_slot(ctx, broken, {})

    assert ctx.stats.created == 0
    assert len(ctx.warnings) == 1
    assert ctx.warnings[0].startswith(f"Erro falta eletricista {e1.id}")
