"""Shift reconciliation runs.

Compares the published roster with the shifts actually opened and derives
absences, schedule divergences and overtime, one business day at a time,
under the ``reconciliacao_turnos`` job lock.
"""

import logging
import os
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.timezone import date_label, day_range, parse_date_input
from app.reconciliacao.job_lock import JobLockError, acquire_lock, release_lock
from app.reconciliacao.processor import group_openings_by_electrician, process_extrafora, process_slot
from app.reconciliacao.repository import fetch_day_batch
from app.reconciliacao.schemas import ReconcileRequest, ReconcileResponse, ReconcileStats
from app.reconciliacao.writer import DayContext


logger = logging.getLogger("nexa.reconciliacao")

JOB_NAME = "reconciliacao_turnos"
AUDIT_LOG_FILE = "reconciliacao.log"


class ReconciliationAlreadyRunning(Exception):
    pass


@dataclass
class ReconciliationConfig:
    job_name: str = JOB_NAME
    lock_ttl_ms: int = 15 * 60 * 1000
    log_dir: str = "logs"
    absence_grace_minutes: int = 30
    host_id: str = "unknown"

    @classmethod
    def from_settings(cls, settings) -> "ReconciliationConfig":
        return cls(
            lock_ttl_ms=settings.RECONCILE_LOCK_TTL_MS,
            log_dir=settings.RECONCILIACAO_LOG_DIR,
            absence_grace_minutes=settings.RECONCILIACAO_TOLERANCIA_MINUTOS,
            host_id=settings.HOSTNAME,
        )


def _final_status(error: Optional[BaseException], stats: ReconcileStats, warnings: list[str]) -> str:
    if error is not None:
        return "ERROR"
    if warnings:
        return "WARNING"
    if stats.created > 0:
        return "SUCCESS_CHANGES"
    return "SUCCESS"


class ReconciliationService:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        config: Optional[ReconciliationConfig] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.session_factory = session_factory
        self.config = config or ReconciliationConfig()
        self.clock = clock

    def run(self, params: ReconcileRequest, triggered_by: str = "manual") -> ReconcileResponse:
        run_id = f"run-{int(time.time() * 1000)}-{secrets.token_hex(4)}"
        started_at = self.clock()
        locked_by = f"{self.config.host_id}-{os.getpid()}-{run_id}"

        logger.info(
            "[%s] Iniciando reconciliacao - triggeredBy: %s, params: %s",
            run_id,
            triggered_by,
            params.model_dump_json(by_alias=True),
        )

        stats = ReconcileStats()
        warnings: list[str] = []
        try:
            with self.session_factory() as db:
                acquired = acquire_lock(db, self.config.job_name, self.config.lock_ttl_ms, locked_by)
        except JobLockError as exc:
            self._write_audit_log(run_id, triggered_by, stats, warnings, started_at, exc)
            raise
        if not acquired:
            logger.warning("[%s] Lock nao adquirido - reconciliacao ja em execucao", run_id)
            raise ReconciliationAlreadyRunning("Reconciliacao ja esta em execucao")
        logger.info("[%s] Lock adquirido", run_id)

        error: Optional[BaseException] = None
        try:
            self._execute(params, run_id, stats, warnings)
            finished_at = self.clock()
            duration_ms = int((finished_at - started_at).total_seconds() * 1000)
            logger.info(
                "[%s] Reconciliacao concluida - stats: %s, duration: %sms",
                run_id,
                stats.model_dump_json(),
                duration_ms,
            )
            return ReconcileResponse(
                success=True,
                run_id=run_id,
                started_at=started_at.isoformat(),
                finished_at=finished_at.isoformat(),
                duration_ms=duration_ms,
                stats=stats,
                warnings=warnings,
            )
        except Exception as exc:
            error = exc
            logger.exception("[%s] Erro na reconciliacao", run_id)
            raise
        finally:
            self._write_audit_log(run_id, triggered_by, stats, warnings, started_at, error)
            self._release(run_id, locked_by)

    def _release(self, run_id: str, locked_by: str) -> None:
        try:
            with self.session_factory() as db:
                release_lock(db, self.config.job_name, locked_by)
        except SQLAlchemyError:
            logger.exception("[%s] Falha ao liberar lock, expira pelo TTL", run_id)
            return
        logger.info("[%s] Lock liberado", run_id)

    def _execute(
        self,
        params: ReconcileRequest,
        run_id: str,
        stats: ReconcileStats,
        warnings: list[str],
    ) -> None:
        base = parse_date_input(params.data_referencia) if params.data_referencia else self.clock()
        inicio = day_range(base).start

        logger.info(
            "[%s] Executando reconciliacao: DataInicio=%s, Dias=%s, Equipe=%s, DryRun=%s",
            run_id,
            date_label(inicio),
            params.intervalo_dias,
            params.equipe_id or "TODAS",
            params.dry_run,
        )

        for offset in range(params.intervalo_dias):
            dia = inicio + timedelta(days=offset)
            self._reconcile_day(dia, params.equipe_id, params.dry_run, run_id, stats, warnings)

    def _reconcile_day(
        self,
        dia: datetime,
        equipe_id: Optional[int],
        dry_run: bool,
        run_id: str,
        stats: ReconcileStats,
        warnings: list[str],
    ) -> None:
        day = day_range(dia)
        label = date_label(day.start)
        logger.debug("[%s] Processando dia %s (Equipe: %s)", run_id, label, equipe_id or "Todas")

        if dry_run:
            logger.info("[%s] DRY RUN - Dia %s ignorado.", run_id, label)
            return

        try:
            batch = fetch_day_batch(self.session_factory, day, equipe_id)
            openings_by_electrician = group_openings_by_electrician(batch.openings)

            candidates = batch.openings
            if equipe_id:
                candidates = [a for a in batch.openings if a.equipe_id == equipe_id]

            with self.session_factory() as db:
                ctx = DayContext(
                    db=db,
                    day=day,
                    run_id=run_id,
                    stats=stats,
                    warnings=warnings,
                    now=self.clock(),
                    grace_minutes=self.config.absence_grace_minutes,
                )
                for slot in batch.slots:
                    process_slot(ctx, slot, openings_by_electrician)
                process_extrafora(ctx, group_openings_by_electrician(candidates), batch.planned_electrician_ids)

            logger.info(
                "[%s] Dia %s concluido. Slots: %s, AberturasScan: %s.",
                run_id,
                label,
                len(batch.slots),
                len(candidates),
            )
        except Exception as exc:
            warnings.append(f"Erro critico no dia {label}: {exc}")
            logger.exception("[%s] Erro ao processar dia %s", run_id, label)

    def _write_audit_log(
        self,
        run_id: str,
        triggered_by: str,
        stats: ReconcileStats,
        warnings: list[str],
        started_at: datetime,
        error: Optional[BaseException],
    ) -> None:
        now = self.clock()
        duration_ms = int((now - started_at).total_seconds() * 1000)
        separator = "=" * 80
        lines = [
            "",
            separator,
            f"[{now.isoformat()}] RECONCILIACAO FINISHED",
            f"RunID: {run_id}",
            f"Trigger: {triggered_by}",
            f"Status: {_final_status(error, stats, warnings)}",
            f"Duration: {duration_ms}ms",
            f"Stats: Created={stats.created}, Updated={stats.updated}, "
            f"Closed={stats.closed}, Skipped={stats.skipped}",
            f"Error: {error if error is not None else 'None'}",
            "Warnings: " + ("\n" + "\n".join(f" - {w}" for w in warnings) if warnings else "None"),
            separator,
            "",
        ]
        entry = "\n".join(lines)
        try:
            log_dir = Path(self.config.log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            with (log_dir / AUDIT_LOG_FILE).open("a", encoding="utf-8") as handle:
                handle.write(entry)
        except OSError as exc:
            logger.warning("Falha ao salvar arquivo de log de reconciliacao: %s", exc)
