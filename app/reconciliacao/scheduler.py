import logging
from datetime import timedelta
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.core.timezone import business_today, date_label
from app.reconciliacao.schemas import ReconcileRequest, ReconcileResponse
from app.reconciliacao.service import ReconciliationAlreadyRunning, ReconciliationService


logger = logging.getLogger("nexa.reconciliacao.scheduler")

CRON_JOB_ID = "reconciliacao-turnos-diaria"


def build_cron_params(dias_historico: int, now=None) -> ReconcileRequest:
    """Window of ``dias_historico`` days ending on the current business day."""
    dias = max(dias_historico, 1)
    inicio = business_today(now) - timedelta(days=dias - 1)
    return ReconcileRequest(data_referencia=date_label(inicio), intervalo_dias=dias, dry_run=False)


def run_scheduled_reconciliation(
    service: ReconciliationService, dias_historico: int
) -> Optional[ReconcileResponse]:
    params = build_cron_params(dias_historico)
    try:
        result = service.run(params, triggered_by="cron")
    except ReconciliationAlreadyRunning:
        logger.debug("Reconciliacao agendada ignorada: outra instancia ja esta executando")
        return None
    except Exception:
        logger.exception("Erro critico na reconciliacao agendada")
        return None

    logger.info(
        "Reconciliacao agendada %s concluida em %sms: %s criados, %s avisos",
        result.run_id,
        result.duration_ms,
        result.stats.created,
        len(result.warnings),
    )
    return result


def build_scheduler(service: ReconciliationService, settings) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone=settings.BUSINESS_TIMEZONE)
    scheduler.add_job(
        run_scheduled_reconciliation,
        CronTrigger.from_crontab(settings.RECONCILIACAO_CRON, timezone=settings.BUSINESS_TIMEZONE),
        args=[service, settings.RECONCILIACAO_DIAS_HISTORICO],
        id=CRON_JOB_ID,
        name=CRON_JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    logger.info(
        "Reconciliacao agendada com cron '%s' (%s), janela de %s dias",
        settings.RECONCILIACAO_CRON,
        settings.BUSINESS_TIMEZONE,
        settings.RECONCILIACAO_DIAS_HISTORICO,
    )
    return scheduler
