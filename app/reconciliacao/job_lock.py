"""Named, TTL-bound job lock stored in the ``job_locks`` table.

Acquire is a single ``INSERT ... ON CONFLICT DO UPDATE ... WHERE expires_at < now``
statement, so two processes racing for the same job name can never both win.
An expired row is stale and may be taken over by any caller.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db import models
from app.db.upsert import dialect_insert


logger = logging.getLogger("nexa.reconciliacao.lock")


class JobLockError(Exception):
    pass


def acquire_lock(
    db: Session,
    job_name: str,
    ttl_ms: int,
    locked_by: str,
    now: Optional[datetime] = None,
) -> bool:
    now = now or datetime.utcnow()
    expires_at = now + timedelta(milliseconds=ttl_ms)
    table = models.JobLock.__table__

    stmt = dialect_insert(db, models.JobLock).values(
        job_name=job_name,
        locked_by=locked_by,
        locked_at=now,
        expires_at=expires_at,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.job_name],
        set_={
            "locked_by": stmt.excluded.locked_by,
            "locked_at": stmt.excluded.locked_at,
            "expires_at": stmt.excluded.expires_at,
        },
        where=table.c.expires_at < now,
    )
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Falha ao adquirir lock %s: %s", job_name, exc)
        raise JobLockError(f"Lock {job_name} indisponivel") from exc

    acquired = result.rowcount == 1
    if acquired:
        logger.debug("Lock %s adquirido por %s ate %s", job_name, locked_by, expires_at.isoformat())
    return acquired


def release_lock(db: Session, job_name: str, locked_by: str) -> bool:
    stmt = delete(models.JobLock).where(
        models.JobLock.job_name == job_name,
        models.JobLock.locked_by == locked_by,
    )
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    released = result.rowcount == 1
    if not released:
        logger.warning("Lock %s nao pertence mais a %s, nada liberado", job_name, locked_by)
    return released


def get_lock(db: Session, job_name: str) -> Optional[models.JobLock]:
    return db.query(models.JobLock).filter(models.JobLock.job_name == job_name).first()
