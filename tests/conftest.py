from datetime import datetime, timedelta
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.timezone import parse_date_input, to_db_datetime
from app.db import models
from app.reconciliacao.service import ReconciliationConfig, ReconciliationService

DIA = "2025-03-10"


def local_datetime(dia: str, hhmm: str) -> datetime:
    hora, minuto = (int(part) for part in hhmm.split(":"))
    return to_db_datetime(parse_date_input(dia) + timedelta(hours=hora, minutes=minuto))


class Roster:
    def __init__(self, db):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def equipe(self, nome: str = "Equipe") -> models.Equipe:
        return self._save(models.Equipe(nome=nome))

    def eletricista(self, nome: str = "Eletricista", status: str = "ATIVO") -> models.Eletricista:
        return self._save(models.Eletricista(nome=nome, matricula=nome.upper(), status=status))

    def periodo(self, equipe: models.Equipe, status: str = "PUBLICADA") -> models.EscalaEquipePeriodo:
        return self._save(
            models.EscalaEquipePeriodo(
                equipe_id=equipe.id,
                periodo_inicio=local_datetime("2025-03-01", "00:00"),
                periodo_fim=local_datetime("2025-03-31", "00:00"),
                status=status,
            )
        )

    def slot(
        self,
        periodo: models.EscalaEquipePeriodo,
        eletricista: models.Eletricista,
        dia: str = DIA,
        estado: str = "TRABALHO",
        inicio_previsto: Optional[str] = None,
    ) -> models.SlotEscala:
        return self._save(
            models.SlotEscala(
                escala_equipe_periodo_id=periodo.id,
                eletricista_id=eletricista.id,
                data=local_datetime(dia, "00:00"),
                estado=estado,
                inicio_previsto=inicio_previsto,
            )
        )

    def abertura(
        self,
        equipe: models.Equipe,
        eletricista: models.Eletricista,
        aberto: str = "08:00",
        fechado: Optional[str] = "17:00",
        dia: str = DIA,
    ) -> models.TurnoRealizadoEletricista:
        aberto_em = local_datetime(dia, aberto)
        fechado_em = local_datetime(dia, fechado) if fechado else None
        turno = self._save(
            models.TurnoRealizado(
                equipe_id=equipe.id,
                data_referencia=local_datetime(dia, "00:00"),
                aberto_em=aberto_em,
                fechado_em=fechado_em,
            )
        )
        return self._save(
            models.TurnoRealizadoEletricista(
                turno_realizado_id=turno.id,
                eletricista_id=eletricista.id,
                aberto_em=aberto_em,
                fechado_em=fechado_em,
            )
        )

    def justificativa(self, equipe: models.Equipe, gera_falta: bool, status: str = "aprovada", dia: str = DIA):
        tipo = self._save(models.TipoJustificativa(nome="Chuva forte", gera_falta=gera_falta))
        return self._save(
            models.JustificativaEquipe(
                data_referencia=local_datetime(dia, "00:00"),
                equipe_id=equipe.id,
                tipo_justificativa_id=tipo.id,
                status=status,
            )
        )


@pytest.fixture()
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{(tmp_path / 'reconciliacao.db').as_posix()}",
        connect_args={"check_same_thread": False},
    )
    models.Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield SessionLocal
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture()
def roster(db_session):
    return Roster(db_session)


@pytest.fixture()
def service(session_factory, tmp_path):
    config = ReconciliationConfig(log_dir=str(tmp_path / "logs"), host_id="test-host")
    return ReconciliationService(session_factory, config)
