from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

STATUS_PERIODO_PUBLICADA = "PUBLICADA"

ESTADO_SLOT_TRABALHO = "TRABALHO"
ESTADO_SLOT_FOLGA = "FOLGA"


class Equipe(Base):
    __tablename__ = "equipes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Eletricista(Base):
    __tablename__ = "eletricistas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String, nullable=False)
    matricula = Column(String, nullable=True)
    status = Column(String, nullable=False, default="ATIVO")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class EscalaEquipePeriodo(Base):
    __tablename__ = "escala_equipe_periodos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    equipe_id = Column(Integer, ForeignKey("equipes.id"), nullable=False, index=True)
    periodo_inicio = Column(DateTime, nullable=False)
    periodo_fim = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default="RASCUNHO")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    equipe = relationship("Equipe")
    slots = relationship("SlotEscala", back_populates="escala_equipe_periodo", cascade="all, delete-orphan")


class SlotEscala(Base):
    __tablename__ = "slots_escala"

    id = Column(Integer, primary_key=True, autoincrement=True)
    escala_equipe_periodo_id = Column(Integer, ForeignKey("escala_equipe_periodos.id"), nullable=False)
    eletricista_id = Column(Integer, ForeignKey("eletricistas.id"), nullable=False, index=True)
    data = Column(DateTime, nullable=False, index=True)
    estado = Column(String, nullable=False, default=ESTADO_SLOT_TRABALHO)
    inicio_previsto = Column(String, nullable=True)
    fim_previsto = Column(String, nullable=True)

    escala_equipe_periodo = relationship("EscalaEquipePeriodo", back_populates="slots")
    eletricista = relationship("Eletricista")


class TurnoRealizado(Base):
    __tablename__ = "turnos_realizados"

    id = Column(Integer, primary_key=True, autoincrement=True)
    equipe_id = Column(Integer, ForeignKey("equipes.id"), nullable=False, index=True)
    data_referencia = Column(DateTime, nullable=False, index=True)
    aberto_em = Column(DateTime, nullable=False)
    fechado_em = Column(DateTime, nullable=True)

    eletricistas = relationship(
        "TurnoRealizadoEletricista", back_populates="turno_realizado", cascade="all, delete-orphan"
    )


class TurnoRealizadoEletricista(Base):
    __tablename__ = "turnos_realizados_eletricistas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    turno_realizado_id = Column(Integer, ForeignKey("turnos_realizados.id"), nullable=False, index=True)
    eletricista_id = Column(Integer, ForeignKey("eletricistas.id"), nullable=False, index=True)
    aberto_em = Column(DateTime, nullable=False)
    fechado_em = Column(DateTime, nullable=True)

    turno_realizado = relationship("TurnoRealizado", back_populates="eletricistas")
    eletricista = relationship("Eletricista")


class TipoJustificativa(Base):
    __tablename__ = "tipos_justificativa"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String, nullable=False)
    gera_falta = Column(Boolean, nullable=False, default=False)


class JustificativaEquipe(Base):
    __tablename__ = "justificativas_equipe"
    __table_args__ = (UniqueConstraint("data_referencia", "equipe_id", name="uq_justificativa_equipe_dia"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    data_referencia = Column(DateTime, nullable=False)
    equipe_id = Column(Integer, ForeignKey("equipes.id"), nullable=False)
    tipo_justificativa_id = Column(Integer, ForeignKey("tipos_justificativa.id"), nullable=False)
    status = Column(String, nullable=False, default="pendente")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    tipo_justificativa = relationship("TipoJustificativa")


class Falta(Base):
    __tablename__ = "faltas"
    __table_args__ = (
        UniqueConstraint(
            "data_referencia", "equipe_id", "eletricista_id", "motivo_sistema", name="uq_falta_dia_equipe_motivo"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    data_referencia = Column(DateTime, nullable=False)
    equipe_id = Column(Integer, ForeignKey("equipes.id"), nullable=False)
    eletricista_id = Column(Integer, ForeignKey("eletricistas.id"), nullable=False)
    escala_slot_id = Column(Integer, ForeignKey("slots_escala.id"), nullable=True)
    motivo_sistema = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pendente")
    created_by = Column(String, nullable=False, default="system")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class DivergenciaEscala(Base):
    __tablename__ = "divergencias_escala"
    __table_args__ = (
        UniqueConstraint(
            "data_referencia",
            "eletricista_id",
            "equipe_prevista_id",
            "equipe_real_id",
            name="uq_divergencia_dia_eletricista_equipes",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    data_referencia = Column(DateTime, nullable=False)
    equipe_prevista_id = Column(Integer, ForeignKey("equipes.id"), nullable=False)
    equipe_real_id = Column(Integer, ForeignKey("equipes.id"), nullable=False)
    eletricista_id = Column(Integer, ForeignKey("eletricistas.id"), nullable=False)
    tipo = Column(String, nullable=False, default="equipe_divergente")
    detalhe = Column(String, nullable=True)
    created_by = Column(String, nullable=False, default="system")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class HoraExtra(Base):
    __tablename__ = "horas_extras"
    __table_args__ = (
        UniqueConstraint("turno_realizado_eletricista_id", "tipo", name="uq_hora_extra_abertura_tipo"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    data_referencia = Column(DateTime, nullable=False)
    eletricista_id = Column(Integer, ForeignKey("eletricistas.id"), nullable=False)
    turno_realizado_eletricista_id = Column(
        Integer, ForeignKey("turnos_realizados_eletricistas.id"), nullable=False
    )
    escala_slot_id = Column(Integer, ForeignKey("slots_escala.id"), nullable=True)
    tipo = Column(String, nullable=False)
    horas_previstas = Column(Numeric(8, 2), nullable=False, default=0)
    horas_realizadas = Column(Numeric(8, 2), nullable=False)
    diferenca_horas = Column(Numeric(8, 2), nullable=False)
    status = Column(String, nullable=False, default="pendente")
    created_by = Column(String, nullable=False, default="system")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class JobLock(Base):
    __tablename__ = "job_locks"

    job_name = Column(String, primary_key=True)
    locked_by = Column(String, nullable=False)
    locked_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False)
