"""reconciliacao de turnos

Revision ID: 0001_reconciliacao
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_reconciliacao"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "equipes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nome", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "eletricistas",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nome", sa.String(), nullable=False),
        sa.Column("matricula", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="ATIVO"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "escala_equipe_periodos",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("equipe_id", sa.Integer(), sa.ForeignKey("equipes.id"), nullable=False),
        sa.Column("periodo_inicio", sa.DateTime(), nullable=False),
        sa.Column("periodo_fim", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="RASCUNHO"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_escala_equipe_periodos_equipe_id", "escala_equipe_periodos", ["equipe_id"])

    op.create_table(
        "slots_escala",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "escala_equipe_periodo_id", sa.Integer(), sa.ForeignKey("escala_equipe_periodos.id"), nullable=False
        ),
        sa.Column("eletricista_id", sa.Integer(), sa.ForeignKey("eletricistas.id"), nullable=False),
        sa.Column("data", sa.DateTime(), nullable=False),
        sa.Column("estado", sa.String(), nullable=False, server_default="TRABALHO"),
        sa.Column("inicio_previsto", sa.String(), nullable=True),
        sa.Column("fim_previsto", sa.String(), nullable=True),
    )
    op.create_index("ix_slots_escala_eletricista_id", "slots_escala", ["eletricista_id"])
    op.create_index("ix_slots_escala_data", "slots_escala", ["data"])

    op.create_table(
        "turnos_realizados",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("equipe_id", sa.Integer(), sa.ForeignKey("equipes.id"), nullable=False),
        sa.Column("data_referencia", sa.DateTime(), nullable=False),
        sa.Column("aberto_em", sa.DateTime(), nullable=False),
        sa.Column("fechado_em", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_turnos_realizados_equipe_id", "turnos_realizados", ["equipe_id"])
    op.create_index("ix_turnos_realizados_data_referencia", "turnos_realizados", ["data_referencia"])

    op.create_table(
        "turnos_realizados_eletricistas",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("turno_realizado_id", sa.Integer(), sa.ForeignKey("turnos_realizados.id"), nullable=False),
        sa.Column("eletricista_id", sa.Integer(), sa.ForeignKey("eletricistas.id"), nullable=False),
        sa.Column("aberto_em", sa.DateTime(), nullable=False),
        sa.Column("fechado_em", sa.DateTime(), nullable=True),
    )
    op.create_index(
        "ix_turnos_realizados_eletricistas_turno_realizado_id",
        "turnos_realizados_eletricistas",
        ["turno_realizado_id"],
    )
    op.create_index(
        "ix_turnos_realizados_eletricistas_eletricista_id", "turnos_realizados_eletricistas", ["eletricista_id"]
    )

    op.create_table(
        "tipos_justificativa",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nome", sa.String(), nullable=False),
        sa.Column("gera_falta", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        "justificativas_equipe",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("data_referencia", sa.DateTime(), nullable=False),
        sa.Column("equipe_id", sa.Integer(), sa.ForeignKey("equipes.id"), nullable=False),
        sa.Column("tipo_justificativa_id", sa.Integer(), sa.ForeignKey("tipos_justificativa.id"), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pendente"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("data_referencia", "equipe_id", name="uq_justificativa_equipe_dia"),
    )

    op.create_table(
        "faltas",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("data_referencia", sa.DateTime(), nullable=False),
        sa.Column("equipe_id", sa.Integer(), sa.ForeignKey("equipes.id"), nullable=False),
        sa.Column("eletricista_id", sa.Integer(), sa.ForeignKey("eletricistas.id"), nullable=False),
        sa.Column("escala_slot_id", sa.Integer(), sa.ForeignKey("slots_escala.id"), nullable=True),
        sa.Column("motivo_sistema", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pendente"),
        sa.Column("created_by", sa.String(), nullable=False, server_default="system"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "data_referencia", "equipe_id", "eletricista_id", "motivo_sistema", name="uq_falta_dia_equipe_motivo"
        ),
    )

    op.create_table(
        "divergencias_escala",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("data_referencia", sa.DateTime(), nullable=False),
        sa.Column("equipe_prevista_id", sa.Integer(), sa.ForeignKey("equipes.id"), nullable=False),
        sa.Column("equipe_real_id", sa.Integer(), sa.ForeignKey("equipes.id"), nullable=False),
        sa.Column("eletricista_id", sa.Integer(), sa.ForeignKey("eletricistas.id"), nullable=False),
        sa.Column("tipo", sa.String(), nullable=False, server_default="equipe_divergente"),
        sa.Column("detalhe", sa.String(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=False, server_default="system"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "data_referencia",
            "eletricista_id",
            "equipe_prevista_id",
            "equipe_real_id",
            name="uq_divergencia_dia_eletricista_equipes",
        ),
    )

    op.create_table(
        "horas_extras",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("data_referencia", sa.DateTime(), nullable=False),
        sa.Column("eletricista_id", sa.Integer(), sa.ForeignKey("eletricistas.id"), nullable=False),
        sa.Column(
            "turno_realizado_eletricista_id",
            sa.Integer(),
            sa.ForeignKey("turnos_realizados_eletricistas.id"),
            nullable=False,
        ),
        sa.Column("escala_slot_id", sa.Integer(), sa.ForeignKey("slots_escala.id"), nullable=True),
        sa.Column("tipo", sa.String(), nullable=False),
        sa.Column("horas_previstas", sa.Numeric(8, 2), nullable=False, server_default="0"),
        sa.Column("horas_realizadas", sa.Numeric(8, 2), nullable=False),
        sa.Column("diferenca_horas", sa.Numeric(8, 2), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pendente"),
        sa.Column("created_by", sa.String(), nullable=False, server_default="system"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("turno_realizado_eletricista_id", "tipo", name="uq_hora_extra_abertura_tipo"),
    )

    op.create_table(
        "job_locks",
        sa.Column("job_name", sa.String(), primary_key=True),
        sa.Column("locked_by", sa.String(), nullable=False),
        sa.Column("locked_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("job_locks")
    op.drop_table("horas_extras")
    op.drop_table("divergencias_escala")
    op.drop_table("faltas")
    op.drop_table("justificativas_equipe")
    op.drop_table("tipos_justificativa")
    op.drop_table("turnos_realizados_eletricistas")
    op.drop_table("turnos_realizados")
    op.drop_table("slots_escala")
    op.drop_table("escala_equipe_periodos")
    op.drop_table("eletricistas")
    op.drop_table("equipes")
