# app/models/demanda.py
from typing import Optional

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base


class Demanda(Base):
    """
    Linha da tabela `demandas`. Os campos de lista ficam gravados como texto
    JSON; quem lê sempre passa por services.normalizacao.
    """
    __tablename__ = "demandas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tag: Mapped[Optional[str]] = mapped_column(String(64), unique=True)

    funcionario_id: Mapped[int] = mapped_column(Integer, nullable=False)
    nome_funcionario: Mapped[Optional[str]] = mapped_column(String(200))
    email_funcionario: Mapped[Optional[str]] = mapped_column(String(200))

    nome_demanda: Mapped[Optional[str]] = mapped_column(String(300))
    categoria: Mapped[Optional[str]] = mapped_column(String(100))
    prioridade: Mapped[Optional[str]] = mapped_column(String(50))
    complexidade: Mapped[Optional[str]] = mapped_column(String(50))
    descricao: Mapped[Optional[str]] = mapped_column(Text, default="")
    local: Mapped[Optional[str]] = mapped_column(String(300), default="")

    data_criacao: Mapped[str] = mapped_column(String(40), nullable=False)
    data_limite: Mapped[Optional[str]] = mapped_column(String(40))
    data_conclusao: Mapped[Optional[str]] = mapped_column(String(40))
    data_atualizacao: Mapped[Optional[str]] = mapped_column(String(40))

    status: Mapped[str] = mapped_column(String(40), nullable=False, default="pendente")

    is_rotina: Mapped[bool] = mapped_column(Boolean, default=False)
    dias_semana: Mapped[Optional[str]] = mapped_column(Text, default="[]")

    comentarios: Mapped[Optional[str]] = mapped_column(Text, default="")
    comentario_gestor: Mapped[Optional[str]] = mapped_column(Text, default="")
    comentario_reprovacao_atribuicao: Mapped[Optional[str]] = mapped_column(Text, default="")
    comentarios_usuarios: Mapped[Optional[str]] = mapped_column(Text, default="[]")

    atribuidos: Mapped[Optional[str]] = mapped_column(Text, default="[]")
    anexos_criacao: Mapped[Optional[str]] = mapped_column(Text, default="[]")
    anexos_resolucao: Mapped[Optional[str]] = mapped_column(Text, default="[]")

    criado_por: Mapped[Optional[int]] = mapped_column(Integer)
    atualizado_por: Mapped[Optional[int]] = mapped_column(Integer)

    __table_args__ = (
        Index("idx_demandas_status", "status"),
        Index("idx_demandas_funcionario", "funcionario_id"),
        Index("idx_demandas_data_limite", "data_limite"),
        Index("idx_demandas_categoria", "categoria"),
        Index("idx_demandas_prioridade", "prioridade"),
        {"sqlite_autoincrement": True},
    )


# Colunas na ordem do wire format; usadas para converter linha <-> dict.
COLUNAS = [c.key for c in Demanda.__table__.columns]
