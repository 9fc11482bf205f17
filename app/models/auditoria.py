# app/models/auditoria.py
from typing import Optional

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base


class Auditoria(Base):
    """Registro imutável: só recebe INSERT."""
    __tablename__ = "auditoria"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    acao: Mapped[str] = mapped_column(String(40), nullable=False)
    tabela: Mapped[str] = mapped_column(String(64), nullable=False)
    registro_id: Mapped[int] = mapped_column(Integer, nullable=False)
    dados_antigos: Mapped[Optional[str]] = mapped_column(Text)
    dados_novos: Mapped[Optional[str]] = mapped_column(Text)
    usuario_id: Mapped[Optional[int]] = mapped_column(Integer)
    data_hora: Mapped[str] = mapped_column(String(40), nullable=False)
    ip: Mapped[Optional[str]] = mapped_column(String(64))

    __table_args__ = (
        Index("idx_auditoria_registro", "tabela", "registro_id"),
        {"sqlite_autoincrement": True},
    )
