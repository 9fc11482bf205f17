# app/models/anotacao.py
from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base


class Anotacao(Base):
    __tablename__ = "anotacoes"
    # ids nunca são reaproveitados depois de um delete
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    titulo: Mapped[str] = mapped_column(String(200), nullable=False)
    conteudo: Mapped[str] = mapped_column(Text, nullable=False)
    cor: Mapped[str] = mapped_column(String(20), default="#3498db")
    data_criacao: Mapped[str] = mapped_column(String(40), nullable=False)
    criado_por: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    atribuido_a: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    audio_data: Mapped[Optional[str]] = mapped_column(Text)
    atualizado_em: Mapped[Optional[str]] = mapped_column(String(40))


class Feedback(Base):
    __tablename__ = "feedbacks"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    funcionario_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    gestor_id: Mapped[int] = mapped_column(Integer, nullable=False)
    tipo: Mapped[str] = mapped_column(String(50), nullable=False)
    mensagem: Mapped[str] = mapped_column(Text, nullable=False)
    data_criacao: Mapped[str] = mapped_column(String(40), nullable=False)
