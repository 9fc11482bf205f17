# app/schemas/notificacao.py
from typing import Optional

from pydantic import Field

from app.schemas.common import BoolNormalizado, CamelModel


class NotificacaoCreate(CamelModel):
    usuario_id: int
    tipo: str = Field(..., min_length=1)
    titulo: str = Field(..., min_length=1)
    mensagem: str = Field(..., min_length=1)
    tag: Optional[str] = None
    prioridade: BoolNormalizado = False


class NotificacaoRead(CamelModel):
    id: int
    usuario_id: int
    tipo: str
    titulo: str
    mensagem: str
    tag: Optional[str] = None
    prioridade: bool = False
    lida: bool = False
    data_criacao: str

    model_config = {"from_attributes": True}
