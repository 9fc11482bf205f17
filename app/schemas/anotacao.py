# app/schemas/anotacao.py
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel


# ---------------------------------------------------------
# Anotações
# ---------------------------------------------------------
class AnotacaoCreate(CamelModel):
    titulo: str = Field(..., min_length=1)
    conteudo: str = Field(..., min_length=1)
    cor: Optional[str] = None
    atribuido_a: Optional[int] = None
    audio_data: Optional[str] = None


class AnotacaoUpdate(CamelModel):
    titulo: Optional[str] = None
    conteudo: Optional[str] = None
    cor: Optional[str] = None
    atribuido_a: Optional[int] = None
    audio_data: Optional[str] = None


class AnotacaoRead(CamelModel):
    id: int
    titulo: str
    conteudo: str
    cor: Optional[str] = None
    data_criacao: str
    criado_por: int
    atribuido_a: Optional[int] = None
    audio_data: Optional[str] = None
    atualizado_em: Optional[str] = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------
# Feedbacks (gestor -> funcionário)
# ---------------------------------------------------------
class FeedbackCreate(CamelModel):
    funcionario_id: int
    tipo: str = Field(..., min_length=1)
    mensagem: str = Field(..., min_length=1)


class FeedbackRead(CamelModel):
    id: int
    funcionario_id: int
    gestor_id: int
    tipo: str
    mensagem: str
    data_criacao: str

    model_config = {"from_attributes": True}
