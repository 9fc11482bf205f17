# app/schemas/demanda.py
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import BoolNormalizado, CamelModel, ListaNormalizada


# ---------------------------------------------------------
# Status oficiais
# ---------------------------------------------------------
class StatusDemanda(str, Enum):
    PENDENTE = "pendente"
    APROVADA = "aprovada"
    REPROVADA = "reprovada"
    FINALIZADO_PENDENTE_APROVACAO = "finalizado_pendente_aprovacao"
    ATRIBUIDA_PENDENTE_ACEITACAO = "atribuida_pendente_aceitacao"


# ---------------------------------------------------------
# Subschemas
# ---------------------------------------------------------
class Atribuido(BaseModel):
    id: int
    nome: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class ComentarioUsuario(CamelModel):
    id: int
    autor_id: int
    autor_nome: str
    texto: str
    data: str


def _texto_limpo(v: Optional[str]) -> Optional[str]:
    return v.strip() if isinstance(v, str) else v


# ---------------------------------------------------------
# Base de escrita (criação / importação)
# ---------------------------------------------------------
class DemandaBase(CamelModel):
    tag: Optional[str] = None

    funcionario_id: Optional[int] = None
    nome_funcionario: Optional[str] = None
    email_funcionario: Optional[str] = None

    nome_demanda: Optional[str] = None
    categoria: Optional[str] = None
    prioridade: Optional[str] = None
    complexidade: Optional[str] = None
    descricao: Optional[str] = None
    local: Optional[str] = None

    data_criacao: Optional[str] = None
    data_limite: Optional[str] = None
    data_conclusao: Optional[str] = None

    # None -> pendente (decidido no service)
    status: Optional[StatusDemanda] = None

    is_rotina: BoolNormalizado = False
    dias_semana: ListaNormalizada = Field(default_factory=list)

    comentarios: Optional[str] = None
    comentario_gestor: Optional[str] = None
    comentario_reprovacao_atribuicao: Optional[str] = None
    comentarios_usuarios: ListaNormalizada = Field(default_factory=list)

    atribuidos: ListaNormalizada = Field(default_factory=list)
    anexos_criacao: ListaNormalizada = Field(default_factory=list)
    anexos_resolucao: ListaNormalizada = Field(default_factory=list)

    @field_validator("tag", "nome_demanda", "categoria", "data_limite", mode="before")
    @classmethod
    def limpar_textos(cls, v):
        v = _texto_limpo(v)
        return v or None


class DemandaCreate(DemandaBase):
    """Payload do POST /demandas (e de cada item da importação em lote)."""
    pass


class DemandaImport(DemandaBase):
    """Registro vindo de um backup: pode trazer id e carimbos próprios."""
    id: Optional[int] = None
    data_atualizacao: Optional[str] = None
    criado_por: Optional[int] = None
    atualizado_por: Optional[int] = None


# ---------------------------------------------------------
# Para atualização (PUT): só os campos enviados são aplicados
# ---------------------------------------------------------
class DemandaUpdate(CamelModel):
    tag: Optional[str] = None
    funcionario_id: Optional[int] = None
    nome_funcionario: Optional[str] = None
    email_funcionario: Optional[str] = None
    nome_demanda: Optional[str] = None
    categoria: Optional[str] = None
    prioridade: Optional[str] = None
    complexidade: Optional[str] = None
    descricao: Optional[str] = None
    local: Optional[str] = None
    data_limite: Optional[str] = None
    data_conclusao: Optional[str] = None
    status: Optional[StatusDemanda] = None
    is_rotina: Optional[BoolNormalizado] = None
    dias_semana: Optional[ListaNormalizada] = None
    comentarios: Optional[str] = None
    comentario_gestor: Optional[str] = None
    comentario_reprovacao_atribuicao: Optional[str] = None
    comentarios_usuarios: Optional[ListaNormalizada] = None
    atribuidos: Optional[ListaNormalizada] = None
    anexos_criacao: Optional[ListaNormalizada] = None
    anexos_resolucao: Optional[ListaNormalizada] = None

    @field_validator("tag", "nome_demanda", "categoria", "data_limite", mode="before")
    @classmethod
    def limpar_textos(cls, v):
        return _texto_limpo(v)


# ---------------------------------------------------------
# Modelo enviado ao front
# ---------------------------------------------------------
class DemandaRead(CamelModel):
    id: int
    tag: Optional[str] = None
    funcionario_id: int
    nome_funcionario: Optional[str] = None
    email_funcionario: Optional[str] = None
    nome_demanda: Optional[str] = None
    categoria: Optional[str] = None
    prioridade: Optional[str] = None
    complexidade: Optional[str] = None
    descricao: Optional[str] = None
    local: Optional[str] = None
    data_criacao: Optional[str] = None
    data_limite: Optional[str] = None
    data_conclusao: Optional[str] = None
    data_atualizacao: Optional[str] = None
    status: str
    is_rotina: BoolNormalizado = False
    dias_semana: ListaNormalizada = Field(default_factory=list)
    comentarios: Optional[str] = None
    comentario_gestor: Optional[str] = None
    comentario_reprovacao_atribuicao: Optional[str] = None
    comentarios_usuarios: ListaNormalizada = Field(default_factory=list)
    atribuidos: ListaNormalizada = Field(default_factory=list)
    anexos_criacao: ListaNormalizada = Field(default_factory=list)
    anexos_resolucao: ListaNormalizada = Field(default_factory=list)
    criado_por: Optional[int] = None
    atualizado_por: Optional[int] = None


# ---------------------------------------------------------
# Operações específicas
# ---------------------------------------------------------
class ReatribuicaoIn(CamelModel):
    atribuido: Atribuido
    motivo: Optional[str] = None


class ProrrogacaoIn(CamelModel):
    nova_data_limite: str = Field(..., min_length=1)
    motivo: Optional[str] = None


class ComentarioCreate(CamelModel):
    texto: str
    autor_nome: Optional[str] = None


class LoteIn(BaseModel):
    """Corpo de /demandas/importar e /restore."""
    demandas: List[Dict[str, Any]]


class ItemLoteErro(BaseModel):
    indice: int
    tag: Optional[str] = None
    error: str


class ItemLoteOk(BaseModel):
    indice: int
    id: int
    tag: Optional[str] = None


class ResultadoLote(CamelModel):
    success_count: int = 0
    error_count: int = 0
    errors: List[ItemLoteErro] = Field(default_factory=list)
    results: List[ItemLoteOk] = Field(default_factory=list)
